# config/settings.py
"""
Load settings from YAML config
"""
import os
import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

SETTINGS_PATH = os.path.join(os.path.dirname(__file__), "settings.yaml")

_settings = {}
if os.path.exists(SETTINGS_PATH):
    with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
        _settings = yaml.safe_load(f) or {}

# Export thresholds
BLOCK_TH = _settings.get("block_threshold", 0.7)
LEARN_TH = _settings.get("learn_threshold", 0.7)

LEARNED_PATTERN_CONFIDENCE = _settings.get("learned_pattern_confidence", 0.7)
PATTERN_STEP = _settings.get("pattern_step", 0.1)
PATTERN_FLOOR = _settings.get("pattern_floor", 0.1)
DEFAULT_PATTERN_ACCURACY = _settings.get("default_pattern_accuracy", 0.85)

DEFAULT_VALIDATION_LEVEL = _settings.get("default_validation_level", "strict")
DEFAULT_AUTO_FIX = _settings.get("default_auto_fix", False)

# Data locations (GITSWITCH_HOME may come from the environment or .env)
DATA_DIR = os.path.expanduser(os.getenv("GITSWITCH_HOME") or "~/.gitswitch")
DB_PATH = os.path.join(DATA_DIR, "state.db")
ACCOUNTS_PATH = os.path.join(DATA_DIR, "accounts.yaml")
