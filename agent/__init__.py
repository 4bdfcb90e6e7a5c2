"""
Decision engine for git identity suggestions
"""
from .matcher import detect_organization, detect_platform, matches_pattern
from .confidence import compute_confidence
from .decision import DecisionEngine, suggest_accounts, decide_action
from .learning_logic import (
    record_user_choice,
    learn_patterns_from_usage,
    apply_learned_patterns,
    calculate_pattern_accuracy,
    get_learning_insights
)

__all__ = [
    'detect_organization',
    'detect_platform',
    'matches_pattern',
    'compute_confidence',
    'DecisionEngine',
    'suggest_accounts',
    'decide_action',
    'record_user_choice',
    'learn_patterns_from_usage',
    'apply_learned_patterns',
    'calculate_pattern_accuracy',
    'get_learning_insights'
]
