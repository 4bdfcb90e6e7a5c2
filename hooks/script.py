# hooks/script.py
"""
Pre-commit script template

The generated script is the only thing git runs. It exits 0 to allow the
commit and 1 to block it; whatever it prints is shown to the user. Only the
CLI's stdout is captured, so diagnostics on stderr stay out of the message.
"""

# Ownership marker: reinstall/removal only touch scripts containing it
HOOK_MARKER = "# GitSwitch pre-commit hook"

HOOK_NAME = "pre-commit"
BACKUP_SUFFIX = ".gitswitch-backup"
CONFIG_NAME = "gitswitch-hooks.json"

VALIDATION_LEVELS = ("strict", "warning", "off")

CLI_NAME = "gitswitch-hook"

# Exit code the CLI uses for a confident mismatch. Anything else that is
# non-zero (crash, import error, usage error) must not block a commit.
INVALID_EXIT_CODE = 3

PRE_COMMIT_TEMPLATE = """#!/bin/sh
{marker}
# Generated automatically - do not edit manually

VALIDATION_LEVEL="{validation_level}"
AUTO_FIX="{auto_fix}"

if [ "$VALIDATION_LEVEL" = "off" ]; then
  exit 0
fi

if ! command -v {cli} >/dev/null 2>&1; then
  echo "[WARN] {cli} not found - skipping identity validation"
  exit 0
fi

if [ "$AUTO_FIX" = "true" ]; then
  VALIDATION_RESULT=$({cli} validate --auto-fix "$(pwd)" 2>/dev/null)
else
  VALIDATION_RESULT=$({cli} validate "$(pwd)" 2>/dev/null)
fi
VALIDATION_EXIT_CODE=$?

if [ $VALIDATION_EXIT_CODE -eq 0 ]; then
  echo "$VALIDATION_RESULT"
  exit 0
elif [ $VALIDATION_EXIT_CODE -eq {invalid_code} ]; then
  echo "$VALIDATION_RESULT"
  if [ "$VALIDATION_LEVEL" = "strict" ]; then
    echo "Commit blocked due to identity mismatch"
    echo "Fix with: {cli} fix <account>"
    exit 1
  fi
  echo "Warning: possible identity mismatch - commit allowed"
  exit 0
else
  echo "Validation error - allowing commit"
  exit 0
fi
"""


def render_pre_commit_script(validation_level, auto_fix=False):
    """
    Render the pre-commit script for a hook configuration

    Args:
        validation_level: 'strict', 'warning' or 'off'
        auto_fix: Ask the validator to switch identity on a confident mismatch

    Returns:
        str: Script body (always contains HOOK_MARKER)
    """
    if validation_level not in VALIDATION_LEVELS:
        raise ValueError(f"Unknown validation level: {validation_level}")

    return PRE_COMMIT_TEMPLATE.format(
        marker=HOOK_MARKER,
        validation_level=validation_level,
        auto_fix="true" if auto_fix else "false",
        cli=CLI_NAME,
        invalid_code=INVALID_EXIT_CODE
    )


def is_owned_script(content):
    """True when a hook script body carries the ownership marker"""
    return isinstance(content, str) and HOOK_MARKER in content
