"""
Git hook management: install, remove and validate the pre-commit gate

Fail-safe rules:
- Anything ambiguous (no identity, untracked project, no suggestions,
  internal error) allows the commit
- Only a mismatch with a confident top suggestion is reported invalid
- A pre-commit script we did not write is never modified or deleted
"""
import os
import json
import shutil
from datetime import datetime
from config.settings import DB_PATH, DEFAULT_VALIDATION_LEVEL, DEFAULT_AUTO_FIX
from actions.identity import (
    is_git_repository, get_identity, set_identity, get_git_dir, get_hooks_dir
)
from agent.decision import DecisionEngine, decide_action
from hooks.script import (
    HOOK_NAME, BACKUP_SUFFIX, CONFIG_NAME, VALIDATION_LEVELS,
    render_pre_commit_script, is_owned_script
)
from storage.local_store import get_account, find_project_by_path, record_error_prevented
from telemetry.events import log_event
from utils.paths import normalize_path, ensure_directory_exists


def _result(valid, message, suggested_account=None, confidence=None):
    return {
        "valid": valid,
        "message": message,
        "suggested_account": suggested_account,
        "confidence": confidence
    }


def _read_text(path):
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


class GitHookManager:
    """Installs the pre-commit gate and answers its validation calls"""

    def __init__(self, engine=None, db_path=DB_PATH):
        """
        Initialize the hook manager

        Args:
            engine: DecisionEngine providing suggestions and learning
            db_path: State database
        """
        self.db_path = db_path
        self.engine = engine or DecisionEngine(db_path=db_path)

    # --- paths ---

    def _pre_commit_path(self, project_path):
        return get_hooks_dir(project_path) / HOOK_NAME

    def _config_path(self, project_path):
        return get_git_dir(project_path) / CONFIG_NAME

    # --- install / remove ---

    def install_hooks(self, project_path, config=None):
        """
        Install git hooks for a project

        Args:
            project_path: Repository root
            config: {
                'validation_level': 'strict' | 'warning' | 'off',
                'auto_fix': bool,
                'pre_commit_enabled': bool
            }

        Returns:
            bool: True when the call succeeded. A foreign pre-commit hook is
            backed up and left in place, the gate is not wired in, and the
            call still returns True.
        """
        config = config or {}
        validation_level = config.get("validation_level", DEFAULT_VALIDATION_LEVEL)
        auto_fix = bool(config.get("auto_fix", DEFAULT_AUTO_FIX))
        pre_commit_enabled = bool(config.get("pre_commit_enabled", True))

        if not is_git_repository(project_path):
            print(f"[ERROR] Failed to install git hooks: not a git repository: {project_path}")
            return False

        if validation_level not in VALIDATION_LEVELS:
            print(f"[ERROR] Failed to install git hooks: unknown validation level '{validation_level}'")
            return False

        try:
            ensure_directory_exists(get_hooks_dir(project_path))

            wired = False
            if pre_commit_enabled:
                wired = self._install_pre_commit_hook(project_path, validation_level, auto_fix)
            else:
                self._disable_pre_commit_hook(project_path)

            self._save_hook_config(project_path, {
                "projectPath": normalize_path(project_path),
                "hooksInstalled": wired,
                "preCommitEnabled": pre_commit_enabled,
                "validationLevel": validation_level,
                "autoFix": auto_fix,
                "installedAt": datetime.now().isoformat()
            })
        except OSError as e:
            print(f"[ERROR] Failed to install git hooks: {e}")
            return False

        if wired:
            print(f"[HOOK] Git hooks installed for {os.path.basename(normalize_path(project_path))}")
            log_event("hooks_installed", {"validation_level": validation_level, "auto_fix": auto_fix})
        return True

    def _install_pre_commit_hook(self, project_path, validation_level, auto_fix):
        """
        Write the pre-commit script

        Returns:
            bool: True if our script is in place, False if a foreign hook was kept
        """
        pre_commit_path = self._pre_commit_path(project_path)

        if pre_commit_path.exists() and not is_owned_script(_read_text(pre_commit_path)):
            backup_path = f"{pre_commit_path}{BACKUP_SUFFIX}"
            shutil.copy2(pre_commit_path, backup_path)
            print("[WARN] Existing pre-commit hook is not managed by GitSwitch - left untouched")
            print(f"[WARN] Backup written to: {backup_path}")
            log_event("foreign_hook_preserved")
            return False

        script = render_pre_commit_script(validation_level, auto_fix)
        with open(pre_commit_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(script)
        os.chmod(pre_commit_path, 0o755)
        return True

    def _disable_pre_commit_hook(self, project_path):
        """Drop our pre-commit script so a disabled gate cannot block; foreign hooks stay"""
        pre_commit_path = self._pre_commit_path(project_path)
        if pre_commit_path.exists() and is_owned_script(_read_text(pre_commit_path)):
            pre_commit_path.unlink()
            print("[HOOK] Pre-commit validation disabled - GitSwitch script removed")

    def remove_hooks(self, project_path):
        """
        Remove git hooks from a project

        Returns:
            bool: False (and nothing deleted) when the pre-commit hook is not ours
        """
        pre_commit_path = self._pre_commit_path(project_path)

        try:
            if pre_commit_path.exists():
                if not is_owned_script(_read_text(pre_commit_path)):
                    print("[WARN] Pre-commit hook exists but is not managed by GitSwitch")
                    return False
                pre_commit_path.unlink()
                print(f"[HOOK] GitSwitch hooks removed from {os.path.basename(normalize_path(project_path))}")

            config_path = self._config_path(project_path)
            if config_path.exists():
                config_path.unlink()
        except OSError as e:
            print(f"[ERROR] Failed to remove git hooks: {e}")
            return False

        log_event("hooks_removed")
        return True

    # --- status ---

    def get_hook_config(self, project_path):
        """
        Get hook configuration for a project

        Returns:
            dict or None: {projectPath, hooksInstalled, preCommitEnabled,
                           validationLevel, autoFix, installedAt}
        """
        config_path = self._config_path(project_path)
        if not config_path.exists():
            return None
        try:
            return json.loads(_read_text(config_path))
        except (OSError, ValueError) as e:
            print(f"[ERROR] Failed to read hook config: {e}")
            return None

    def are_hooks_installed(self, project_path):
        pre_commit_path = self._pre_commit_path(project_path)
        if not pre_commit_path.exists():
            return False
        try:
            return is_owned_script(_read_text(pre_commit_path))
        except OSError:
            return False

    def _save_hook_config(self, project_path, hook_config):
        with open(self._config_path(project_path), "w", encoding="utf-8") as f:
            json.dump(hook_config, f, indent=2)

    # --- commit-time ---

    def validate_commit(self, project_path):
        """
        Validate the current git identity before a commit

        Returns:
            dict: {
                'valid': bool,
                'message': str,
                'suggested_account': account id or None,
                'confidence': float or None
            }
        """
        try:
            identity = get_identity(project_path)
            if not identity:
                return _result(True, "No git identity configured - allowing commit")

            project = find_project_by_path(project_path, self.db_path)
            if not project:
                return _result(True, "Project not managed by GitSwitch - allowing commit")

            suggestions = self.engine.suggest_accounts(project)
            if not suggestions:
                return _result(True, "No account suggestions available - allowing commit")

            top = suggestions[0]
            account = get_account(top["account_id"], self.db_path)
            if not account:
                return _result(True, "Suggested account not found - allowing commit")

            if identity["email"] == account["email"] and identity["name"] == account["git_name"]:
                return _result(True, f"Correct identity: {identity['email']}", confidence=top["confidence"])

            if decide_action(top["confidence"]) == "block":
                record_error_prevented(project["id"], self.db_path)
                log_event("error_prevented", {"confidence": round(top["confidence"], 2)})
                message = "\n".join([
                    "Wrong git identity detected!",
                    f"Current: {identity['name']} <{identity['email']}>",
                    f"Suggested: {account['git_name']} <{account['email']}>",
                    f"Confidence: {round(top['confidence'] * 100)}%",
                    f"Reason: {top['reason']}"
                ])
                return _result(False, message, account["id"], top["confidence"])

            message = "\n".join([
                "Possible identity mismatch (low confidence) - allowing commit",
                f"Current: {identity['email']}",
                f"Suggested: {account['email']}"
            ])
            return _result(True, message, confidence=top["confidence"])

        except Exception as e:
            print(f"[ERROR] Validation error: {e}")
            return _result(True, "Validation error - allowing commit to prevent blocking")

    def auto_fix_identity(self, project_path, account_id):
        """
        Apply an account's identity to the repository and learn from it

        Returns:
            bool: True if the identity was written
        """
        account = get_account(account_id, self.db_path)
        if not account:
            print(f"[WARN] Auto-fix skipped: unknown account {account_id}")
            return False

        success, error = set_identity(project_path, account["git_name"], account["email"])
        if not success:
            print(f"[ERROR] Auto-fix failed: {error}")
            return False

        print(f"[INFO] Auto-fixed git identity to {account['email']}")
        log_event("identity_auto_fixed")

        project = find_project_by_path(project_path, self.db_path)
        if project:
            self.engine.record_user_choice(project, account, 1.0)

        return True
