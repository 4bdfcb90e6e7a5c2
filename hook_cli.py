#!/usr/bin/env python3
# hook_cli.py
"""
GitSwitch hook CLI - identity suggestions and the pre-commit gate

Usage:
    gitswitch-hook validate [path] [--auto-fix]     # Called by the pre-commit hook
    gitswitch-hook install [path] [--level strict|warning|off] [--auto-fix]
    gitswitch-hook uninstall [path] [--yes]
    gitswitch-hook status [path]
    gitswitch-hook suggest [path]
    gitswitch-hook track [path] [--account ACCOUNT]
    gitswitch-hook fix ACCOUNT [path]
    gitswitch-hook patterns
    gitswitch-hook learn [--save]
    gitswitch-hook import-accounts [FILE]
    gitswitch-hook stats

validate exits 0 when the commit may proceed, 3 on a confident identity
mismatch and 2 on an internal error. Other commands exit 1 when they fail.
"""
import os
import sys
from config.settings import DB_PATH, ACCOUNTS_PATH, DEFAULT_VALIDATION_LEVEL, DEFAULT_AUTO_FIX
from actions.identity import get_repository_root, get_identity, get_remote_url, set_identity
from agent.decision import DecisionEngine
from agent.learning_logic import (
    learn_patterns_from_usage, apply_learned_patterns, get_learning_insights
)
from hooks.hook_manager import GitHookManager
from hooks.script import INVALID_EXIT_CODE
from storage.local_store import (
    init_db, get_accounts, get_projects, find_account, find_project_by_path,
    upsert_project, load_accounts_file
)
from ui.prompt import get_user_confirmation, format_confidence

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2
EXIT_INVALID = INVALID_EXIT_CODE

VALUE_OPTIONS = ("--level", "--account")


def parse_args(argv):
    """
    Split arguments into positionals and options

    Returns:
        tuple: (positionals: list, options: dict)
    """
    positionals = []
    options = {}
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in VALUE_OPTIONS and i + 1 < len(argv):
            options[arg] = argv[i + 1]
            i += 2
            continue
        if arg.startswith("--"):
            options[arg] = True
        else:
            positionals.append(arg)
        i += 1
    return positionals, options


def resolve_repo(path=None):
    """Repository root for a path (the path itself when git can't tell)"""
    path = os.path.abspath(path or os.getcwd())
    return get_repository_root(path) or path


def account_label(accounts, account_id):
    for account in accounts:
        if account["id"] == account_id:
            return f"{account['name']} <{account['email']}>"
    return account_id


def cmd_validate(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    manager = GitHookManager(db_path=db_path)

    result = manager.validate_commit(path)
    print(result["message"])
    if result["valid"]:
        return EXIT_OK

    if options.get("--auto-fix") and result["suggested_account"]:
        if manager.auto_fix_identity(path, result["suggested_account"]):
            print("Identity switched to the suggested account - run the commit again")
    return EXIT_INVALID


def cmd_install(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    manager = GitHookManager(db_path=db_path)
    config = {
        "validation_level": options.get("--level", DEFAULT_VALIDATION_LEVEL),
        "auto_fix": bool(options.get("--auto-fix", DEFAULT_AUTO_FIX)),
        "pre_commit_enabled": True
    }

    if not manager.install_hooks(path, config):
        return EXIT_FAILED

    if not manager.are_hooks_installed(path):
        print("[WARN] Identity validation is NOT active: another pre-commit hook is in place")
    return EXIT_OK


def cmd_uninstall(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    if not options.get("--yes") and not get_user_confirmation("Remove git hooks?", default=False):
        print("Cancelled")
        return EXIT_OK

    manager = GitHookManager(db_path=db_path)
    return EXIT_OK if manager.remove_hooks(path) else EXIT_FAILED


def cmd_status(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    manager = GitHookManager(db_path=db_path)
    config = manager.get_hook_config(path)
    identity = get_identity(path)
    project = find_project_by_path(path, db_path)

    print(f"\n{'='*60}")
    print(f"Repository: {path}")
    print(f"{'='*60}")
    print(f"Hooks installed:  {'yes' if manager.are_hooks_installed(path) else 'no'}")
    if config:
        print(f"Validation level: {config.get('validationLevel')}")
        print(f"Auto-fix:         {'on' if config.get('autoFix') else 'off'}")
    if identity:
        print(f"Identity:         {identity['name']} <{identity['email']}>")
    else:
        print("Identity:         (not configured)")
    print(f"Tracked:          {'yes' if project else 'no'}")

    if project:
        suggestions = manager.engine.suggest_accounts(project)
        if suggestions:
            top = suggestions[0]
            label = account_label(manager.engine.get_accounts(), top["account_id"])
            print(f"Suggested:        {label} ({format_confidence(top['confidence'])})")
            print(f"                  {top['reason']}")
    print()
    return EXIT_OK


def cmd_suggest(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    project = find_project_by_path(path, db_path) or {
        "id": None,
        "path": path,
        "remote_url": get_remote_url(path),
        "account_id": None
    }

    engine = DecisionEngine(db_path=db_path)
    accounts = engine.get_accounts()
    suggestions = engine.suggest_accounts(project)
    if not suggestions:
        print("No accounts configured")
        return EXIT_OK

    print(f"\nSuggestions for {project['path']}")
    for i, suggestion in enumerate(suggestions, 1):
        print(f"{i}. {account_label(accounts, suggestion['account_id'])}")
        print(f"   Confidence: {format_confidence(suggestion['confidence'])}")
        print(f"   Reason: {suggestion['reason']}")
        if suggestion["patterns"]:
            print(f"   Patterns: {', '.join(suggestion['patterns'])}")
        if suggestion["usage_history"]:
            print(f"   Similar projects: {suggestion['usage_history']}")
    print()
    return EXIT_OK


def cmd_track(positionals, options, db_path):
    path = resolve_repo(positionals[0] if positionals else None)
    account_id = None
    if options.get("--account"):
        account = find_account(options["--account"], db_path)
        if not account:
            print(f"[ERROR] Unknown account: {options['--account']}")
            return EXIT_FAILED
        account_id = account["id"]

    project = upsert_project(path, remote_url=get_remote_url(path), account_id=account_id, db_path=db_path)
    if not project:
        return EXIT_FAILED
    print(f"Tracking {project['path']}")
    if project["remote_url"]:
        print(f"  Remote: {project['remote_url']}")
    return EXIT_OK


def cmd_fix(positionals, options, db_path):
    if not positionals:
        print("Usage: gitswitch-hook fix ACCOUNT [path]")
        return EXIT_FAILED

    account = find_account(positionals[0], db_path)
    if not account:
        print(f"[ERROR] Unknown account: {positionals[0]}")
        return EXIT_FAILED

    path = resolve_repo(positionals[1] if len(positionals) > 1 else None)
    success, error = set_identity(path, account["git_name"], account["email"])
    if not success:
        print(f"[ERROR] Could not switch identity: {error}")
        return EXIT_FAILED

    project = find_project_by_path(path, db_path) or upsert_project(
        path, remote_url=get_remote_url(path), db_path=db_path
    )
    if project:
        engine = DecisionEngine(db_path=db_path)
        confidence = engine.score(project, account)
        engine.record_user_choice(project, account, confidence)

    print(f"Switched to {account['name']} <{account['email']}>")
    return EXIT_OK


def cmd_patterns(positionals, options, db_path):
    engine = DecisionEngine(db_path=db_path)
    accounts = engine.get_accounts()
    patterns = engine.get_patterns()
    if not patterns:
        print("No patterns yet")
        return EXIT_OK

    for pattern in patterns:
        print(f"{pattern['pattern']:<30} -> {account_label(accounts, pattern['account_id'])}")
        print(f"   {format_confidence(pattern['confidence'])} confidence, "
              f"{pattern['usage_count']} uses, by {pattern['created_by']}")
    return EXIT_OK


def cmd_learn(positionals, options, db_path):
    engine = DecisionEngine(db_path=db_path)
    accounts = engine.get_accounts()
    proposals = learn_patterns_from_usage(accounts, engine.get_projects())
    if not proposals:
        print("Nothing to learn yet - bind some projects to accounts first")
        return EXIT_OK

    for proposal in proposals:
        print(f"{proposal['pattern']:<30} -> {account_label(accounts, proposal['account_id'])} "
              f"({format_confidence(proposal['confidence'])}, {proposal['usage_count']} projects)")

    if options.get("--save"):
        added = apply_learned_patterns(proposals, engine.pattern_store)
        print(f"\nSaved {len(added)} new pattern(s)")
    return EXIT_OK


def cmd_import_accounts(positionals, options, db_path):
    accounts_path = positionals[0] if positionals else ACCOUNTS_PATH
    if not os.path.exists(accounts_path):
        print(f"[ERROR] Accounts file not found: {accounts_path}")
        return EXIT_FAILED

    added = load_accounts_file(accounts_path, db_path)
    print(f"Imported {len(added)} account(s), {len(get_accounts(db_path))} total")
    return EXIT_OK


def cmd_stats(positionals, options, db_path):
    engine = DecisionEngine(db_path=db_path)
    insights = get_learning_insights(engine.pattern_store, db_path)
    analytics = insights["analytics"]
    accounts = engine.get_accounts()

    print(f"\n{'='*60}")
    print(" GitSwitch - Identity Analytics")
    print(f"{'='*60}")
    print(f"Accounts:          {len(accounts)}")
    print(f"Projects:          {len(get_projects(db_path))}")
    print(f"Switches:          {analytics['project_switches']}")
    print(f"Errors prevented:  {analytics['errors_prevented']}")
    print(f"Time saved:        {analytics['times_saved'] // 60} min")
    print(f"Pattern accuracy:  {format_confidence(analytics['pattern_accuracy'])}")
    print(f"Patterns:          {insights['pattern_count']} ({insights['learned_count']} learned)")

    if analytics["account_usage"]:
        print("\nUsage by account:")
        for account_id, count in sorted(analytics["account_usage"].items(), key=lambda x: x[1], reverse=True):
            print(f"  {account_label(accounts, account_id)}: {count}")

    if insights["top_patterns"]:
        print("\nMost trusted patterns:")
        for pattern in insights["top_patterns"]:
            print(f"  {pattern['pattern']} ({format_confidence(pattern['confidence'])})")
    print()
    return EXIT_OK


COMMANDS = {
    "validate": cmd_validate,
    "install": cmd_install,
    "uninstall": cmd_uninstall,
    "status": cmd_status,
    "suggest": cmd_suggest,
    "track": cmd_track,
    "fix": cmd_fix,
    "patterns": cmd_patterns,
    "learn": cmd_learn,
    "import-accounts": cmd_import_accounts,
    "stats": cmd_stats,
}


def main(argv=None, db_path=DB_PATH):
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] in ("--help", "-h", "help"):
        print(__doc__)
        return EXIT_OK

    command = COMMANDS.get(argv[0])
    if command is None:
        print(f"Unknown command: {argv[0]}")
        print(__doc__)
        return EXIT_ERROR

    positionals, options = parse_args(argv[1:])

    try:
        init_db(db_path)
        return command(positionals, options, db_path)
    except Exception as e:
        # a crash must never read as an identity mismatch to the hook
        print(f"[ERROR] {argv[0]} failed: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
