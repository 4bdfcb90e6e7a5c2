"""
Storage module for state persistence
"""
from .local_store import (
    init_db, get_accounts, get_account, find_account, add_account, update_account_usage,
    load_accounts_file, get_projects, find_project_by_path, upsert_project, bind_project,
    get_patterns, save_pattern, save_patterns, delete_pattern, record_account_switch,
    record_error_prevented, get_analytics, set_analytics_value, get_switch_history
)
from .pattern_store import PatternStore

__all__ = [
    'init_db', 'get_accounts', 'get_account', 'find_account', 'add_account', 'update_account_usage',
    'load_accounts_file', 'get_projects', 'find_project_by_path', 'upsert_project', 'bind_project',
    'get_patterns', 'save_pattern', 'save_patterns', 'delete_pattern', 'record_account_switch',
    'record_error_prevented', 'get_analytics', 'set_analytics_value', 'get_switch_history',
    'PatternStore'
]
