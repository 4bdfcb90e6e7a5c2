"""
Commit-time identity gate
"""
from .hook_manager import GitHookManager
from .script import HOOK_MARKER, render_pre_commit_script, is_owned_script

__all__ = ['GitHookManager', 'HOOK_MARKER', 'render_pre_commit_script', 'is_owned_script']
