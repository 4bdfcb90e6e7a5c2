"""
Utility functions
"""
from .paths import normalize_path, ensure_directory_exists, git_dir, hooks_dir

__all__ = ['normalize_path', 'ensure_directory_exists', 'git_dir', 'hooks_dir']
