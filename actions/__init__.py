"""
Actions module for repository operations
"""
from .identity import (
    is_git_repository, get_repository_root, get_identity, set_identity, get_remote_url,
    get_git_dir, get_hooks_dir
)

__all__ = [
    'is_git_repository', 'get_repository_root', 'get_identity', 'set_identity', 'get_remote_url',
    'get_git_dir', 'get_hooks_dir'
]
