"""
Path utility functions for repository roots and their .git layout
"""
from pathlib import Path


def normalize_path(path_str):
    """
    Normalize a repository path so the same checkout always maps to one key

    Returns:
        str: Expanded, absolute, symlink-free path
    """
    return str(Path(path_str).expanduser().resolve())


def ensure_directory_exists(directory):
    """Create a directory (and parents) if missing; returns its Path"""
    path = Path(directory).expanduser()
    path.mkdir(parents=True, exist_ok=True)
    return path


def git_dir(repo_path):
    """Path of the .git directory for a repository root"""
    return Path(repo_path) / ".git"


def hooks_dir(repo_path):
    """Path of the hooks directory for a repository root"""
    return git_dir(repo_path) / "hooks"
