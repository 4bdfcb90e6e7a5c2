# actions/identity.py
"""
Git identity accessor

Reads and writes the repository-local committer identity
(user.name / user.email) by shelling out to the git executable.
"""
import os
import subprocess
from pathlib import Path
from utils.paths import git_dir, hooks_dir


def run_git(args, cwd):
    """
    Run a git command and return its stdout

    Raises:
        subprocess.CalledProcessError: git exited non-zero
        OSError: git executable not available
    """
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True
    )
    return result.stdout


def is_git_repository(path):
    """Check if a directory is (inside) a git repository"""
    if not path or not os.path.isdir(path):
        return False

    if os.path.exists(os.path.join(path, ".git")):
        return True

    try:
        run_git(["rev-parse", "--git-dir"], path)
        return True
    except (subprocess.CalledProcessError, OSError):
        return False


def get_repository_root(path):
    """Find the top-level directory of the repository containing path"""
    if not is_git_repository(path):
        return None
    try:
        root = run_git(["rev-parse", "--show-toplevel"], path).strip()
        return root or None
    except (subprocess.CalledProcessError, OSError):
        return None


def get_identity(repo_path):
    """
    Get the effective git identity for a repository

    Returns:
        dict: {'name': str, 'email': str} or None when either is unset
    """
    if not is_git_repository(repo_path):
        return None

    try:
        name = run_git(["config", "user.name"], repo_path).strip()
        email = run_git(["config", "user.email"], repo_path).strip()
    except subprocess.CalledProcessError:
        # git config exits 1 when the key is unset
        return None
    except OSError as e:
        print(f"[ERROR] Failed to read git identity: {e}")
        return None

    if not name or not email:
        return None

    return {"name": name, "email": email}


def set_identity(repo_path, name, email):
    """
    Write user.name / user.email into the repository's local config

    Returns:
        tuple: (success: bool, error_type: str or None)
        error_types: 'not_a_repository', 'other'
    """
    if not is_git_repository(repo_path):
        return False, 'not_a_repository'

    try:
        run_git(["config", "user.name", name], repo_path)
        run_git(["config", "user.email", email], repo_path)
        return True, None
    except (subprocess.CalledProcessError, OSError) as e:
        print(f"[ERROR] Failed to set git identity: {e}")
        return False, 'other'


def get_remote_url(repo_path, remote="origin"):
    """Get the URL of a remote, or None when there is none"""
    if not is_git_repository(repo_path):
        return None
    try:
        url = run_git(["config", "--get", f"remote.{remote}.url"], repo_path).strip()
        return url or None
    except (subprocess.CalledProcessError, OSError):
        return None


def _rev_parse_path(repo_path, args, fallback):
    try:
        out = run_git(["rev-parse", *args], repo_path).strip()
    except (subprocess.CalledProcessError, OSError):
        return fallback
    if not out:
        return fallback
    # git prints paths relative to cwd unless they are absolute
    return Path(repo_path) / out


def get_git_dir(repo_path):
    """
    Directory git keeps the repository's state in

    Follows worktrees and submodules (where .git is a file); falls back to
    <repo>/.git when git can't answer.
    """
    return _rev_parse_path(repo_path, ["--git-dir"], git_dir(repo_path))


def get_hooks_dir(repo_path):
    """Directory git actually runs hooks from (honours core.hooksPath)"""
    return _rev_parse_path(repo_path, ["--git-path", "hooks"], hooks_dir(repo_path))
