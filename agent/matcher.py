import re
from urllib.parse import urlparse

# Host substrings identifying hosting platforms, checked in order
PLATFORM_HOSTS = [
    ("github", ("github.com",)),
    ("gitlab", ("gitlab.com", "gitlab.")),
    ("bitbucket", ("bitbucket.org",)),
]

SSH_URL = re.compile(r"^[\w.-]+@([^:/]+):(.+)$")


def normalize_git_url(url):
    """
    Convert scp-style SSH remotes to https form for easier parsing

    git@github.com:acme/widgets.git -> https://github.com/acme/widgets.git
    """
    if not isinstance(url, str):
        return ""
    url = url.strip()
    match = SSH_URL.match(url)
    if match and "://" not in url:
        return f"https://{match.group(1)}/{match.group(2)}"
    return url


def detect_organization(url):
    """
    Extract the organization token (first path segment) from a remote URL

    Returns:
        str or None: e.g. 'acme' for https://github.com/acme/widgets
    """
    normalized = normalize_git_url(url)
    if not normalized:
        return None

    try:
        parsed = urlparse(normalized)
    except ValueError:
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    parts = [part for part in parsed.path.split("/") if part]
    if not parts:
        return None
    return parts[0]


def detect_platform(url):
    """Detect the hosting platform: github, gitlab, bitbucket or other"""
    normalized = normalize_git_url(url)
    for platform, hosts in PLATFORM_HOSTS:
        if any(host in normalized for host in hosts):
            return platform
    return "other"


def glob_to_regex(pattern):
    """Translate a glob-like pattern: * -> .*, ? -> ."""
    return pattern.replace("*", ".*").replace("?", ".")


def matches_pattern(url, pattern):
    """
    Check if a URL matches a glob-like pattern

    Malformed patterns (or non-string input) never match.
    """
    if not isinstance(url, str) or not isinstance(pattern, str) or not pattern:
        return False
    try:
        return re.search(glob_to_regex(pattern), url) is not None
    except re.error:
        return False


def matching_patterns(account, url, patterns):
    """
    Get every pattern that matches the URL for an account

    Args:
        account: Account dict (its own 'patterns' list is checked first)
        url: Remote URL
        patterns: Global pattern dicts (only those owned by the account count)

    Returns:
        list: Matching glob expressions
    """
    matching = [p for p in account.get("patterns") or [] if matches_pattern(url, p)]

    for pattern in patterns:
        if pattern.get("account_id") == account.get("id") and matches_pattern(url, pattern.get("pattern")):
            matching.append(pattern["pattern"])

    return matching


def same_organization_projects(account, org, projects, exclude_id=None):
    """Projects bound to the account whose remote shares the organization token"""
    if not org:
        return []
    return [
        p for p in projects
        if p.get("account_id") == account.get("id")
        and p.get("remote_url")
        and p.get("id") != exclude_id
        and detect_organization(p["remote_url"]) == org
    ]
