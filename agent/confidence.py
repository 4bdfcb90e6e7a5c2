# agent/confidence.py
from datetime import datetime
from agent.matcher import (
    detect_organization, detect_platform, matches_pattern, same_organization_projects
)
from storage.pattern_store import clamp

# Signal weights (sum to 1.0)
WEIGHTS = {
    "pattern": 0.40,
    "organization": 0.25,
    "history": 0.20,
    "priority": 0.10,
    "recency": 0.05,
}

# Score for an account whose own pattern list matches the URL
OWN_PATTERN_SCORE = 0.9

# Path keyword heuristic used when there is no remote URL
PATH_HINTS = [
    (("work", "company"), "work", "Project path suggests work context"),
    (("personal", "home"), "personal", "Project path suggests personal context"),
]
PATH_HINT_SCORE = 0.6
DEFAULT_ACCOUNT_FLOOR = 0.3


def pattern_score(account, url, patterns):
    """
    0.9 if one of the account's own patterns matches; else the confidence
    of the best matching global pattern it owns; else 0
    """
    if not detect_organization(url):
        return 0.0

    for pattern in account.get("patterns") or []:
        if matches_pattern(url, pattern):
            return OWN_PATTERN_SCORE

    best = 0.0
    for pattern in patterns:
        if pattern.get("account_id") == account.get("id") and matches_pattern(url, pattern.get("pattern")):
            best = max(best, clamp(pattern.get("confidence")))
    return best


def organization_score(project, account, url, projects):
    """0.2 per other project of this account in the same organization, capped at 1"""
    org = detect_organization(url)
    same_org = same_organization_projects(account, org, projects, exclude_id=project.get("id"))
    return min(len(same_org) * 0.2, 1.0)


def history_score(account, url, projects):
    """Share of the account's URL-bearing projects with the same org or platform"""
    org = detect_organization(url)
    if not org:
        return 0.0
    platform = detect_platform(url)

    total = 0
    matching = 0
    for p in projects:
        if p.get("account_id") != account.get("id") or not p.get("remote_url"):
            continue
        total += 1
        if detect_organization(p["remote_url"]) == org or detect_platform(p["remote_url"]) == platform:
            matching += 1

    if total == 0:
        return 0.0
    return matching / total


def priority_score(account):
    try:
        return clamp(account.get("priority", 0) / 10)
    except TypeError:
        return 0.0


def recency_score(account, now=None):
    """Step function of days since the account was last used"""
    last_used = account.get("last_used")
    if not isinstance(last_used, datetime):
        return 0.0

    now = now or datetime.now()
    try:
        days = (now - last_used).total_seconds() / 86400
    except TypeError:
        # naive vs aware timestamps
        return 0.0

    if days < 1:
        return 1.0
    if days < 7:
        return 0.7
    if days < 30:
        return 0.3
    return 0.0


def path_confidence(project, account):
    """
    Coarse keyword heuristic for projects without a remote URL

    Returns:
        tuple: (confidence, reason)
    """
    path = (project.get("path") or "").lower()
    description = (account.get("description") or account.get("name") or "").lower()

    confidence = 0.0
    reason = "No remote URL available"
    for keywords, account_hint, hint_reason in PATH_HINTS:
        if any(k in path for k in keywords):
            if account_hint in description:
                confidence = PATH_HINT_SCORE
                reason = hint_reason
            break

    if account.get("is_default"):
        confidence = max(confidence, DEFAULT_ACCOUNT_FLOOR)
        if confidence <= DEFAULT_ACCOUNT_FLOOR:
            reason = "Default account"

    return confidence, reason


def compute_confidence(project, account, url, projects, patterns=(), now=None):
    """
    Compute overall confidence that an account belongs to a project

    Returns confidence in [0, 1]

    Signals (each in [0, 1]):
    - pattern match       40%
    - organization        25%
    - history             20%
    - declared priority   10%
    - recency              5%

    Not a trained model: a fixed, explainable weighting of evidence.
    Without a URL the path keyword heuristic is used instead.
    """
    if not url or not isinstance(url, str):
        confidence, _ = path_confidence(project, account)
        return clamp(confidence)

    scores = {
        "pattern": clamp(pattern_score(account, url, patterns)),
        "organization": clamp(organization_score(project, account, url, projects)),
        "history": clamp(history_score(account, url, projects)),
        "priority": priority_score(account),
        "recency": clamp(recency_score(account, now)),
    }

    combined = sum(WEIGHTS[name] * score for name, score in scores.items())
    return clamp(min(combined, 1.0))
