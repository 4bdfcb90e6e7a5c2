"""
Decision engine: which identity should a project use
"""
from config.settings import DB_PATH, BLOCK_TH
from agent.confidence import compute_confidence, path_confidence
from agent.matcher import (
    detect_organization, detect_platform, matching_patterns, same_organization_projects
)
from agent.learning_logic import record_user_choice
from storage.local_store import get_accounts, get_projects
from storage.pattern_store import PatternStore


def generate_reason(account, url, confidence):
    """Human-readable justification for a suggestion"""
    if confidence > 0.9:
        return f"Strong match: {detect_organization(url) or 'repository'} pattern"
    if confidence > 0.7:
        return "Good match: Similar projects"
    if confidence > 0.5:
        return f"Possible match: {detect_platform(url)}"
    if account.get("is_default"):
        return "Default account"
    return "Low confidence match"


def usage_history(account, url, projects):
    """Number of this account's projects in the URL's organization"""
    return len(same_organization_projects(account, detect_organization(url), projects))


def suggest_by_path(project, accounts):
    """Suggestions for a project without a remote URL"""
    suggestions = []
    for account in accounts:
        confidence, reason = path_confidence(project, account)
        suggestions.append({
            "account_id": account["id"],
            "confidence": confidence,
            "reason": reason,
            "patterns": [],
            "usage_history": 0
        })

    return sorted(suggestions, key=lambda s: s["confidence"], reverse=True)


def suggest_accounts(project, accounts, projects, patterns, url=None, now=None):
    """
    Rank accounts for a project

    Args:
        project: Project dict (its remote_url is used when url is not given)
        accounts: Account dicts, in store order
        projects: All tracked projects
        patterns: Global pattern dicts
        url: Remote URL override

    Returns:
        list: [{
            "account_id": str,
            "confidence": float [0, 1],
            "reason": str,
            "patterns": [matching glob expressions],
            "usage_history": int
        }] sorted by confidence, highest first (ties keep store order)
    """
    url = url or project.get("remote_url")
    if not url:
        return suggest_by_path(project, accounts)

    suggestions = []
    for account in accounts:
        confidence = compute_confidence(project, account, url, projects, patterns, now)
        suggestions.append({
            "account_id": account["id"],
            "confidence": confidence,
            "reason": generate_reason(account, url, confidence),
            "patterns": matching_patterns(account, url, patterns),
            "usage_history": usage_history(account, url, projects)
        })

    # sorted() is stable, so equal scores stay in store order
    return sorted(suggestions, key=lambda s: s["confidence"], reverse=True)


def decide_action(confidence, block_th=BLOCK_TH):
    """
    Decide what a commit-time identity mismatch should do

    Returns:
        str: 'block' (confident mismatch) or 'warn'
    """
    if confidence > block_th:
        return "block"
    return "warn"


class DecisionEngine:
    """Suggests identities from a snapshot of the store and learns from choices"""

    def __init__(self, pattern_store=None, db_path=DB_PATH):
        """
        Initialize the decision engine

        Args:
            pattern_store: PatternStore to score against and learn into
            db_path: State database for accounts and projects
        """
        self.db_path = db_path
        self.pattern_store = pattern_store or PatternStore(db_path)

    def get_accounts(self):
        return get_accounts(self.db_path)

    def get_projects(self):
        return get_projects(self.db_path)

    def suggest_accounts(self, project, url=None, now=None):
        return suggest_accounts(
            project,
            self.get_accounts(),
            self.get_projects(),
            self.pattern_store.get_patterns(),
            url=url,
            now=now
        )

    def score(self, project, account, url=None, now=None):
        url = url or project.get("remote_url")
        return compute_confidence(
            project, account, url, self.get_projects(), self.pattern_store.get_patterns(), now
        )

    def record_user_choice(self, project, account, confidence):
        return record_user_choice(project, account, confidence, self.pattern_store, self.db_path)

    def add_pattern(self, pattern, account_id, confidence=1.0, created_by="user", name=None):
        return self.pattern_store.add_pattern(pattern, account_id, confidence, created_by, name)

    def get_patterns(self):
        return self.pattern_store.get_patterns()
