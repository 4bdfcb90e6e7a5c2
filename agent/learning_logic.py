# agent/learning_logic.py
"""
Learning logic that turns confirmed identity choices into patterns

Key Principles:
- Every confirmed choice bumps the account's usage and is recorded as a switch
- Low-confidence suggestion + confirmed choice: learn an '*org*' pattern
  (new at 0.7, or +0.1 on an existing one, capped at 1.0)
- Patterns of other accounts that matched the URL lose 0.1 (floored at 0.1)
- High-confidence agreement teaches nothing new

This module never decides; it only updates the pattern store and the
account statistics that the scorer reads.
"""
from collections import defaultdict
from datetime import datetime
from config.settings import (
    DB_PATH, LEARN_TH, LEARNED_PATTERN_CONFIDENCE, DEFAULT_PATTERN_ACCURACY
)
from agent.matcher import detect_organization, matches_pattern
from storage.local_store import (
    update_account_usage, record_account_switch, set_analytics_value, get_analytics
)
from telemetry.events import log_event

# Patterns above this confidence count as accurate
ACCURATE_PATTERN_TH = 0.7

# Example URLs kept per mined pattern
MAX_EXAMPLES = 5


def organization_glob(org):
    return f"*{org}*"


def learn_from_choice(project, account, pattern_store):
    """
    Create or reinforce the organization pattern for a confirmed choice

    Args:
        project: Project dict with a remote_url
        account: The account the user chose
        pattern_store: PatternStore to update

    Returns:
        dict or None: The created/boosted pattern
    """
    org = detect_organization(project.get("remote_url"))
    if not org:
        return None

    glob = organization_glob(org)
    existing = pattern_store.find(glob, account["id"])

    if existing:
        boosted = pattern_store.record_feedback(existing["id"], agreed=True)
        log_event("pattern_boosted", {"organization": org, "confidence": boosted["confidence"]})
        return boosted

    created = pattern_store.add_pattern(
        glob,
        account["id"],
        confidence=LEARNED_PATTERN_CONFIDENCE,
        created_by="system",
        name=f"Auto-learned: {org} ({account['id']})",
        usage_count=1
    )
    print(f"[LEARN] New pattern {glob} -> {account.get('name') or account['id']}")
    log_event("pattern_learned", {"organization": org, "confidence": created["confidence"]})
    return created


def penalize_disagreeing_patterns(project, account, pattern_store):
    """
    Decay patterns owned by other accounts that matched this project's URL

    Returns:
        list: Updated patterns
    """
    url = project.get("remote_url")
    if not url:
        return []

    penalized = []
    for pattern in pattern_store.get_patterns():
        if pattern["account_id"] == account["id"]:
            continue
        if matches_pattern(url, pattern["pattern"]):
            updated = pattern_store.record_feedback(pattern["id"], agreed=False)
            penalized.append(updated)
            log_event("pattern_penalized", {"confidence": updated["confidence"]})

    return penalized


def calculate_pattern_accuracy(patterns):
    """
    Usage-weighted share of patterns that are currently trusted

    Returns:
        float: Accuracy in [0, 1] (DEFAULT_PATTERN_ACCURACY with no usage yet)
    """
    total = sum(p.get("usage_count", 0) for p in patterns)
    if total == 0:
        return DEFAULT_PATTERN_ACCURACY

    accurate = sum(
        p.get("usage_count", 0) for p in patterns
        if p.get("confidence", 0) > ACCURATE_PATTERN_TH
    )
    return accurate / total


def record_user_choice(project, account, confidence, pattern_store, db_path=DB_PATH, now=None):
    """
    Record a confirmed identity choice and learn from it

    Order of effects:
    1. account usage_count += 1, last_used = now
    2. switch recorded in analytics (project bound to the account)
    3. if confidence < LEARN_TH and the project has a remote: learn '*org*'
       (other accounts' matching patterns are decayed)
    4. global pattern accuracy recomputed and stored

    Args:
        project: Project dict
        account: Account dict the user confirmed
        confidence: Confidence the engine had when it made its suggestion
        pattern_store: PatternStore to learn into

    Returns:
        dict or None: Learned/boosted pattern, if any
    """
    now = now or datetime.now()

    update_account_usage(account["id"], now, db_path)
    account["usage_count"] = account.get("usage_count", 0) + 1
    account["last_used"] = now

    if project.get("id"):
        record_account_switch(project["id"], account["id"], now, db_path)
        project["account_id"] = account["id"]
    log_event("account_switch", {"confidence": round(confidence, 2)})

    learned = None
    if project.get("remote_url"):
        if confidence < LEARN_TH:
            learned = learn_from_choice(project, account, pattern_store)
        penalize_disagreeing_patterns(project, account, pattern_store)

    accuracy = calculate_pattern_accuracy(pattern_store.get_patterns())
    set_analytics_value("pattern_accuracy", accuracy, db_path)

    return learned


def learn_patterns_from_usage(accounts, projects):
    """
    Mine '*org*' patterns from the projects each account is bound to

    Args:
        accounts: Account dicts
        projects: Project dicts

    Returns:
        list: [{
            'pattern': str,
            'account_id': str,
            'confidence': float,   # min(count / 10, 1.0)
            'usage_count': int,
            'examples': [remote urls]
        }]
    """
    known = {a["id"] for a in accounts}
    by_pattern = defaultdict(lambda: {"count": 0, "examples": []})

    for project in projects:
        account_id = project.get("account_id")
        url = project.get("remote_url")
        if account_id not in known or not url:
            continue

        org = detect_organization(url)
        if not org:
            continue

        entry = by_pattern[(organization_glob(org), account_id)]
        entry["count"] += 1
        if len(entry["examples"]) < MAX_EXAMPLES:
            entry["examples"].append(url)

    return [
        {
            "pattern": pattern,
            "account_id": account_id,
            "confidence": min(entry["count"] / 10, 1.0),
            "usage_count": entry["count"],
            "examples": entry["examples"]
        }
        for (pattern, account_id), entry in by_pattern.items()
    ]


def apply_learned_patterns(proposals, pattern_store):
    """
    Store mined patterns that are not known yet for their account

    Returns:
        list: Patterns that were added
    """
    added = []
    for proposal in proposals:
        if pattern_store.find(proposal["pattern"], proposal["account_id"]):
            continue
        org = proposal["pattern"].strip("*")
        added.append(pattern_store.add_pattern(
            proposal["pattern"],
            proposal["account_id"],
            confidence=proposal["confidence"],
            created_by="system",
            name=f"Auto-learned: {org} ({proposal['account_id']})",
            usage_count=proposal["usage_count"]
        ))
    return added


def get_learning_insights(pattern_store, db_path=DB_PATH, limit=5):
    """
    Get insights from learning data for analytics

    Returns:
        dict: {
            'analytics': dict from get_analytics(),
            'pattern_count': int,
            'learned_count': int,
            'top_patterns': [pattern dicts, most trusted first],
            'weak_patterns': [pattern dicts with confidence <= 0.3]
        }
    """
    patterns = pattern_store.get_patterns()
    top_patterns = sorted(
        patterns, key=lambda p: (p["confidence"], p["usage_count"]), reverse=True
    )[:limit]
    weak_patterns = [p for p in patterns if p["confidence"] <= 0.3][:limit]

    return {
        "analytics": get_analytics(db_path),
        "pattern_count": len(patterns),
        "learned_count": sum(1 for p in patterns if p["created_by"] == "system"),
        "top_patterns": top_patterns,
        "weak_patterns": weak_patterns
    }
