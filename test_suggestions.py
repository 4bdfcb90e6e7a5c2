#!/usr/bin/env python3
"""
Tests for account ranking and the decision engine
"""
import os
import sys
from datetime import datetime

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from agent.decision import DecisionEngine, suggest_accounts, decide_action, generate_reason
from storage.local_store import init_db, add_account, upsert_project

NOW = datetime(2026, 3, 1, 12, 0, 0)


def account(account_id, **overrides):
    data = {
        "id": account_id,
        "name": account_id.title(),
        "git_name": account_id.title(),
        "email": f"{account_id}@example.com",
        "patterns": [],
        "priority": 5,
        "description": None,
        "is_default": False,
        "usage_count": 0,
        "last_used": None,
    }
    data.update(overrides)
    return data


def acme_projects(count, account_id="work"):
    return [
        {
            "id": f"acme{i}",
            "path": f"/code/acme{i}",
            "remote_url": f"https://github.com/acme/repo{i}",
            "account_id": account_id,
        }
        for i in range(count)
    ]


def test_strong_match_for_known_organization():
    work = account("work", patterns=["*acme*"], priority=10, last_used=NOW)
    personal = account("personal", priority=5)
    project = {"id": "new", "path": "/code/widgets", "remote_url": "git@github.com:acme/widgets.git"}

    suggestions = suggest_accounts(project, [personal, work], acme_projects(5), [], now=NOW)

    assert suggestions[0]["account_id"] == "work"
    assert suggestions[0]["confidence"] >= 0.9
    assert "acme" in suggestions[0]["reason"]
    assert suggestions[0]["patterns"] == ["*acme*"]
    assert suggestions[0]["usage_history"] == 5


def test_suggestions_sorted_by_confidence():
    accounts = [
        account("low", priority=1),
        account("high", patterns=["*acme*"], priority=9),
        account("mid", priority=6),
    ]
    project = {"id": "p", "path": "/code/x", "remote_url": "https://github.com/acme/x"}

    suggestions = suggest_accounts(project, accounts, [], [], now=NOW)

    confidences = [s["confidence"] for s in suggestions]
    assert confidences == sorted(confidences, reverse=True)
    assert [s["account_id"] for s in suggestions] == ["high", "mid", "low"]


def test_ties_keep_store_order():
    accounts = [account("first"), account("second"), account("third")]
    project = {"id": "p", "path": "/code/x", "remote_url": "https://github.com/acme/x"}

    suggestions = suggest_accounts(project, accounts, [], [], now=NOW)

    assert [s["account_id"] for s in suggestions] == ["first", "second", "third"]


def test_no_remote_falls_back_to_path_keywords():
    accounts = [
        account("personal", description="personal projects", is_default=True),
        account("work", description="work laptop"),
    ]
    project = {"id": "p", "path": "/home/me/company/tool", "remote_url": None}

    suggestions = suggest_accounts(project, accounts, [], [])

    assert suggestions[0]["account_id"] == "work"
    assert suggestions[0]["confidence"] == 0.6
    assert suggestions[1]["confidence"] == 0.3
    assert suggestions[1]["reason"] == "Default account"


def test_no_accounts_gives_no_suggestions():
    project = {"id": "p", "path": "/code/x", "remote_url": "https://github.com/acme/x"}
    assert suggest_accounts(project, [], [], []) == []


def test_generate_reason_bands():
    url = "https://gitlab.com/acme/x"
    assert generate_reason(account("a"), url, 0.95) == "Strong match: acme pattern"
    assert generate_reason(account("a"), url, 0.8) == "Good match: Similar projects"
    assert generate_reason(account("a"), url, 0.6) == "Possible match: gitlab"
    assert generate_reason(account("a", is_default=True), url, 0.2) == "Default account"
    assert generate_reason(account("a"), url, 0.2) == "Low confidence match"


def test_decide_action():
    assert decide_action(0.71) == "block"
    assert decide_action(0.7) == "warn"
    assert decide_action(0.2) == "warn"


def test_engine_reads_store(tmp_path):
    db = str(tmp_path / "state.db")
    init_db(db)
    add_account("Personal", "Me", "me@home.net", account_id="personal", db_path=db)
    add_account("Work", "Alice", "alice@acme.com", patterns=["*acme*"], priority=8,
                account_id="work", db_path=db)
    for i in range(3):
        upsert_project(str(tmp_path / f"acme{i}"), f"https://github.com/acme/r{i}", "work", db_path=db)
    project = upsert_project(str(tmp_path / "widgets"), "https://github.com/acme/widgets", db_path=db)

    engine = DecisionEngine(db_path=db)
    suggestions = engine.suggest_accounts(project, now=NOW)

    assert suggestions[0]["account_id"] == "work"
    assert suggestions[0]["confidence"] == pytest.approx(engine.score(project, engine.get_accounts()[1], now=NOW))
    assert suggestions[0]["confidence"] > suggestions[1]["confidence"]
