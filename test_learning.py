#!/usr/bin/env python3
"""
Tests for learning from confirmed identity choices
"""
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from agent.decision import DecisionEngine
from agent.learning_logic import (
    calculate_pattern_accuracy, learn_patterns_from_usage, apply_learned_patterns,
    get_learning_insights, record_user_choice
)
from storage.local_store import (
    init_db, add_account, upsert_project, get_account, find_project_by_path, get_analytics
)
from storage.pattern_store import PatternStore

ACME_URL = "https://github.com/acme/widgets"


@pytest.fixture
def db(tmp_path):
    db_path = str(tmp_path / "state.db")
    init_db(db_path)
    add_account("Work", "Alice", "alice@acme.com", account_id="work", db_path=db_path)
    add_account("Personal", "Bob", "bob@home.net", account_id="personal", db_path=db_path)
    return db_path


def make_project(tmp_path, db, url=ACME_URL, name="widgets"):
    return upsert_project(str(tmp_path / name), remote_url=url, db_path=db)


def test_low_confidence_choice_learns_org_pattern(tmp_path, db):
    engine = DecisionEngine(db_path=db)
    project = make_project(tmp_path, db)
    work = get_account("work", db)

    learned = engine.record_user_choice(project, work, 0.4)

    assert learned["pattern"] == "*acme*"
    assert learned["account_id"] == "work"
    assert learned["created_by"] == "system"
    stored = PatternStore(db).find("*acme*", "work")
    assert stored["confidence"] >= 0.7


def test_repeated_choice_boosts_pattern(tmp_path, db):
    engine = DecisionEngine(db_path=db)
    project = make_project(tmp_path, db)

    engine.record_user_choice(project, get_account("work", db), 0.4)
    engine.record_user_choice(project, get_account("work", db), 0.5)

    stored = PatternStore(db).find("*acme*", "work")
    assert stored["confidence"] == pytest.approx(0.8)
    assert stored["usage_count"] == 2
    assert len(PatternStore(db).get_patterns()) == 1


def test_boost_is_capped(tmp_path, db):
    store = PatternStore(db)
    store.add_pattern("*acme*", "work", confidence=0.95, created_by="system")
    project = make_project(tmp_path, db)

    record_user_choice(project, get_account("work", db), 0.3, store, db)

    assert store.find("*acme*", "work")["confidence"] == 1.0


def test_confident_choice_learns_nothing(tmp_path, db):
    engine = DecisionEngine(db_path=db)
    project = make_project(tmp_path, db)

    learned = engine.record_user_choice(project, get_account("work", db), 0.9)

    assert learned is None
    assert engine.get_patterns() == []


def test_choice_updates_usage_and_binding(tmp_path, db):
    engine = DecisionEngine(db_path=db)
    project = make_project(tmp_path, db)
    work = get_account("work", db)

    engine.record_user_choice(project, work, 0.9)

    assert work["usage_count"] == 1
    assert work["last_used"] is not None
    assert get_account("work", db)["usage_count"] == 1
    assert find_project_by_path(str(tmp_path / "widgets"), db)["account_id"] == "work"

    analytics = get_analytics(db)
    assert analytics["project_switches"] == 1
    assert analytics["account_usage"] == {"work": 1}


def test_other_accounts_patterns_decay(tmp_path, db):
    store = PatternStore(db)
    store.add_pattern("*acme*", "personal", confidence=0.5, name="home acme")
    store.add_pattern("*github*", "personal", confidence=0.15, name="home github")
    project = make_project(tmp_path, db)

    record_user_choice(project, get_account("work", db), 0.9, store, db)

    assert store.find("*acme*", "personal")["confidence"] == pytest.approx(0.4)
    assert store.find("*github*", "personal")["confidence"] == pytest.approx(0.1)


def test_no_remote_learns_nothing(tmp_path, db):
    store = PatternStore(db)
    project = make_project(tmp_path, db, url=None, name="scratch")

    learned = record_user_choice(project, get_account("work", db), 0.1, store, db)

    assert learned is None
    assert store.get_patterns() == []


def test_pattern_accuracy():
    assert calculate_pattern_accuracy([]) == 0.85
    patterns = [
        {"confidence": 0.9, "usage_count": 3},
        {"confidence": 0.5, "usage_count": 1},
    ]
    assert calculate_pattern_accuracy(patterns) == pytest.approx(0.75)


def test_accuracy_stored_after_choice(tmp_path, db):
    engine = DecisionEngine(db_path=db)
    project = make_project(tmp_path, db)

    engine.record_user_choice(project, get_account("work", db), 0.4)
    assert get_analytics(db)["pattern_accuracy"] == 0.0

    engine.record_user_choice(project, get_account("work", db), 0.4)
    assert get_analytics(db)["pattern_accuracy"] == 1.0


def test_learn_patterns_from_usage():
    accounts = [{"id": "work"}, {"id": "personal"}]
    projects = [
        {"account_id": "work", "remote_url": f"https://github.com/acme/r{i}"} for i in range(7)
    ] + [
        {"account_id": "personal", "remote_url": "git@github.com:bob/dots.git"},
        {"account_id": "ghost", "remote_url": "https://github.com/acme/x"},
        {"account_id": "work", "remote_url": None},
    ]

    proposals = {p["pattern"]: p for p in learn_patterns_from_usage(accounts, projects)}

    assert proposals["*acme*"]["account_id"] == "work"
    assert proposals["*acme*"]["confidence"] == pytest.approx(0.7)
    assert proposals["*acme*"]["usage_count"] == 7
    assert len(proposals["*acme*"]["examples"]) == 5
    assert proposals["*bob*"]["confidence"] == pytest.approx(0.1)


def test_apply_learned_patterns_skips_known(db):
    store = PatternStore(db)
    store.add_pattern("*acme*", "work", confidence=0.9)
    proposals = [
        {"pattern": "*acme*", "account_id": "work", "confidence": 0.3, "usage_count": 3, "examples": []},
        {"pattern": "*bob*", "account_id": "personal", "confidence": 0.1, "usage_count": 1, "examples": []},
    ]

    added = apply_learned_patterns(proposals, store)

    assert [p["pattern"] for p in added] == ["*bob*"]
    assert store.find("*acme*", "work")["confidence"] == 0.9


def test_learning_insights(db):
    store = PatternStore(db)
    store.add_pattern("*acme*", "work", confidence=0.9)
    store.add_pattern("*bob*", "personal", confidence=0.2, created_by="system")

    insights = get_learning_insights(store, db)

    assert insights["pattern_count"] == 2
    assert insights["learned_count"] == 1
    assert insights["top_patterns"][0]["pattern"] == "*acme*"
    assert [p["pattern"] for p in insights["weak_patterns"]] == ["*bob*"]
    assert insights["analytics"]["pattern_accuracy"] == 0.85
