#!/usr/bin/env python3
"""
Tests for URL parsing and glob matching
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from agent.matcher import (
    normalize_git_url, detect_organization, detect_platform,
    matches_pattern, matching_patterns, same_organization_projects
)


def test_normalize_scp_style_ssh_url():
    assert normalize_git_url("git@github.com:acme/widgets.git") == "https://github.com/acme/widgets.git"
    assert normalize_git_url("https://github.com/acme/widgets") == "https://github.com/acme/widgets"
    assert normalize_git_url(None) == ""


def test_detect_organization():
    assert detect_organization("https://github.com/acme/widgets") == "acme"
    assert detect_organization("git@gitlab.com:client-co/api.git") == "client-co"
    assert detect_organization("ssh://git@bitbucket.org/team/repo.git") == "team"


def test_detect_organization_malformed_is_none():
    assert detect_organization("not a url") is None
    assert detect_organization("https://github.com") is None
    assert detect_organization("") is None
    assert detect_organization(None) is None
    assert detect_organization(42) is None


def test_detect_platform():
    assert detect_platform("git@github.com:acme/x.git") == "github"
    assert detect_platform("https://gitlab.example.org/acme/x") == "gitlab"
    assert detect_platform("https://bitbucket.org/acme/x") == "bitbucket"
    assert detect_platform("https://git.internal/acme/x") == "other"


def test_glob_matching():
    assert matches_pattern("https://github.com/acme/x", "*acme*")
    assert matches_pattern("https://github.com/acme/x", "*ac?e*")
    assert not matches_pattern("https://github.com/other/x", "*acme*")


def test_malformed_patterns_never_match_or_raise():
    url = "https://github.com/acme/x"
    for pattern in ["acme(", "[acme", "+", "*acme)*", "", None, 3.5]:
        assert matches_pattern(url, pattern) is False
    assert matches_pattern(None, "*acme*") is False


def test_matching_patterns_only_counts_owned_globals():
    account = {"id": "a", "patterns": ["*acme*", "*nomatch*"]}
    patterns = [
        {"id": "p1", "pattern": "*github.com/acme*", "account_id": "a", "confidence": 0.8},
        {"id": "p2", "pattern": "*acme*", "account_id": "b", "confidence": 0.9},
    ]

    result = matching_patterns(account, "https://github.com/acme/x", patterns)

    assert result == ["*acme*", "*github.com/acme*"]


def test_same_organization_projects_excludes_given_project():
    account = {"id": "a"}
    projects = [
        {"id": "1", "account_id": "a", "remote_url": "https://github.com/acme/one"},
        {"id": "2", "account_id": "a", "remote_url": "git@github.com:acme/two.git"},
        {"id": "3", "account_id": "b", "remote_url": "https://github.com/acme/three"},
        {"id": "4", "account_id": "a", "remote_url": None},
    ]

    assert len(same_organization_projects(account, "acme", projects)) == 2
    assert len(same_organization_projects(account, "acme", projects, exclude_id="1")) == 1
    assert same_organization_projects(account, None, projects) == []
