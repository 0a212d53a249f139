"""Pytest configuration and shared fixtures for gh-issue-mini tests."""

import pytest


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear GitHub-related environment variables before each test.

    This prevents a developer's real token or settings from leaking into
    credential and settings resolution.
    """
    import os

    test_prefixes = ("GITHUB_", "GH_", "TEST_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def issue_payload():
    """A trimmed GitHub issue object."""
    return {
        "number": 42,
        "title": "Crash on startup",
        "html_url": "https://github.com/octocat/hello-world/issues/42",
        "state": "open",
        "user": {"login": "octocat"},
        "created_at": "2024-05-01T10:00:00Z",
        "updated_at": "2024-05-02T11:30:00Z",
        "body": "Steps to reproduce...",
        "labels": [{"name": "bug"}, {"name": "p1"}],
    }
