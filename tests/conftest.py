"""
Shared fixtures for Magic Mirror tests.

Provides repository references, a factory for PendingPR records, a
GitHubClient double, and an in-memory store.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from magic_mirror.github.client import GitHubClient
from magic_mirror.models.pending_pr import PendingPR, Repo
from magic_mirror.persistence.store import InMemoryStore

HEAD_SHA = "3f2a9c1d0b8e7f6a5c4d3e2f1a0b9c8d7e6f5a4b"


@pytest.fixture
def fork() -> Repo:
    return Repo(organization="fork-org", name="widgets")


@pytest.fixture
def upstream() -> Repo:
    return Repo(organization="upstream-org", name="widgets")


@pytest.fixture
def make_record(fork, upstream):
    """Factory for PendingPR records with sensible defaults."""

    def _make(**overrides: Any) -> PendingPR:
        values: Dict[str, Any] = {
            "repo": fork,
            "upstream_repo": upstream,
            "branch": "main",
            "upstream_pr_ids": [101, 102],
            "upstream_authors": ["alice", "carol"],
            "pr_id": 7,
        }
        values.update(overrides)
        return PendingPR(**values)

    return _make


@pytest.fixture
def client() -> MagicMock:
    """GitHubClient double with an open, unmerged PR and no gates."""
    mock = MagicMock(spec=GitHubClient)
    mock.__enter__.return_value = mock
    mock.get_pull.return_value = pull_payload()
    mock.get_branch.return_value = branch_payload(enabled=False)
    mock.get_content.return_value = owners_envelope("approvers: []\n")
    mock.get_combined_status.return_value = {"statuses": []}
    mock.list_check_runs.return_value = []
    mock.list_reviews.return_value = []
    mock.merge_pull.return_value = {"merged": True, "sha": "m3rg3d", "message": "Pull Request successfully merged"}
    mock.create_issue.return_value = {"number": 42}
    mock.get_issue.return_value = {"number": 42, "state": "open"}
    mock.create_comment.return_value = {"id": 1}
    return mock


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


def pull_payload(
    head: str = HEAD_SHA,
    state: str = "open",
    merged: bool = False,
    body: Optional[str] = "Mirrors upstream-org/widgets#101",
    assignees: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return {
        "number": 7,
        "state": state,
        "merged": merged,
        "body": body,
        "head": {"sha": head, "ref": "magic-mirror/main"},
        "assignees": [{"login": login} for login in assignees or []],
    }


def branch_payload(enabled: bool = True, contexts: Optional[List[str]] = None, checks=None) -> Dict[str, Any]:
    protection: Dict[str, Any] = {"enabled": enabled}
    if contexts is not None or checks is not None:
        protection["required_status_checks"] = {
            "enforcement_level": "non_admins",
            "contexts": contexts or [],
            "checks": checks or [],
        }
    return {"name": "main", "protected": enabled, "protection": protection}


def owners_envelope(text: str) -> Dict[str, Any]:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return {"type": "file", "path": "OWNERS", "encoding": "base64", "content": encoded}
