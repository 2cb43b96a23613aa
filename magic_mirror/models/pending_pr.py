"""
Pending PR Models — Pydantic schemas for mirrored pull requests.

A PendingPR is the unit of tracked work: one mirrored PR on the fork (or a
placeholder when the PR could not be created) linked to the upstream PRs
it reproduces. Records are never deleted; terminal records form the
audit trail of a branch.

## Lifecycle

    pending ──▶ merged
       │
       └──────▶ blocked   (requires github_issue)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..errors import InvalidTransitionError

PRAction = Literal["pending", "merged", "blocked"]

TERMINAL_ACTIONS = ("merged", "blocked")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_record_id() -> str:
    """Generate a unique record ID, e.g. P-20260204T221903-92929A."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    suffix = uuid4().hex[:6].upper()
    return f"P-{ts}-{suffix}"


class Repo(BaseModel):
    """An organization/repository pair."""

    model_config = ConfigDict(frozen=True)

    organization: str = Field(min_length=1)
    name: str = Field(min_length=1)

    @classmethod
    def parse(cls, full_name: str) -> "Repo":
        """Parse an ``org/name`` string."""
        organization, sep, name = full_name.strip().partition("/")
        if not sep or not organization or not name or "/" in name:
            raise ValueError(f"Expected 'org/name', got {full_name!r}")
        return cls(organization=organization, name=name)

    def __str__(self) -> str:
        return f"{self.organization}/{self.name}"


class PendingPR(BaseModel):
    """
    A mirrored pull request tracked until it is merged or blocked.

    Assignments are validated, so a record can never be observed as
    blocked without its tracking issue.
    """

    model_config = ConfigDict(validate_assignment=True)

    record_id: str = Field(default_factory=generate_record_id)
    repo: Repo
    upstream_repo: Repo
    branch: str = Field(min_length=1)
    upstream_pr_ids: List[int] = Field(min_length=1)
    upstream_authors: List[str] = Field(default_factory=list)
    pr_id: Optional[int] = None
    github_issue: Optional[int] = None
    action: PRAction = "pending"
    created_at_iso: str = Field(default_factory=_now_iso)
    updated_at_iso: str = Field(default_factory=_now_iso)

    @field_validator("upstream_authors")
    @classmethod
    def _dedupe_authors(cls, authors: List[str]) -> List[str]:
        # Authors behave as a set but keep their first-seen order
        return list(dict.fromkeys(authors))

    @model_validator(mode="after")
    def _blocked_requires_issue(self) -> "PendingPR":
        if self.action == "blocked" and self.github_issue is None:
            raise ValueError("a blocked record must reference its tracking issue")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.action in TERMINAL_ACTIONS

    @property
    def upstream_refs(self) -> str:
        """Upstream PR numbers as ``#1, #2``."""
        return ", ".join(f"#{pr_id}" for pr_id in self.upstream_pr_ids)

    def mark_merged(self) -> None:
        """Transition pending → merged."""
        self._ensure_pending("merged")
        self.action = "merged"
        self.updated_at_iso = _now_iso()

    def mark_blocked(self, issue_id: int) -> None:
        """Transition pending → blocked, recording the tracking issue."""
        self._ensure_pending("blocked")
        self.github_issue = issue_id
        self.action = "blocked"
        self.updated_at_iso = _now_iso()

    def _ensure_pending(self, target: str) -> None:
        if self.action != "pending":
            raise InvalidTransitionError(
                f"Record {self.record_id} is {self.action}; cannot move to {target}"
            )
