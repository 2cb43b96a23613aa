"""
Failure Reporter — Open the tracking issue that pauses a branch.

The issue documents why a sync failed and is the gate that stops further
syncs of the branch until a human closes it. This module only creates the
issue; recording ``blocked`` on the PendingPR is the caller's job, and a
failed issue creation propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..github.client import GitHubClient
from ..models.pending_pr import Repo

logger = logging.getLogger(__name__)

SAD_YODA = "![sad Yoda](https://media.giphy.com/media/3o7qDK5J5Uerg3atJ6/giphy.gif)"


@dataclass
class FailureIssue:
    """Rendered tracking issue."""

    title: str
    body: str


def build_failure_issue(
    repo: Repo,
    upstream_repo: Repo,
    branch: str,
    upstream_pr_ids: Sequence[int],
    reason: str,
    pr_id: Optional[int] = None,
    recreate_commands: Optional[Sequence[str]] = None,
    error_detail: Optional[str] = None,
) -> FailureIssue:
    """Render the tracking issue title and body."""
    title = "😿 Failed to sync the upstream PRs: " + ", ".join(
        f"#{upstream_id}" for upstream_id in upstream_pr_ids
    )

    lines = [
        f"🪞 Magic Mirror 🪞 failed to sync the following upstream pull-requests because {reason}:",
    ]
    lines.extend(f"* {upstream_repo}#{upstream_id}" for upstream_id in upstream_pr_ids)
    body = "\n".join(lines) + "\n\n"

    if pr_id is not None:
        body += f"The pull-request (#{pr_id}) can be reviewed for more information.\n\n"

    body += (
        f"Syncing is paused for the branch {branch} on {repo} until the issue is "
        "manually resolved and this issue is closed.\n"
    )

    if error_detail:
        body += f"\nSyncing error:\n```\n{error_detail}\n```\n"

    if recreate_commands:
        body += "\nCommands to recreate the issue:\n\n```\n" + "\n".join(recreate_commands) + "\n```\n"

    body += f"\n{SAD_YODA}"

    return FailureIssue(title=title, body=body)


def report_failure(
    client: GitHubClient,
    repo: Repo,
    upstream_repo: Repo,
    branch: str,
    upstream_pr_ids: Sequence[int],
    reason: str,
    pr_id: Optional[int] = None,
    assignees: Optional[List[str]] = None,
    recreate_commands: Optional[Sequence[str]] = None,
    error_detail: Optional[str] = None,
) -> int:
    """
    Create a tracking issue on the fork for a failed sync.

    Args:
        client: Authenticated GitHub client
        repo: The fork where the issue is created
        upstream_repo: Repository the PRs were synced from
        branch: Fork branch whose sync failed
        upstream_pr_ids: Upstream PR numbers that were part of the sync
        reason: Why the sync failed, phrased to follow "because"
        pr_id: Mirrored PR number, when one was created
        assignees: Users to assign, typically the upstream PR authors
        recreate_commands: Git commands to recreate the change by hand
        error_detail: Raw error text, included verbatim

    Returns:
        The created issue number

    Raises:
        GitHubAPIError: If the issue could not be created
    """
    issue = build_failure_issue(
        repo=repo,
        upstream_repo=upstream_repo,
        branch=branch,
        upstream_pr_ids=upstream_pr_ids,
        reason=reason,
        pr_id=pr_id,
        recreate_commands=recreate_commands,
        error_detail=error_detail,
    )

    data = client.create_issue(repo, issue.title, issue.body, assignees=assignees)
    issue_id = int(data["number"])

    logger.warning(
        f"[report] Opened {repo}#{issue_id}; syncing paused for {branch}",
        extra={"repo": str(repo), "branch": branch, "pr_id": pr_id},
    )
    return issue_id
