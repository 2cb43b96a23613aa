"""
Best-effort PR Operations — Comments and PR description updates.

These never raise for host failures. They return a HostResult so a
failed comment or description update cannot abort a sync.
"""

from __future__ import annotations

import logging
from typing import List

from ..errors import GitHubAPIError
from ..models.pending_pr import Repo
from ..models.result import HostResult
from .client import GitHubClient

logger = logging.getLogger(__name__)


def add_comment(
    client: GitHubClient,
    repo: Repo,
    issue_id: int,
    message: str,
) -> HostResult:
    """
    Comment on an issue or pull request.

    Args:
        client: Authenticated GitHub client
        repo: Repository holding the issue
        issue_id: Issue or PR number
        message: Comment body

    Returns:
        HostResult describing the outcome
    """
    try:
        client.create_comment(repo, issue_id, message)
    except GitHubAPIError as e:
        logger.warning(f"[github] Failed to comment on {repo}#{issue_id}: {e}")
        return HostResult.failed(str(e), status_code=e.status_code)

    return HostResult.ok()


def update_pr(
    client: GitHubClient,
    repo: Repo,
    pr_id: int,
    assignees: List[str],
    message: str,
) -> HostResult:
    """
    Append ``message`` to a PR description and set its assignees.

    Assignees already on the PR are kept; ``assignees`` only applies when
    the PR has none. A PR without a description is left untouched.

    Args:
        client: Authenticated GitHub client
        repo: Repository holding the PR
        pr_id: Pull request number
        assignees: Default assignees when the PR has none
        message: Text appended to the description

    Returns:
        HostResult describing the outcome (skipped when there was no body)
    """
    try:
        pull = client.get_pull(repo, pr_id)
    except GitHubAPIError as e:
        logger.warning(f"[github] Failed to get {repo}#{pr_id}: {e}")
        return HostResult.failed(str(e), status_code=e.status_code)

    body = pull.get("body")
    if not body:
        return HostResult.skipped("pull request has no description")

    existing = [a["login"] for a in pull.get("assignees") or [] if a.get("login")]
    if existing:
        assignees = existing

    try:
        client.update_pull(repo, pr_id, body=f"{body}\n\n{message}", assignees=assignees)
    except GitHubAPIError as e:
        logger.warning(f"[github] Failed to update {repo}#{pr_id}: {e}")
        return HostResult.failed(str(e), status_code=e.status_code)

    return HostResult.ok()
