"""
Merge Executor — Rebase-merge a mirrored PR pinned to its observed head.

The merge request carries the head SHA seen during gate evaluation, so a
push that lands in between makes GitHub reject the merge instead of
merging content nobody evaluated. Failures are never retried here; the
caller escalates them to the failure reporter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import GitHubAPIError
from ..github.client import GitHubClient
from ..models.pending_pr import PendingPR

logger = logging.getLogger(__name__)

MERGE_METHOD = "rebase"


@dataclass
class MergeOutcome:
    """Result of a single merge attempt."""

    merged: bool
    head_sha: str
    error: Optional[str] = None
    status_code: Optional[int] = None
    merge_sha: Optional[str] = None


def attempt_merge(
    client: GitHubClient,
    record: PendingPR,
    expected_head: str,
) -> MergeOutcome:
    """
    Merge the record's PR if its head is still ``expected_head``.

    The caller must already have checked the gates; they are not
    re-evaluated here.

    Args:
        client: Authenticated GitHub client
        record: Pending PR with ``pr_id`` set
        expected_head: Head commit observed when the gates were evaluated

    Returns:
        MergeOutcome; ``error`` holds GitHub's message on failure
    """
    if record.pr_id is None:
        raise ValueError(f"Record {record.record_id} has no pull request to merge")

    logger.info(
        f"[merge] Merging {record.repo}#{record.pr_id} at {expected_head[:12]}",
        extra={"repo": str(record.repo), "branch": record.branch, "pr_id": record.pr_id},
    )

    try:
        data = client.merge_pull(
            record.repo, record.pr_id, sha=expected_head, merge_method=MERGE_METHOD
        )
    except GitHubAPIError as e:
        logger.warning(f"[merge] {record.repo}#{record.pr_id} couldn't be merged: {e}")
        return MergeOutcome(
            merged=False,
            head_sha=expected_head,
            error=str(e),
            status_code=e.status_code,
        )

    data = data or {}
    if data.get("merged") is False:
        message = data.get("message") or "GitHub reported the pull request as not merged"
        logger.warning(f"[merge] {record.repo}#{record.pr_id} couldn't be merged: {message}")
        return MergeOutcome(merged=False, head_sha=expected_head, error=message)

    logger.info(f"[merge] ✓ Merged {record.repo}#{record.pr_id}")
    return MergeOutcome(merged=True, head_sha=expected_head, merge_sha=data.get("sha"))
