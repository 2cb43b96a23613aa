"""
Sync Cycle — One evaluation pass over every pending PR.

Each pending record goes through:
1. Pause check (an open tracking issue on the branch halts it)
2. PR lookup (missing, already merged, or closed)
3. Gate evaluation against the observed head
4. A single merge attempt pinned to that head
5. On failure: tracking issue, then ``blocked`` persisted on the record

Every path either merges, waits for the next cycle, or leaves a visible
tracking issue. Lookup errors leave the record pending and are reported
in the CycleResult.

## Usage

    from magic_mirror.engine.sync import run_sync_cycle

    result = run_sync_cycle(client, store, require_approval=True)
    print(f"merged={result.merged_count} blocked={result.blocked_count}")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Sequence, Tuple
from uuid import uuid4

from ..errors import MagicMirrorError
from ..github.client import GitHubClient
from ..github.operations import add_comment
from ..models.pending_pr import PendingPR, Repo
from ..persistence.audit import AuditWriter
from ..persistence.store import PendingPRStore
from .gates import evaluate_gates
from .merge import attempt_merge
from .report import report_failure

logger = logging.getLogger(__name__)

RecordOutcome = Literal["merged", "blocked", "waiting", "ready", "paused", "error"]


@dataclass
class RecordResult:
    """What happened to one pending record during a cycle."""

    record_id: str
    repo: str
    branch: str
    pr_id: Optional[int]
    outcome: RecordOutcome
    detail: Optional[str] = None
    github_issue: Optional[int] = None


@dataclass
class CycleResult:
    """Result of a sync cycle."""

    cycle_id: str
    started_at: str
    ended_at: Optional[str] = None
    duration_ms: int = 0
    dry_run: bool = False
    records: List[RecordResult] = field(default_factory=list)

    def _count(self, outcome: str) -> int:
        return sum(1 for r in self.records if r.outcome == outcome)

    @property
    def merged_count(self) -> int:
        return self._count("merged")

    @property
    def blocked_count(self) -> int:
        return self._count("blocked")

    @property
    def errors(self) -> List[str]:
        return [
            f"{r.repo}@{r.branch} ({r.record_id}): {r.detail}"
            for r in self.records
            if r.outcome == "error"
        ]


def generate_cycle_id() -> str:
    """Generate a unique cycle ID."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    suffix = uuid4().hex[:6].upper()
    return f"C-{ts}-{suffix}"


def is_branch_paused(
    client: GitHubClient,
    store: PendingPRStore,
    repo: Repo,
    branch: str,
) -> Optional[int]:
    """
    Find an open tracking issue pausing a branch.

    Only the most recently blocked record is checked. A record can only
    be blocked while its branch is not paused, so every older tracking
    issue had already been closed by then.

    Returns:
        The open issue number, or None when syncing may proceed
    """
    blocked = store.list_blocked(repo, branch)
    if not blocked:
        return None

    latest = max(blocked, key=lambda r: r.updated_at_iso)
    issue = client.get_issue(repo, latest.github_issue)
    if issue.get("state") != "closed":
        return latest.github_issue
    return None


def block_pending_pr(
    client: GitHubClient,
    store: PendingPRStore,
    record: PendingPR,
    reason: str,
    error_detail: Optional[str] = None,
    recreate_commands: Optional[Sequence[str]] = None,
) -> int:
    """
    Report a failed sync and persist the record as blocked.

    If the issue cannot be created the error propagates and the record
    stays pending, so the next cycle tries again.
    """
    issue_id = report_failure(
        client,
        repo=record.repo,
        upstream_repo=record.upstream_repo,
        branch=record.branch,
        upstream_pr_ids=record.upstream_pr_ids,
        reason=reason,
        pr_id=record.pr_id,
        assignees=record.upstream_authors,
        recreate_commands=recreate_commands,
        error_detail=error_detail,
    )

    record.mark_blocked(issue_id)
    store.put(record)

    if record.pr_id is not None:
        comment = add_comment(
            client,
            record.repo,
            record.pr_id,
            f"Syncing is paused for the branch {record.branch}. See #{issue_id} for details.",
        )
        if not comment.succeeded:
            logger.warning(f"[sync] Couldn't link #{issue_id} from #{record.pr_id}: {comment.error}")

    return issue_id


def evaluate_pending_pr(
    client: GitHubClient,
    store: PendingPRStore,
    record: PendingPR,
    require_approval: bool = True,
    dry_run: bool = False,
) -> RecordResult:
    """
    Drive one pending record as far as it can go this cycle.

    Args:
        client: Authenticated GitHub client
        store: Store the record belongs to
        record: A record in the ``pending`` state
        require_approval: Whether the OWNERS approval gate applies
        dry_run: Evaluate without merging, reporting or writing

    Returns:
        RecordResult for the record

    Raises:
        MagicMirrorError: On lookup or reporting failures
    """
    log_extra = {"repo": str(record.repo), "branch": record.branch, "pr_id": record.pr_id}

    def result(outcome: RecordOutcome, detail: Optional[str] = None) -> RecordResult:
        return RecordResult(
            record_id=record.record_id,
            repo=str(record.repo),
            branch=record.branch,
            pr_id=record.pr_id,
            outcome=outcome,
            detail=detail,
            github_issue=record.github_issue,
        )

    def block(reason: str, error_detail: Optional[str] = None) -> RecordResult:
        if dry_run:
            return result("blocked", f"would block: {reason}")
        block_pending_pr(client, store, record, reason, error_detail=error_detail)
        return result("blocked", reason)

    if record.pr_id is None:
        return block("the pull-request could not be created")

    pull = client.get_pull(record.repo, record.pr_id)

    if pull.get("merged"):
        logger.info(f"[sync] {record.repo}#{record.pr_id} was merged manually", extra=log_extra)
        if not dry_run:
            record.mark_merged()
            store.put(record)
        return result("merged", "merged outside of Magic Mirror")

    if pull.get("state") == "closed":
        return block(f"the pull-request (#{record.pr_id}) was closed without being merged")

    head_sha = pull["head"]["sha"]
    gate = evaluate_gates(client, record, head_sha, require_approval=require_approval)

    if gate.status == "waiting":
        logger.info(f"[sync] {record.repo}#{record.pr_id}: {gate.reason}", extra=log_extra)
        return result("waiting", gate.reason)

    if gate.status == "failed":
        return block(f"the pull-request (#{record.pr_id}) {gate.reason}")

    if dry_run:
        return result("ready", f"would merge at {head_sha}")

    outcome = attempt_merge(client, record, head_sha)
    if outcome.merged:
        record.mark_merged()
        store.put(record)
        return result("merged", outcome.merge_sha)

    return block(
        f"the pull-request (#{record.pr_id}) couldn't be merged",
        error_detail=outcome.error,
    )


def run_sync_cycle(
    client: GitHubClient,
    store: PendingPRStore,
    require_approval: bool = True,
    dry_run: bool = False,
    audit_writer: Optional[AuditWriter] = None,
) -> CycleResult:
    """
    Evaluate every pending record in the store once.

    Records are processed sequentially; a failure on one branch does not
    stop the others.
    """
    start_time = time.time()
    cycle_id = generate_cycle_id()
    result = CycleResult(
        cycle_id=cycle_id,
        started_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        dry_run=dry_run,
    )

    pending = store.list_pending()
    logger.info(
        f"[sync] Starting cycle {cycle_id}: {len(pending)} pending record(s)"
        + (" (dry run)" if dry_run else ""),
        extra={"cycle_id": cycle_id},
    )
    if audit_writer:
        audit_writer.emit("cycle_start", cycle_id=cycle_id, details={"pending": len(pending), "dry_run": dry_run})

    paused: Dict[Tuple[str, str], Optional[int]] = {}

    for record in pending:
        key = (str(record.repo), record.branch)
        try:
            if key not in paused:
                paused[key] = is_branch_paused(client, store, record.repo, record.branch)

            if paused[key] is not None:
                logger.info(f"[sync] {key[0]}@{key[1]} is paused by #{paused[key]}")
                record_result = RecordResult(
                    record_id=record.record_id,
                    repo=key[0],
                    branch=record.branch,
                    pr_id=record.pr_id,
                    outcome="paused",
                    detail=f"paused by #{paused[key]}",
                    github_issue=paused[key],
                )
            else:
                record_result = evaluate_pending_pr(
                    client,
                    store,
                    record,
                    require_approval=require_approval,
                    dry_run=dry_run,
                )
        except MagicMirrorError as e:
            logger.error(
                f"[sync] {key[0]}@{key[1]} ({record.record_id}) failed: {e}",
                extra={"repo": key[0], "branch": record.branch, "pr_id": record.pr_id},
            )
            record_result = RecordResult(
                record_id=record.record_id,
                repo=key[0],
                branch=record.branch,
                pr_id=record.pr_id,
                outcome="error",
                detail=str(e),
            )

        result.records.append(record_result)
        if record_result.outcome == "blocked" and not dry_run:
            paused[key] = record_result.github_issue

        if audit_writer and record_result.outcome in ("merged", "blocked", "paused", "error"):
            audit_writer.emit(
                {
                    "merged": "pr_merged",
                    "blocked": "pr_blocked",
                    "paused": "branch_paused",
                    "error": "record_error",
                }[record_result.outcome],
                cycle_id=cycle_id,
                level="warning" if record_result.outcome in ("blocked", "error") else "info",
                record=record,
                details={"detail": record_result.detail, "github_issue": record_result.github_issue},
            )

    result.duration_ms = int((time.time() - start_time) * 1000)
    result.ended_at = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    logger.info(
        f"[sync] Cycle {cycle_id} done in {result.duration_ms}ms: "
        f"merged={result.merged_count} blocked={result.blocked_count} errors={len(result.errors)}",
        extra={"cycle_id": cycle_id},
    )
    if audit_writer:
        audit_writer.emit_cycle_end(
            cycle_id=cycle_id,
            duration_ms=result.duration_ms,
            merged=result.merged_count,
            blocked=result.blocked_count,
            errors=len(result.errors),
        )

    return result
