"""
Check Gates — Decide whether a mirrored PR may be merged.

Two independent, read-only gates:

- Required status checks from the fork branch's protection settings
- Owner approval from the ``OWNERS`` file at the branch tip

Both are side-effect free so they can be evaluated every cycle before
committing to a merge call. Lookup failures are raised, never mapped to
a default gate state.

## OWNERS format

    approvers:
      - alice
      - bob
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Set

import yaml

from ..errors import GitHubAPIError, OwnersRetrievalError, RequiredChecksLookupError
from ..github.client import GitHubClient
from ..models.pending_pr import PendingPR, Repo

logger = logging.getLogger(__name__)

OWNERS_PATH = "OWNERS"

CheckState = Literal["success", "pending", "failure"]
GateStatus = Literal["ready", "waiting", "failed"]

_SEVERITY = {"success": 0, "pending": 1, "failure": 2}

_SUCCESS_CONCLUSIONS = ("success", "neutral", "skipped")


@dataclass
class GateResult:
    """Outcome of evaluating every gate for one PR head."""

    status: GateStatus
    head_sha: str
    required_checks: List[str] = field(default_factory=list)
    missing_checks: List[str] = field(default_factory=list)
    failed_checks: List[str] = field(default_factory=list)
    approved: bool = True
    reason: Optional[str] = None

    @property
    def mergeable(self) -> bool:
        return self.status == "ready"


def required_checks(client: GitHubClient, repo: Repo, branch: str) -> Set[str]:
    """
    Get the required check names for a branch.

    Returns an empty set when protection is disabled or has no required
    status checks policy.

    Raises:
        RequiredChecksLookupError: If the branch could not be read
    """
    try:
        data = client.get_branch(repo, branch)
    except GitHubAPIError as e:
        raise RequiredChecksLookupError(
            f"failed to read branch {branch} on {repo}: {e}"
        ) from e

    protection = data.get("protection") or {}
    policy = protection.get("required_status_checks")
    if not protection.get("enabled") or not policy:
        return set()

    contexts = set(policy.get("contexts") or [])
    for check in policy.get("checks") or []:
        if check.get("context"):
            contexts.add(check["context"])
    return contexts


def _decode_envelope(envelope: Dict[str, Any]) -> str:
    content = envelope.get("content")
    encoding = (envelope.get("encoding") or "base64").lower()

    if encoding == "base64":
        raw = base64.b64decode(content.replace("\n", ""), validate=True)
    elif encoding in ("utf-8", "utf8"):
        raw = content.encode("utf-8")
    else:
        raise OwnersRetrievalError(f"unsupported OWNERS encoding: {encoding}")

    return raw.decode("utf-8")


def get_approvers(client: GitHubClient, repo: Repo, branch: str) -> List[str]:
    """
    Get the approvers listed in the OWNERS file at the branch tip.

    A missing file or any document without an ``approvers`` list yields
    an empty list.

    Raises:
        OwnersRetrievalError: If the file could not be retrieved or decoded
    """
    try:
        envelope = client.get_content(repo, OWNERS_PATH, ref=branch)
    except GitHubAPIError as e:
        if e.status_code == 404:
            logger.debug(f"[gates] No OWNERS file on {repo}@{branch}")
            return []
        raise OwnersRetrievalError(f"failed to retrieve OWNERS file: {e}") from e

    if not isinstance(envelope, dict) or not isinstance(envelope.get("content"), str):
        return []

    try:
        raw_yaml = _decode_envelope(envelope)
    except (binascii.Error, UnicodeDecodeError) as e:
        raise OwnersRetrievalError(f"failed to decode OWNERS file: {e}") from e

    try:
        owners = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        logger.warning(f"[gates] Ignoring malformed OWNERS file on {repo}@{branch}: {e}")
        return []

    if not isinstance(owners, dict) or not isinstance(owners.get("approvers"), list):
        return []

    return [a for a in owners["approvers"] if isinstance(a, str)]


def get_check_states(client: GitHubClient, repo: Repo, sha: str) -> Dict[str, CheckState]:
    """
    Collect commit statuses and check runs for a commit by name.

    When a name is reported more than once, the worst state wins.
    """
    states: Dict[str, CheckState] = {}

    def record(name: str, state: CheckState) -> None:
        current = states.get(name)
        if current is None or _SEVERITY[state] > _SEVERITY[current]:
            states[name] = state

    combined = client.get_combined_status(repo, sha) or {}
    for status in combined.get("statuses") or []:
        value = status.get("state")
        if value == "success":
            record(status["context"], "success")
        elif value == "pending":
            record(status["context"], "pending")
        else:
            record(status["context"], "failure")

    for run in client.list_check_runs(repo, sha):
        if run.get("status") != "completed":
            record(run["name"], "pending")
        elif run.get("conclusion") in _SUCCESS_CONCLUSIONS:
            record(run["name"], "success")
        else:
            record(run["name"], "failure")

    return states


def _has_owner_approval(
    client: GitHubClient,
    record: PendingPR,
    approvers: List[str],
) -> bool:
    if any(author in approvers for author in record.upstream_authors):
        return True

    # Only a reviewer's latest review counts
    latest: Dict[str, str] = {}
    for review in client.list_reviews(record.repo, record.pr_id):
        user = (review.get("user") or {}).get("login")
        if user and review.get("state") != "COMMENTED":
            latest[user] = review.get("state")

    return any(latest.get(login) == "APPROVED" for login in approvers)


def evaluate_gates(
    client: GitHubClient,
    record: PendingPR,
    head_sha: str,
    require_approval: bool = True,
) -> GateResult:
    """
    Evaluate required checks and owner approval for a PR head.

    Args:
        client: Authenticated GitHub client
        record: Pending PR with ``pr_id`` set
        head_sha: The PR head commit being evaluated
        require_approval: Whether the OWNERS approval gate applies

    Returns:
        GateResult with status ``ready``, ``waiting`` or ``failed``
    """
    required = sorted(required_checks(client, record.repo, record.branch))
    result = GateResult(status="ready", head_sha=head_sha, required_checks=required)

    if required:
        states = get_check_states(client, record.repo, head_sha)
        result.failed_checks = [c for c in required if states.get(c) == "failure"]
        result.missing_checks = [c for c in required if states.get(c) != "success"]

        if result.failed_checks:
            result.status = "failed"
            result.reason = f"required checks failed: {', '.join(result.failed_checks)}"
            return result

        if result.missing_checks:
            result.status = "waiting"
            result.reason = f"waiting on checks: {', '.join(result.missing_checks)}"
            return result

    if require_approval:
        approvers = get_approvers(client, record.repo, record.branch)
        if approvers and not _has_owner_approval(client, record, approvers):
            result.approved = False
            result.status = "waiting"
            result.reason = "waiting on approval from an OWNERS approver"

    return result
