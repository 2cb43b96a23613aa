"""
Engine — Merge gating, merge execution, failure reporting, and sync cycles.
"""

from .gates import GateResult, evaluate_gates, get_approvers, get_check_states, required_checks
from .merge import MergeOutcome, attempt_merge
from .report import FailureIssue, build_failure_issue, report_failure
from .sync import CycleResult, RecordResult, evaluate_pending_pr, is_branch_paused, run_sync_cycle

__all__ = [
    "GateResult",
    "evaluate_gates",
    "get_approvers",
    "get_check_states",
    "required_checks",
    "MergeOutcome",
    "attempt_merge",
    "FailureIssue",
    "build_failure_issue",
    "report_failure",
    "CycleResult",
    "RecordResult",
    "evaluate_pending_pr",
    "is_branch_paused",
    "run_sync_cycle",
]
