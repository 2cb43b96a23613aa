"""
Models — Pending PR records and host operation results.
"""

from .pending_pr import TERMINAL_ACTIONS, PendingPR, PRAction, Repo
from .result import HostResult

__all__ = [
    "PendingPR",
    "PRAction",
    "Repo",
    "HostResult",
    "TERMINAL_ACTIONS",
]
