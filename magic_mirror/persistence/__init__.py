"""
Persistence — Pending PR store and audit ledger.
"""

from .audit import AuditWriter
from .store import InMemoryStore, JsonFileStore, PendingPRStore

__all__ = [
    "AuditWriter",
    "PendingPRStore",
    "JsonFileStore",
    "InMemoryStore",
]
