"""
Pending PR Store — Durable storage for PendingPR records.

Records are keyed by ``(organization, name, branch)``. Each key holds the
branch's records in creation order; the last one is the current record.
Records are replaced by ``record_id`` and never deleted.

Writes are last-write-wins. Callers must not evaluate the same
``(repo, branch)`` concurrently.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models.pending_pr import PendingPR, Repo

logger = logging.getLogger(__name__)

StoreKey = Tuple[str, str, str]

SCHEMA_VERSION = 1


def store_key(repo: Repo, branch: str) -> StoreKey:
    return (repo.organization, repo.name, branch)


class PendingPRStore(ABC):
    """Read/write contract for PendingPR records."""

    @abstractmethod
    def _load(self) -> Dict[StoreKey, List[PendingPR]]:
        pass

    @abstractmethod
    def _save(self, records: Dict[StoreKey, List[PendingPR]]) -> None:
        pass

    def get(self, repo: Repo, branch: str) -> Optional[PendingPR]:
        """Get the most recent record for a branch."""
        records = self._load().get(store_key(repo, branch))
        if not records:
            return None
        return records[-1].model_copy(deep=True)

    def put(self, record: PendingPR) -> None:
        """Insert a record or replace the one with the same record_id."""
        records = self._load()
        branch_records = records.setdefault(store_key(record.repo, record.branch), [])

        stored = record.model_copy(deep=True)
        for i, existing in enumerate(branch_records):
            if existing.record_id == record.record_id:
                branch_records[i] = stored
                break
        else:
            branch_records.append(stored)

        self._save(records)
        logger.debug(
            f"[store] Saved {record.record_id} ({record.action}) for {record.repo}@{record.branch}"
        )

    def list_records(
        self,
        repo: Optional[Repo] = None,
        branch: Optional[str] = None,
    ) -> List[PendingPR]:
        """List records, optionally filtered by repo and branch."""
        result = []
        for (org, name, key_branch), branch_records in self._load().items():
            if repo is not None and (org, name) != (repo.organization, repo.name):
                continue
            if branch is not None and key_branch != branch:
                continue
            result.extend(r.model_copy(deep=True) for r in branch_records)
        return result

    def list_pending(self) -> List[PendingPR]:
        return [r for r in self.list_records() if r.action == "pending"]

    def list_blocked(self, repo: Repo, branch: str) -> List[PendingPR]:
        return [r for r in self.list_records(repo, branch) if r.action == "blocked"]


class InMemoryStore(PendingPRStore):
    """Dict-backed store for tests and dry runs."""

    def __init__(self, records: Optional[List[PendingPR]] = None):
        self._records: Dict[StoreKey, List[PendingPR]] = {}
        for record in records or []:
            self.put(record)

    def _load(self) -> Dict[StoreKey, List[PendingPR]]:
        return self._records

    def _save(self, records: Dict[StoreKey, List[PendingPR]]) -> None:
        self._records = records


class JsonFileStore(PendingPRStore):
    """
    JSON file store.

    Uses atomic write (write to temp, then rename) to prevent corruption.
    A missing file is an empty store.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[StoreKey, List[PendingPR]]:
        if not self.path.exists():
            return {}

        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        records: Dict[StoreKey, List[PendingPR]] = {}
        for raw in data.get("records", []):
            record = PendingPR(**raw)
            records.setdefault(store_key(record.repo, record.branch), []).append(record)
        return records

    def _save(self, records: Dict[StoreKey, List[PendingPR]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "schema_version": SCHEMA_VERSION,
            "records": [
                r.model_dump(mode="json")
                for branch_records in records.values()
                for r in branch_records
            ],
        }

        temp_path = self.path.with_suffix(".tmp")
        with temp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=4)
            f.write("\n")

        temp_path.replace(self.path)
