"""
Audit Ledger — Append-only NDJSON audit log of sync decisions.

Each line is one JSON object (newline-delimited JSON).
Events are never edited, only appended.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from ..models.pending_pr import PendingPR


class AuditWriter:
    """
    Append-only NDJSON audit ledger writer.

    Usage:
        audit = AuditWriter(Path("audit/ledger.ndjson"))
        audit.emit("cycle_start", cycle_id="C-123")
    """

    def __init__(self, path: Path):
        self.path = path
        self._ensure_exists()

    def _ensure_exists(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()

    def emit(
        self,
        event_type: str,
        cycle_id: str,
        level: str = "info",
        record: Optional[PendingPR] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Emit an audit event.

        Args:
            event_type: Type of event (cycle_start, pr_merged, pr_blocked, etc.)
            cycle_id: Identifier of the sync cycle
            level: Log level (info, warning, error)
            record: PendingPR the event is about, if any
            details: Additional event details

        Returns:
            Generated event_id
        """
        event_id = f"E-{uuid4().hex[:8].upper()}"
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        entry: Dict[str, Any] = {
            "ts_iso": now,
            "event_id": event_id,
            "cycle_id": cycle_id,
            "level": level,
            "type": event_type,
        }

        if record is not None:
            entry["record_id"] = record.record_id
            entry["repo"] = str(record.repo)
            entry["branch"] = record.branch
            entry["pr_id"] = record.pr_id
            entry["action"] = record.action
        if details is not None:
            entry["details"] = details

        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")

        return event_id

    def emit_cycle_end(
        self,
        cycle_id: str,
        duration_ms: int,
        merged: int,
        blocked: int,
        errors: int,
    ) -> str:
        """Emit a cycle_end event."""
        return self.emit(
            event_type="cycle_end",
            cycle_id=cycle_id,
            level="error" if errors else "info",
            details={
                "duration_ms": duration_ms,
                "merged": merged,
                "blocked": blocked,
                "errors": errors,
            },
        )
