"""
Host Result Model — Outcome of a best-effort GitHub operation.

Comments and PR description updates never abort a larger workflow, so
their failures are returned as values for the caller to log or ignore.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class HostResult(BaseModel):
    """Result of a best-effort host operation."""

    status: Literal["ok", "skipped", "failed"]
    error: Optional[str] = None
    status_code: Optional[int] = None
    skip_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        """True unless the operation failed; a skip is not a failure."""
        return self.status != "failed"

    @classmethod
    def ok(cls) -> "HostResult":
        return cls(status="ok")

    @classmethod
    def skipped(cls, reason: str) -> "HostResult":
        return cls(status="skipped", skip_reason=reason)

    @classmethod
    def failed(cls, error: str, status_code: Optional[int] = None) -> "HostResult":
        return cls(status="failed", error=error, status_code=status_code)
