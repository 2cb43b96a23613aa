"""
Errors — Exception hierarchy shared across Magic Mirror.

Merge failures are not exceptions (see engine.merge.MergeOutcome) and
best-effort host operations return a HostResult instead of raising.
"""

from __future__ import annotations

from typing import Optional


class MagicMirrorError(Exception):
    """Base class for all Magic Mirror errors."""


class ConfigError(MagicMirrorError):
    """Configuration is missing or invalid."""


class GitHubAPIError(MagicMirrorError):
    """A GitHub API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class RequiredChecksLookupError(MagicMirrorError):
    """The branch protection settings could not be read."""


class OwnersRetrievalError(MagicMirrorError):
    """The OWNERS file could not be retrieved or decoded."""


class InvalidTransitionError(MagicMirrorError):
    """A pending PR record was moved out of a terminal state."""
