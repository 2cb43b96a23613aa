"""
Logging Configuration — Sync-aware logging for cycles and records.

Log lines carry the record they concern. Engine code passes
``extra={"repo": ..., "branch": ..., "pr_id": ...}`` (and ``cycle_id``
for cycle-level lines); the formatters render that context:

    JSON:  {"ts": ..., "level": ..., "repo": "org/name", "branch": "main", "pr_id": 7, ...}
    text:  12:34:56 WARNING [merge          ] org/name@main#7 merge failed: HTTP 409: ...

The GitHub token is masked in every message once registered with the
redactor returned by ``setup_logging``.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: json under GitHub Actions, text otherwise)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Set, TextIO

CONTEXT_FIELDS = ("cycle_id", "repo", "branch", "pr_id")


def mask_secret(secret: str) -> str:
    """Keep only a short prefix of a secret, enough to tell tokens apart."""
    return secret[:4] + "…"


def record_context(record: logging.LogRecord) -> str:
    """
    Render ``repo@branch#pr_id`` from a record's extras.

    Missing parts are left out; a record without ``repo`` has no context.
    """
    repo = getattr(record, "repo", None)
    if not repo:
        return ""
    context = str(repo)
    branch = getattr(record, "branch", None)
    if branch:
        context += f"@{branch}"
    pr_id = getattr(record, "pr_id", None)
    if pr_id is not None:
        context += f"#{pr_id}"
    return context


class SecretRedactor(logging.Filter):
    """Handler filter that masks registered secrets in log messages."""

    def __init__(self, secrets: Iterable[Optional[str]] = ()):
        super().__init__()
        self._secrets: Set[str] = set()
        for secret in secrets:
            self.add(secret)

    def add(self, secret: Optional[str]) -> None:
        if secret:
            self._secrets.add(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        for secret in self._secrets:
            if secret in message:
                message = message.replace(secret, mask_secret(secret))
        record.msg = message
        record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the record's sync context as keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(
            (name, getattr(record, name)) for name in CONTEXT_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    Terminal formatter.

    Output format:
    12:34:56 INFO    [sync           ] org/name@main#7 Message
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        level = f"{record.levelname:7}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        module = record.name.split(".")[-1][:15]
        context = record_context(record)
        msg = record.getMessage()
        if context:
            msg = f"{context} {msg}"
        if record.exc_info:
            msg = f"{msg}\n{self.formatException(record.exc_info)}"

        return f"{time_str} {level} [{module:15}] {msg}"


def _default_format() -> str:
    if os.environ.get("GITHUB_ACTIONS") == "true":
        return "json"
    return "text"


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    stream: Optional[TextIO] = None,
) -> SecretRedactor:
    """
    Configure root logging for the CLI.

    Args:
        level: Log level. Defaults to LOG_LEVEL or INFO.
        format_type: ``json`` or ``text``. Defaults to LOG_FORMAT, then
                     to json under GitHub Actions.
        stream: Output stream (default: stderr)

    Returns:
        The redactor installed on the handler; register secrets with ``add``.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT") or _default_format()).lower()
    numeric_level = getattr(logging, log_level, logging.INFO)
    stream = stream or sys.stderr

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = HumanFormatter(color=stream.isatty())

    redactor = SecretRedactor()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)
    handler.addFilter(redactor)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return redactor
