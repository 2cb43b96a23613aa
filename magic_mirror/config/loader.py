"""
Config Loader — Load configuration from a master key or individual env vars.

Supports two modes:
1. Master JSON key: a single MAGIC_MIRROR_CONFIG env var
2. Individual keys: separate env vars (fallback)

## Usage

    # Option 1: Master config (one CI secret)
    export MAGIC_MIRROR_CONFIG='{"github_token": "ghs_xxx", "require_approval": false}'

    # Option 2: Individual keys
    export GITHUB_TOKEN="ghs_xxx"
    export MAGIC_MIRROR_REQUIRE_APPROVAL=false

Values in the master config win over individual variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

from ..errors import ConfigError
from ..github.client import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from ..logging_config import mask_secret

logger = logging.getLogger(__name__)

MASTER_CONFIG_VAR = "MAGIC_MIRROR_CONFIG"

# field name → environment variable
ENV_VARS = {
    "github_token": "GITHUB_TOKEN",
    "github_api_url": "GITHUB_API_URL",
    "state_file": "MAGIC_MIRROR_STATE_FILE",
    "audit_file": "MAGIC_MIRROR_AUDIT_FILE",
    "require_approval": "MAGIC_MIRROR_REQUIRE_APPROVAL",
    "timeout_seconds": "GITHUB_TIMEOUT_SECONDS",
}

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


@dataclass
class MagicMirrorConfig:
    """Runtime configuration."""

    github_token: Optional[str] = None
    github_api_url: str = DEFAULT_API_URL
    state_file: str = "state/pending_prs.json"
    audit_file: str = "audit/ledger.ndjson"
    require_approval: bool = True
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MagicMirrorConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

        values = {k: v for k, v in data.items() if k in known and v not in (None, "")}
        if "require_approval" in values:
            values["require_approval"] = _parse_bool("require_approval", values["require_approval"])
        if "timeout_seconds" in values:
            try:
                values["timeout_seconds"] = float(values["timeout_seconds"])
            except (TypeError, ValueError) as e:
                raise ConfigError(
                    f"timeout_seconds must be a number, got {values['timeout_seconds']!r}"
                ) from e
        return cls(**values)

    @classmethod
    def from_env(cls) -> "MagicMirrorConfig":
        """Load config from the environment, master key first."""
        data: Dict[str, Any] = {
            name: os.environ.get(var) for name, var in ENV_VARS.items()
        }

        master = os.environ.get(MASTER_CONFIG_VAR)
        if master:
            try:
                parsed = json.loads(master)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{MASTER_CONFIG_VAR} is not valid JSON: {e}") from e
            if not isinstance(parsed, dict):
                raise ConfigError(f"{MASTER_CONFIG_VAR} must be a JSON object")
            logger.debug(f"Loaded {len(parsed)} key(s) from {MASTER_CONFIG_VAR}")
            data.update(parsed)

        return cls.from_dict(data)

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        problems = []
        if not self.github_token:
            problems.append(
                f"{ENV_VARS['github_token']} is not set "
                "(an installation or personal access token is required)"
            )
        if not self.github_api_url.startswith(("http://", "https://")):
            problems.append(f"{ENV_VARS['github_api_url']} must be an http(s) URL")
        if self.timeout_seconds <= 0:
            problems.append(f"{ENV_VARS['timeout_seconds']} must be positive")
        return problems

    def require_valid(self) -> "MagicMirrorConfig":
        problems = self.validate()
        if problems:
            raise ConfigError("; ".join(problems))
        return self

    def to_safe_dict(self) -> Dict[str, Any]:
        """Config as a dict with the token masked, for display."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.github_token:
            data["github_token"] = mask_secret(self.github_token)
        return data
