"""
Tests for the configuration loader.
"""

import json
import os
from unittest.mock import patch

import pytest

from magic_mirror.config.loader import MagicMirrorConfig
from magic_mirror.errors import ConfigError


class TestFromEnv:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = MagicMirrorConfig.from_env()

        assert config.github_token is None
        assert config.github_api_url == "https://api.github.com"
        assert config.state_file == "state/pending_prs.json"
        assert config.require_approval is True
        assert config.timeout_seconds == 15

    def test_individual_vars(self):
        with patch.dict(os.environ, {
            "GITHUB_TOKEN": "ghs_abc",
            "GITHUB_API_URL": "https://github.example.com/api/v3",
            "MAGIC_MIRROR_REQUIRE_APPROVAL": "false",
            "GITHUB_TIMEOUT_SECONDS": "30",
        }, clear=True):
            config = MagicMirrorConfig.from_env()

        assert config.github_token == "ghs_abc"
        assert config.github_api_url == "https://github.example.com/api/v3"
        assert config.require_approval is False
        assert config.timeout_seconds == 30.0

    def test_master_config_wins(self):
        with patch.dict(os.environ, {
            "GITHUB_TOKEN": "ghs_individual",
            "MAGIC_MIRROR_CONFIG": json.dumps({
                "github_token": "ghs_master",
                "state_file": "/data/pending.json",
            }),
        }, clear=True):
            config = MagicMirrorConfig.from_env()

        assert config.github_token == "ghs_master"
        assert config.state_file == "/data/pending.json"

    def test_invalid_master_json(self):
        with patch.dict(os.environ, {"MAGIC_MIRROR_CONFIG": "{not json"}, clear=True):
            with pytest.raises(ConfigError):
                MagicMirrorConfig.from_env()

    def test_invalid_bool(self):
        with patch.dict(os.environ, {"MAGIC_MIRROR_REQUIRE_APPROVAL": "maybe"}, clear=True):
            with pytest.raises(ConfigError):
                MagicMirrorConfig.from_env()


class TestValidate:

    def test_missing_token(self):
        problems = MagicMirrorConfig().validate()
        assert len(problems) == 1
        assert "GITHUB_TOKEN" in problems[0]

    def test_require_valid(self):
        with pytest.raises(ConfigError):
            MagicMirrorConfig().require_valid()
        config = MagicMirrorConfig(github_token="ghs_abc")
        assert config.require_valid() is config

    def test_bad_url_and_timeout(self):
        problems = MagicMirrorConfig(
            github_token="ghs_abc", github_api_url="api.github.com", timeout_seconds=0
        ).validate()
        assert len(problems) == 2

    def test_safe_dict_masks_token(self):
        data = MagicMirrorConfig(github_token="ghs_supersecret").to_safe_dict()
        assert "supersecret" not in data["github_token"]
