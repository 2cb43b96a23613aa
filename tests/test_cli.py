"""
Tests for the click CLI.
"""

import json
import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from magic_mirror.main import cli
from magic_mirror.persistence.store import JsonFileStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def env(tmp_path):
    return {
        "GITHUB_TOKEN": "ghs_test",
        "MAGIC_MIRROR_STATE_FILE": str(tmp_path / "pending_prs.json"),
        "MAGIC_MIRROR_AUDIT_FILE": str(tmp_path / "ledger.ndjson"),
    }


class TestStatus:

    def test_empty(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "No records." in result.output

    def test_lists_records(self, runner, env, make_record):
        store = JsonFileStore(env["MAGIC_MIRROR_STATE_FILE"])
        store.put(make_record())
        store.put(make_record(branch="release-2.5", action="blocked", github_issue=42))

        with patch.dict(os.environ, env, clear=True):
            pending = runner.invoke(cli, ["status"])
            everything = runner.invoke(cli, ["status", "--all", "--json"])

        assert "fork-org/widgets@main #7 upstream #101, #102" in pending.output
        assert "release-2.5" not in pending.output
        records = json.loads(everything.output)
        assert {r["action"] for r in records} == {"pending", "blocked"}


class TestSync:

    def test_runs_cycle(self, runner, env, make_record, client):
        JsonFileStore(env["MAGIC_MIRROR_STATE_FILE"]).put(make_record())

        with patch.dict(os.environ, env, clear=True), \
                patch("magic_mirror.cli.sync._build_client", return_value=client):
            result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0, result.output
        assert "merged=1" in result.output
        assert JsonFileStore(env["MAGIC_MIRROR_STATE_FILE"]).list_pending() == []

    def test_requires_token(self, runner, env):
        env = dict(env)
        del env["GITHUB_TOKEN"]
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ["sync"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output


class TestInspect:

    def test_required_checks(self, runner, env, client):
        from conftest import branch_payload

        client.get_branch.return_value = branch_payload(contexts=["ci/test", "ci/build"])
        with patch.dict(os.environ, env, clear=True), \
                patch("magic_mirror.cli.sync._build_client", return_value=client):
            result = runner.invoke(cli, ["required-checks", "fork-org/widgets", "main"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["ci/build", "ci/test"]

    def test_bad_repo(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ["owners", "widgets", "main"])
        assert result.exit_code == 2


class TestCheckConfig:

    def test_ok(self, runner, env):
        with patch.dict(os.environ, env, clear=True):
            result = runner.invoke(cli, ["check-config", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["valid"] is True

    def test_missing_token(self, runner):
        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ["check-config"])
        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.output
