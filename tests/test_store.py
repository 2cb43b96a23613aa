"""
Tests for the pending PR stores.
"""

import json

import pytest

from magic_mirror.models.pending_pr import Repo
from magic_mirror.persistence.store import InMemoryStore, JsonFileStore


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "state" / "pending_prs.json")


class TestStoreContract:

    def test_empty(self, any_store, fork):
        assert any_store.get(fork, "main") is None
        assert any_store.list_pending() == []

    def test_put_then_get(self, any_store, make_record, fork):
        record = make_record()
        any_store.put(record)
        assert any_store.get(fork, "main") == record

    def test_put_replaces_same_record(self, any_store, make_record, fork):
        record = make_record()
        any_store.put(record)
        record.mark_blocked(42)
        any_store.put(record)

        assert len(any_store.list_records()) == 1
        stored = any_store.get(fork, "main")
        assert stored.action == "blocked"
        assert stored.github_issue == 42

    def test_history_is_kept(self, any_store, make_record, fork):
        first = make_record(action="blocked", github_issue=42)
        second = make_record(upstream_pr_ids=[103])
        any_store.put(first)
        any_store.put(second)

        assert any_store.get(fork, "main").record_id == second.record_id
        assert len(any_store.list_records(fork, "main")) == 2
        assert [r.record_id for r in any_store.list_blocked(fork, "main")] == [first.record_id]
        assert [r.record_id for r in any_store.list_pending()] == [second.record_id]

    def test_keyed_by_repo_and_branch(self, any_store, make_record, fork):
        other = Repo(organization="fork-org", name="gadgets")
        any_store.put(make_record(branch="main"))
        any_store.put(make_record(branch="release-2.5"))
        any_store.put(make_record(repo=other))

        assert len(any_store.list_records(fork)) == 2
        assert len(any_store.list_records(fork, "release-2.5")) == 1
        assert any_store.get(other, "main").repo == other
        assert any_store.get(fork, "release-2.6") is None

    def test_returns_copies(self, any_store, make_record, fork):
        any_store.put(make_record())
        any_store.get(fork, "main").mark_merged()
        assert any_store.get(fork, "main").action == "pending"


class TestJsonFileStore:

    def test_writes_json_document(self, tmp_path, make_record):
        path = tmp_path / "pending_prs.json"
        store = JsonFileStore(path)
        store.put(make_record(pr_id=None))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["schema_version"] == 1
        assert data["records"][0]["repo"] == {"organization": "fork-org", "name": "widgets"}
        assert data["records"][0]["pr_id"] is None
        assert not path.with_suffix(".tmp").exists()

    def test_survives_reopen(self, tmp_path, make_record, fork):
        path = tmp_path / "pending_prs.json"
        record = make_record()
        JsonFileStore(path).put(record)
        assert JsonFileStore(path).get(fork, "main") == record
