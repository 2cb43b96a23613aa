"""
Tests for best-effort PR operations (comments and description updates).
"""

from conftest import pull_payload
from magic_mirror.errors import GitHubAPIError
from magic_mirror.github.operations import add_comment, update_pr


class TestAddComment:

    def test_ok(self, client, fork):
        result = add_comment(client, fork, 7, "Merged by Magic Mirror")
        assert result.status == "ok"
        client.create_comment.assert_called_once_with(fork, 7, "Merged by Magic Mirror")

    def test_failure_is_returned_not_raised(self, client, fork):
        client.create_comment.side_effect = GitHubAPIError("Forbidden", status_code=403)
        result = add_comment(client, fork, 7, "hello")
        assert result.status == "failed"
        assert result.status_code == 403
        assert "Forbidden" in result.error


class TestUpdatePR:

    def test_appends_message(self, client, fork):
        client.get_pull.return_value = pull_payload(body="Original description")

        result = update_pr(client, fork, 7, ["bob"], "Upstream #103 was added")

        assert result.status == "ok"
        client.update_pull.assert_called_once_with(
            fork, 7,
            body="Original description\n\nUpstream #103 was added",
            assignees=["bob"],
        )

    def test_keeps_existing_assignees(self, client, fork):
        client.get_pull.return_value = pull_payload(body="desc", assignees=["alice"])

        update_pr(client, fork, 7, ["bob"], "more")

        assert client.update_pull.call_args.kwargs["assignees"] == ["alice"]

    def test_no_body_is_a_no_op(self, client, fork):
        client.get_pull.return_value = pull_payload(body=None)

        result = update_pr(client, fork, 7, ["bob"], "more")

        assert result.status == "skipped"
        assert result.succeeded
        assert client.update_pull.call_count == 0

    def test_empty_body_is_a_no_op(self, client, fork):
        client.get_pull.return_value = pull_payload(body="")
        update_pr(client, fork, 7, ["bob"], "more")
        assert client.update_pull.call_count == 0

    def test_get_failure_is_returned(self, client, fork):
        client.get_pull.side_effect = GitHubAPIError("Not Found", status_code=404)
        result = update_pr(client, fork, 7, ["bob"], "more")
        assert result.status == "failed"
        client.update_pull.assert_not_called()

    def test_update_failure_is_returned(self, client, fork):
        client.update_pull.side_effect = GitHubAPIError("Validation Failed", status_code=422)
        result = update_pr(client, fork, 7, ["bob"], "more")
        assert result.status == "failed"
        assert result.status_code == 422
