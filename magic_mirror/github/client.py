"""
GitHub Client — Authenticated handle for the GitHub REST API.

Every engine operation receives a client explicitly; nothing reads a
global token. The client is a thin layer over httpx: it builds URLs,
sends the standard GitHub headers, and turns non-2xx responses into
GitHubAPIError. It never retries; timeouts come from the httpx client.

## Usage

    client = GitHubClient(token="ghs_xxx")
    branch = client.get_branch(Repo.parse("my-org/my-repo"), "main")

Tests pass their own ``httpx.Client`` (e.g. built on ``httpx.MockTransport``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..errors import GitHubAPIError
from ..models.pending_pr import Repo

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 15
PAGE_SIZE = 100


def _get_headers(token: Optional[str]) -> Dict[str, str]:
    """Get GitHub API headers."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "magic-mirror/1.0",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return resp.text


class GitHubClient:
    """
    Minimal GitHub REST client covering the calls Magic Mirror makes.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url.rstrip("/")
        if http_client is None:
            http_client = httpx.Client(
                base_url=self.api_url,
                headers=_get_headers(token),
                timeout=timeout,
            )
        self._http = http_client

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ── Transport ────────────────────────────────────────────────────

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            resp = self._http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(f"[github] {method} {path} failed: {e}")
            raise GitHubAPIError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.debug(f"[github] {method} {path} → {resp.status_code}: {message}")
            raise GitHubAPIError(message, status_code=resp.status_code)
        return resp

    @staticmethod
    def _decode(method: str, path: str, resp: httpx.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"[github] {method} {path} returned a non-JSON body")
            raise GitHubAPIError(
                f"{method} {path} returned a non-JSON body: {e}",
                status_code=resp.status_code,
            ) from e

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        resp = self._send(method, path, params=params, json=json)
        return self._decode(method, path, resp)

    def _get_all(
        self,
        path: str,
        key: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Dict[str, Any]], Any]:
        """
        GET every page of a listing by following ``Link: rel="next"``.

        ``key`` names the list inside an object payload (``check_runs``,
        ``statuses``); without it each page must be a JSON array. Returns
        the concatenated items and the first page's payload.
        """
        items: List[Dict[str, Any]] = []
        first: Any = None
        url: Optional[str] = path
        query: Optional[Dict[str, Any]] = {"per_page": PAGE_SIZE, **(params or {})}

        while url:
            resp = self._send("GET", url, params=query)
            data = self._decode("GET", path, resp)
            if first is None:
                first = data
            page = data.get(key) if key and isinstance(data, dict) else data
            if page:
                if not isinstance(page, list):
                    raise GitHubAPIError(
                        f"GET {path} returned an unexpected payload",
                        status_code=resp.status_code,
                    )
                items.extend(page)
            url = resp.links.get("next", {}).get("url")
            # The next link already carries the query string
            query = None

        return items, first

    # ── Repositories ─────────────────────────────────────────────────

    def get_branch(self, repo: Repo, branch: str) -> Dict[str, Any]:
        return self._request("GET", f"/repos/{repo}/branches/{branch}")

    def get_content(self, repo: Repo, path: str, ref: str) -> Any:
        """
        Get a file's content envelope.

        Returns a dict with ``content`` and ``encoding`` for files, or a
        list when ``path`` is a directory.
        """
        return self._request(
            "GET", f"/repos/{repo}/contents/{path}", params={"ref": ref}
        )

    def get_combined_status(self, repo: Repo, sha: str) -> Dict[str, Any]:
        """Get the combined status with ``statuses`` gathered from every page."""
        statuses, first = self._get_all(
            f"/repos/{repo}/commits/{sha}/status", key="statuses"
        )
        combined = dict(first or {})
        combined["statuses"] = statuses
        return combined

    def list_check_runs(self, repo: Repo, sha: str) -> List[Dict[str, Any]]:
        runs, _ = self._get_all(
            f"/repos/{repo}/commits/{sha}/check-runs", key="check_runs"
        )
        return runs

    # ── Pull requests ────────────────────────────────────────────────

    def get_pull(self, repo: Repo, pr_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/repos/{repo}/pulls/{pr_id}")

    def update_pull(
        self,
        repo: Repo,
        pr_id: int,
        body: Optional[str] = None,
        assignees: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Update a PR's description and assignees.

        The pulls endpoint doesn't accept assignees, so those go through
        the issues endpoint that backs every PR.
        """
        payload: Dict[str, Any] = {}
        if body is not None:
            payload["body"] = body
        if assignees is not None:
            payload["assignees"] = assignees
        return self._request("PATCH", f"/repos/{repo}/issues/{pr_id}", json=payload)

    def merge_pull(
        self,
        repo: Repo,
        pr_id: int,
        sha: str,
        merge_method: str = "rebase",
    ) -> Dict[str, Any]:
        """
        Merge a PR only if its head is still ``sha``.

        GitHub answers 409 when the head moved, 405 when the PR is not
        mergeable.
        """
        return self._request(
            "PUT",
            f"/repos/{repo}/pulls/{pr_id}/merge",
            json={"merge_method": merge_method, "sha": sha},
        )

    def list_reviews(self, repo: Repo, pr_id: int) -> List[Dict[str, Any]]:
        reviews, _ = self._get_all(f"/repos/{repo}/pulls/{pr_id}/reviews")
        return reviews

    # ── Issues ───────────────────────────────────────────────────────

    def create_issue(
        self,
        repo: Repo,
        title: str,
        body: str,
        assignees: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": title, "body": body}
        if assignees:
            payload["assignees"] = assignees
        return self._request("POST", f"/repos/{repo}/issues", json=payload)

    def get_issue(self, repo: Repo, issue_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/repos/{repo}/issues/{issue_id}")

    def create_comment(self, repo: Repo, issue_id: int, body: str) -> Dict[str, Any]:
        return self._request(
            "POST", f"/repos/{repo}/issues/{issue_id}/comments", json={"body": body}
        )
