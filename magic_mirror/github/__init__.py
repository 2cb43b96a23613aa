"""
GitHub Integration — REST client and best-effort pull request operations.
"""

from .client import DEFAULT_API_URL, GitHubClient
from .operations import add_comment, update_pr

__all__ = [
    "GitHubClient",
    "DEFAULT_API_URL",
    "add_comment",
    "update_pr",
]
