"""GitHub API access."""

from prlander.github.client import GitHubClient, resolve_token
from prlander.github.models import (
    CheckRunRecord,
    PullRequestRef,
    PullRequestSnapshot,
    RecordKind,
    RepositoryInfo,
    Review,
)

__all__ = [
    "GitHubClient",
    "resolve_token",
    "CheckRunRecord",
    "PullRequestRef",
    "PullRequestSnapshot",
    "RecordKind",
    "RepositoryInfo",
    "Review",
]
