"""Models for the GitHub REST payloads the lander reads."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from prlander.core.errors import ParseError

PR_URL_PATTERN = re.compile(
    r"^https://github\.com/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)"
    r"/pull/(?P<number>\d+)/?(?:[?#].*)?$"
)

# Conclusions that make a run count as failed. neutral, skipped,
# success, stale and action_required do not.
FAILURE_CONCLUSIONS = frozenset({"failure", "timed_out", "cancelled"})


class PullRequestRef(BaseModel):
    """owner/repo#number parsed from a pull request URL."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    number: int

    @classmethod
    def parse(cls, url: str) -> PullRequestRef:
        """Parse https://github.com/<owner>/<repo>/pull/<number>.

        Raises:
            ParseError: If the URL does not have that shape
        """
        match = PR_URL_PATTERN.match((url or "").strip())
        if not match:
            raise ParseError(
                f"Invalid pull request URL format: {url!r}. Expected "
                f"format: https://github.com/owner/repo/pull/123"
            )
        return cls(
            owner=match["owner"],
            repo=match["repo"],
            number=int(match["number"]),
        )

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.slug}/pull/{self.number}"

    def __str__(self) -> str:
        return f"{self.slug}#{self.number}"


class RepositoryInfo(BaseModel):
    """The repository fields the workflow needs."""

    full_name: str
    default_branch: str
    clone_url: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> RepositoryInfo:
        return cls(
            full_name=data["full_name"],
            default_branch=data["default_branch"],
            clone_url=data.get("clone_url"),
        )


class PullRequestSnapshot(BaseModel):
    """One read of a pull request's merge-relevant fields.

    ``mergeable`` is None while GitHub is still computing it.
    ``mergeable_state`` is one of clean, blocked, unstable, behind,
    dirty, has_hooks, draft or unknown.
    """

    model_config = ConfigDict(frozen=True)

    number: int
    state: str
    merged: bool
    mergeable: bool | None = None
    mergeable_state: str = "unknown"
    head_ref: str
    head_sha: str
    base_ref: str
    title: str = ""
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict) -> PullRequestSnapshot:
        return cls(
            number=data["number"],
            state=data.get("state", "open"),
            merged=bool(data.get("merged")),
            mergeable=data.get("mergeable"),
            mergeable_state=data.get("mergeable_state") or "unknown",
            head_ref=data["head"]["ref"],
            head_sha=data["head"]["sha"],
            base_ref=data["base"]["ref"],
            title=data.get("title") or "",
            html_url=data.get("html_url") or "",
        )


class Review(BaseModel):
    """A submitted pull request review."""

    model_config = ConfigDict(frozen=True)

    id: int
    user: str
    state: str
    submitted_at: datetime | None = None

    @classmethod
    def from_api(cls, data: dict) -> Review:
        user = data.get("user") or {}
        return cls(
            id=data["id"],
            user=user.get("login", "ghost"),
            state=data.get("state", ""),
            submitted_at=data.get("submitted_at"),
        )


class RecordKind(str, Enum):
    WORKFLOW = "workflow"
    CHECK = "check"


class CheckRunRecord(BaseModel):
    """A workflow run or check run attached to a commit.

    Read-only: a re-run creates a new record with a new id.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    kind: RecordKind
    name: str = ""
    status: str
    conclusion: str | None = None
    suite_id: int | None = None
    html_url: str | None = None

    @classmethod
    def from_workflow_run(cls, data: dict) -> CheckRunRecord:
        return cls(
            id=data["id"],
            kind=RecordKind.WORKFLOW,
            name=data.get("name") or "",
            status=data.get("status") or "queued",
            conclusion=data.get("conclusion"),
            suite_id=data.get("check_suite_id"),
            html_url=data.get("html_url"),
        )

    @classmethod
    def from_check_run(cls, data: dict) -> CheckRunRecord:
        suite = data.get("check_suite") or {}
        return cls(
            id=data["id"],
            kind=RecordKind.CHECK,
            name=data.get("name") or "",
            status=data.get("status") or "queued",
            conclusion=data.get("conclusion"),
            suite_id=suite.get("id"),
            html_url=data.get("html_url"),
        )

    @property
    def failed(self) -> bool:
        return self.conclusion in FAILURE_CONCLUSIONS

    @property
    def pending(self) -> bool:
        return self.status != "completed"

    @property
    def label(self) -> str:
        return f"{self.kind.value} {self.name or self.id} ({self.id})"
