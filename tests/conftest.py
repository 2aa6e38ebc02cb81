"""Pytest configuration and fixtures for prlander tests."""

import io
import sys
import tempfile
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from prlander.core.errors import ConflictError, TransientProviderError
from prlander.core.log import ConsoleSink, setup_logger
from prlander.github.models import (
    CheckRunRecord,
    PullRequestRef,
    PullRequestSnapshot,
    RecordKind,
    RepositoryInfo,
    Review,
)

PR_URL = "https://github.com/acme/widgets/pull/42"
HEAD_SHA = "a" * 40


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Configure logging for console-only mode during tests.

    This enables debug output during test runs without requiring
    authentication or sending logs to a hosted service.
    """
    test_log_root = Path(tempfile.gettempdir()) / "prlander-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv around State construction."""
    original = sys.argv.copy()
    sys.argv = ["prlander"]
    yield
    sys.argv = original


# ============================================================
# Payload builders
# ============================================================

def snapshot(**overrides) -> PullRequestSnapshot:
    fields = {
        "number": 42,
        "state": "open",
        "merged": False,
        "mergeable": True,
        "mergeable_state": "clean",
        "head_ref": "feature",
        "head_sha": HEAD_SHA,
        "base_ref": "main",
        "title": "Add widgets",
    }
    fields.update(overrides)
    return PullRequestSnapshot(**fields)


def review(user: str, state: str, minute: int | None) -> Review:
    submitted = None
    if minute is not None:
        submitted = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(
            minutes=minute
        )
    return Review(
        id=hash((user, state, minute)) & 0xFFFF,
        user=user,
        state=state,
        submitted_at=submitted,
    )


def workflow_run(run_id: int, conclusion: str | None = "success",
                 status: str = "completed", suite_id: int | None = None):
    return CheckRunRecord(
        id=run_id,
        kind=RecordKind.WORKFLOW,
        name=f"workflow-{run_id}",
        status=status,
        conclusion=conclusion,
        suite_id=suite_id,
    )


def check_run(run_id: int, suite_id: int, conclusion: str | None = "success",
              status: str = "completed"):
    return CheckRunRecord(
        id=run_id,
        kind=RecordKind.CHECK,
        name=f"check-{run_id}",
        status=status,
        conclusion=conclusion,
        suite_id=suite_id,
    )


def log_archive(name: str = "build.txt", text: str = "boom") -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(name, text)
    return buffer.getvalue()


class Builders:
    snapshot = staticmethod(snapshot)
    review = staticmethod(review)
    workflow_run = staticmethod(workflow_run)
    check_run = staticmethod(check_run)
    log_archive = staticmethod(log_archive)
    PR_URL = PR_URL
    HEAD_SHA = HEAD_SHA


@pytest.fixture
def build():
    """Builders for snapshots, reviews, CI records and log archives."""
    return Builders


# ============================================================
# Fakes
# ============================================================

class RecordingSleep:
    """Sleep stand-in that remembers every delay."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeGitHub:
    """In-memory GitHubClient.

    ``snapshots`` and ``ci`` are consumed one entry per call; the last
    entry repeats. An entry that is an exception is raised instead.
    """

    def __init__(self, snapshots=None, reviews=None, ci=None,
                 default_branch="main", logs=None):
        self.pr = PullRequestRef.parse(PR_URL)
        self.snapshots = list(snapshots or [snapshot()])
        self.reviews = list(reviews or [])
        self.ci = list(ci or [[]])
        self.default_branch = default_branch
        self.logs = logs if logs is not None else {}
        self.calls: list[tuple] = []
        self.merge_result = {"sha": "m" * 40, "merged": True,
                             "message": "Pull Request successfully merged"}
        self._snapshot_reads = 0
        self._ci_reads = 0
        self._batch = None
        self.closed = False

    @staticmethod
    def _take(items, index):
        item = items[min(index, len(items) - 1)]
        if isinstance(item, Exception):
            raise item
        return item

    def get_repository(self):
        self.calls.append(("get_repository",))
        return RepositoryInfo(
            full_name="acme/widgets", default_branch=self.default_branch,
        )

    def get_pull_request(self):
        self.calls.append(("get_pull_request",))
        index = self._snapshot_reads
        self._snapshot_reads += 1
        return self._take(self.snapshots, index)

    def list_reviews(self):
        self.calls.append(("list_reviews",))
        return list(self.reviews)

    def list_workflow_runs(self, sha):
        self.calls.append(("list_workflow_runs", sha))
        index = self._ci_reads
        self._ci_reads += 1
        self._batch = self._take(self.ci, index)
        return [r for r in self._batch if r.kind is RecordKind.WORKFLOW]

    def list_check_runs(self, sha):
        self.calls.append(("list_check_runs", sha))
        return [r for r in self._batch if r.kind is RecordKind.CHECK]

    def download_run_logs(self, run_id):
        self.calls.append(("download_run_logs", run_id))
        content = self.logs.get(run_id, log_archive(f"{run_id}.txt"))
        if isinstance(content, Exception):
            raise content
        return content

    def rerun_workflow(self, run_id):
        self.calls.append(("rerun_workflow", run_id))

    def rerun_check_suite(self, suite_id):
        self.calls.append(("rerun_check_suite", suite_id))

    def merge_path(self):
        return "/repos/acme/widgets/pulls/42/merge"

    def merge_body(self, commit_title, merge_method):
        return {"commit_title": commit_title, "merge_method": merge_method}

    def curl(self, method, path, body=None):
        return f"curl -X {method} https://api.github.com{path}"

    def merge_pull_request(self, commit_title, merge_method="merge"):
        self.calls.append(("merge_pull_request", commit_title, merge_method))
        return self.merge_result

    def named(self, name):
        return [call for call in self.calls if call[0] == name]

    def close(self):
        self.closed = True


class FakeRepo:
    """GitRepo stand-in driven by a list of merge results.

    Each merge result is git's output text, or a list of conflicted
    paths (raised as ConflictError). The last result repeats.
    """

    def __init__(self, merges=None, files=None, versions=None,
                 remote="origin"):
        self.merges = list(merges or ["Already up to date."])
        self.files = dict(files or {})
        self.versions = dict(versions or {})
        self.remote = remote
        self.calls: list[tuple] = []
        self.fetch_error = None
        self._merge_count = 0

    def fetch(self, ref):
        self.calls.append(("fetch", ref))
        if self.fetch_error is not None:
            raise self.fetch_error

    def merge(self, ref):
        self.calls.append(("merge", ref))
        result = self.merges[min(self._merge_count, len(self.merges) - 1)]
        self._merge_count += 1
        if isinstance(result, list):
            raise ConflictError("conflicts", paths=result)
        return result

    def read_file(self, path):
        return self.files[path]

    def show_file(self, ref, path):
        self.calls.append(("show_file", ref, path))
        return self.versions[ref]

    def resolve_with_theirs(self, path, message):
        self.calls.append(("resolve_with_theirs", path, message))

    def push(self, branch):
        self.calls.append(("push", branch))

    def push_tag(self, tag, ask=True):
        self.calls.append(("push_tag", tag, ask))

    def clone(self, url):
        self.calls.append(("clone", url))
        return False

    def prepare_branch(self, branch):
        self.calls.append(("prepare_branch", branch))

    def named(self, name):
        return [call for call in self.calls if call[0] == name]


class FakePackages:
    """PackageManager stand-in; bump rewrites the manifest version."""

    def __init__(self, manifest: Path | None = None, bumped_to="1.0.1"):
        self.manifest = manifest
        self.bumped_to = bumped_to
        self.calls: list[tuple] = []

    def install(self):
        self.calls.append(("install",))

    def bump(self, kind):
        self.calls.append(("bump", kind))
        if self.manifest is not None:
            self.manifest.write_text(
                f'{{"name": "widgets", "version": "{self.bumped_to}"}}\n'
            )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fake_github():
    """Factory for FakeGitHub instances."""
    return FakeGitHub


@pytest.fixture
def fake_repo():
    """Factory for FakeRepo instances."""
    return FakeRepo


@pytest.fixture
def fake_packages():
    """Factory for FakePackages instances."""
    return FakePackages


@pytest.fixture
def transient_error():
    return TransientProviderError("GET /repos/acme/widgets returned 502",
                                  status_code=502)
