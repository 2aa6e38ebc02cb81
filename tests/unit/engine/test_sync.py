"""Tests for the branch sync engine."""

import pytest

from prlander.core.config import SyncConfig
from prlander.core.errors import (
    CommandFailed,
    ResolvableConflictError,
    SyncExhausted,
    UnresolvableConflictError,
)
from prlander.engine.sync import BranchSyncEngine

VERSION_ONLY = """{
  "name": "widgets",
<<<<<<< HEAD
  "version": "1.0.1",
=======
  "version": "1.1.0",
>>>>>>> origin/main
  "private": true
}
"""

VERSION_AND_DEPENDENCY = """{
  "name": "widgets",
<<<<<<< HEAD
  "version": "1.0.1",
  "lodash": "4.17.20",
=======
  "version": "1.1.0",
  "lodash": "4.17.21",
>>>>>>> origin/main
  "private": true
}
"""


def make_engine(repo, packages, sleep, **settings):
    return BranchSyncEngine(
        repo,
        packages,
        settings=SyncConfig(**settings),
        sleep=sleep,
    )


def test_already_converged_branch_is_up_to_date_without_commit(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=["Already up to date."])
    packages = fake_packages()
    engine = make_engine(repo, packages, recording_sleep)

    state = engine.sync("main", "feature")

    assert state.up_to_date
    assert not state.resolved
    assert repo.named("resolve_with_theirs") == []
    assert packages.calls == []


def test_merge_with_changes_is_not_up_to_date(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=["Merge made by the 'ort' strategy.\n 1 file"])
    engine = make_engine(repo, fake_packages(), recording_sleep)

    state = engine.sync("main", "feature")

    assert not state.up_to_date
    assert state.conflicted_paths == []


def test_up_to_date_detected_from_output_not_exit_code(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=["Already up-to-date.\n"])
    engine = make_engine(repo, fake_packages(), recording_sleep)

    assert engine.sync("main", "feature").up_to_date


def test_version_only_manifest_conflict_is_resolved_with_base_side(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(
        merges=[["package.json"]],
        files={"package.json": VERSION_ONLY},
    )
    engine = make_engine(repo, fake_packages(), recording_sleep)

    state = engine.sync("main", "feature")

    assert not state.up_to_date
    assert state.resolved
    assert state.conflicted_paths == ["package.json"]
    assert repo.named("resolve_with_theirs") == [(
        "resolve_with_theirs",
        "package.json",
        "Auto-resolved package.json conflict from merging origin/main",
    )]


def test_manifest_conflict_with_extra_line_is_unresolvable(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(
        merges=[["package.json"]],
        files={"package.json": VERSION_AND_DEPENDENCY},
    )
    engine = make_engine(repo, fake_packages(), recording_sleep)

    with pytest.raises(UnresolvableConflictError) as excinfo:
        engine.sync("main", "feature")

    assert excinfo.value.paths == ["package.json"]
    assert repo.named("resolve_with_theirs") == []


def test_conflict_in_other_files_is_unresolvable(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(
        merges=[["package.json", "src/index.js"]],
        files={"package.json": VERSION_ONLY},
    )
    engine = make_engine(repo, fake_packages(), recording_sleep)

    with pytest.raises(UnresolvableConflictError) as excinfo:
        engine.sync("main", "feature")

    assert excinfo.value.paths == ["package.json", "src/index.js"]
    assert "src/index.js" in str(excinfo.value)


def test_classify_sorts_conflicts(fake_repo, fake_packages, recording_sleep):
    repo = fake_repo(files={"package.json": VERSION_ONLY})
    engine = make_engine(repo, fake_packages(), recording_sleep)

    resolvable = engine.classify("main", ["package.json"])
    assert isinstance(resolvable, ResolvableConflictError)
    assert resolvable.resolvable
    assert resolvable.paths == ["package.json"]

    other = engine.classify("main", ["package.json", "src/index.js"])
    assert isinstance(other, UnresolvableConflictError)
    assert not other.resolvable
    assert other.base_ref == "origin/main"

    repo.files["package.json"] = VERSION_AND_DEPENDENCY
    assert not engine.classify("main", ["package.json"]).resolvable


def test_converge_refreshes_pushes_and_waits_until_up_to_date(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=[
        "Merge made by the 'ort' strategy.",
        "Merge made by the 'ort' strategy.",
        "Already up to date.",
    ])
    packages = fake_packages()
    engine = make_engine(repo, packages, recording_sleep, interval=60)

    iterations = engine.converge("main", "feature")

    assert iterations == 2
    assert packages.calls == [("install",), ("install",)]
    assert repo.named("push") == [("push", "feature"), ("push", "feature")]
    assert recording_sleep.calls == [60, 60]
    assert repo.named("fetch") == [("fetch", "main")] * 3


def test_converge_on_converged_branch_does_nothing(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo()
    packages = fake_packages()
    engine = make_engine(repo, packages, recording_sleep)

    assert engine.converge("main", "feature") == 0
    assert packages.calls == []
    assert repo.named("push") == []
    assert recording_sleep.calls == []


def test_converge_fetch_failure_is_not_fatal(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo()
    repo.fetch_error = CommandFailed("git fetch origin main", 128, "offline")
    engine = make_engine(repo, fake_packages(), recording_sleep)

    assert engine.converge("main", "feature") == 0
    assert repo.named("merge") == [("merge", "main")]


def test_converge_bounded_by_max_iterations(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=["Merge made by the 'ort' strategy."])
    engine = make_engine(
        repo, fake_packages(), recording_sleep, max_iterations=3,
    )

    with pytest.raises(SyncExhausted):
        engine.converge("main", "feature")

    assert len(repo.named("merge")) == 3
    assert recording_sleep.calls == [60, 60]


def test_converge_stops_on_unresolvable_conflict(
    fake_repo, fake_packages, recording_sleep,
):
    repo = fake_repo(merges=[["README.md"]])
    packages = fake_packages()
    engine = make_engine(repo, packages, recording_sleep)

    with pytest.raises(UnresolvableConflictError):
        engine.converge("main", "feature")

    assert len(repo.named("merge")) == 1
    assert packages.calls == []
