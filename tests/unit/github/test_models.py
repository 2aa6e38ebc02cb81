"""Tests for pull request URL parsing and payload models."""

import pytest

from prlander.core.errors import ParseError
from prlander.github.models import (
    CheckRunRecord,
    PullRequestRef,
    Review,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/widgets/pull/42",
        "https://github.com/acme/widgets/pull/42/",
        "https://github.com/acme/widgets/pull/42#discussion_r1",
        "  https://github.com/acme/widgets/pull/42\n",
    ],
)
def test_parse_pull_request_url(url):
    ref = PullRequestRef.parse(url)

    assert (ref.owner, ref.repo, ref.number) == ("acme", "widgets", 42)
    assert ref.slug == "acme/widgets"
    assert ref.url == "https://github.com/acme/widgets/pull/42"
    assert str(ref) == "acme/widgets#42"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "https://github.com/acme/widgets",
        "https://github.com/acme/widgets/issues/42",
        "https://gitlab.com/acme/widgets/pull/42",
        "https://github.com/acme/widgets/pull/abc",
    ],
)
def test_invalid_pull_request_url(url):
    with pytest.raises(ParseError, match="Invalid pull request URL"):
        PullRequestRef.parse(url)


def test_review_from_api_without_user():
    review = Review.from_api({"id": 1, "user": None, "state": "APPROVED"})

    assert review.user == "ghost"
    assert review.submitted_at is None


def test_check_run_failure_conclusions():
    def record(conclusion, status="completed"):
        return CheckRunRecord.from_check_run({
            "id": 1, "status": status, "conclusion": conclusion,
            "check_suite": {"id": 2},
        })

    assert record("failure").failed
    assert record("timed_out").failed
    assert record("cancelled").failed
    assert not record("neutral").failed
    assert not record("action_required").failed
    assert not record("success").pending
    assert record(None, status="queued").pending
