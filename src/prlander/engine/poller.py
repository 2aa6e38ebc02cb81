"""Decide when a pull request can be merged."""

from __future__ import annotations

import time

from prlander.core.config import PollConfig
from prlander.core.errors import TransientProviderError
from prlander.core.log import logger
from prlander.core.result import MergeabilityDecision, PollOutcome
from prlander.github.models import PullRequestSnapshot, Review

APPROVED = "APPROVED"
REMEDIABLE_STATES = frozenset({"blocked", "unstable"})


def count_approvals(reviews: list[Review]) -> int:
    """Number of reviewers whose latest submitted review approves.

    Reviews without submitted_at (pending drafts) are ignored.
    """
    latest: dict[str, Review] = {}
    for review in reviews:
        if review.submitted_at is None:
            continue
        seen = latest.get(review.user)
        if seen is None or review.submitted_at >= seen.submitted_at:
            latest[review.user] = review
    return sum(1 for review in latest.values() if review.state == APPROVED)


class MergeabilityPoller:
    """Polls approvals, CI and mergeability until a terminal decision.

    Each round reads the PR once. A merged PR, missing approvals and
    a clean mergeable state end polling at once. A blocked or unstable
    state hands the head commit to the remediation engine; if CI cannot
    be fixed the decision is BLOCKED. Anything else waits for the next
    round, up to settings.max_rounds.
    """

    def __init__(
        self,
        client,
        remediation,
        settings: PollConfig | None = None,
        remediation_retries: int | None = None,
        sleep=time.sleep,
        log=logger,
    ):
        self.client = client
        self.remediation = remediation
        self.settings = settings or PollConfig()
        self.remediation_retries = remediation_retries
        self.sleep = sleep
        self.log = log
        self.snapshot: PullRequestSnapshot | None = None

    def poll(self) -> PollOutcome:
        approvals = 0
        report = None
        last_state = None

        for round_number in range(1, self.settings.max_rounds + 1):
            with self.log.span("poll round", round=round_number):
                try:
                    snapshot = self.client.get_pull_request()
                    self.snapshot = snapshot
                    last_state = snapshot.mergeable_state

                    if snapshot.merged:
                        self.log.info("Pull request is already merged")
                        return self._outcome(
                            MergeabilityDecision.ALREADY_MERGED,
                            round_number, approvals, last_state, report,
                        )

                    approvals = count_approvals(self.client.list_reviews())
                except TransientProviderError as e:
                    self.log.warn(
                        f"Round {round_number} inconclusive", error=str(e),
                    )
                    self._wait(round_number, self.settings.interval)
                    continue

                if approvals < self.settings.required_approvals:
                    self.log.error(
                        f"Pull request has {approvals} approval(s), "
                        f"{self.settings.required_approvals} required",
                    )
                    return self._outcome(
                        MergeabilityDecision.NOT_APPROVED,
                        round_number, approvals, last_state, report,
                    )

                self.log.info(
                    f"Round {round_number}: mergeable={snapshot.mergeable} "
                    f"state={snapshot.mergeable_state}",
                    approvals=approvals,
                )

                if snapshot.mergeable_state in REMEDIABLE_STATES:
                    self.log.warn(
                        f"Pull request is {snapshot.mergeable_state}, "
                        f"checking CI for {snapshot.head_sha}"
                    )
                    report = self.remediation.run(
                        snapshot.head_sha, self.remediation_retries,
                    )
                    if not report.success:
                        return self._outcome(
                            MergeabilityDecision.BLOCKED,
                            round_number, approvals, last_state, report,
                        )
                    self._wait(
                        round_number, self.settings.post_remediation_delay,
                    )
                    continue

                if snapshot.mergeable is False:
                    self.log.info("Pull request is not mergeable yet")
                elif snapshot.mergeable_state == "clean":
                    return self._outcome(
                        MergeabilityDecision.MERGEABLE,
                        round_number, approvals, last_state, report,
                    )
                else:
                    self.log.info(
                        "Mergeability still being computed or branch not "
                        "ready",
                        state=snapshot.mergeable_state,
                    )

            self._wait(round_number, self.settings.interval)

        self.log.error(
            f"Pull request not mergeable after "
            f"{self.settings.max_rounds} round(s)",
            last_state=last_state,
        )
        return self._outcome(
            MergeabilityDecision.POLL_EXHAUSTED,
            self.settings.max_rounds, approvals, last_state, report,
        )

    def _wait(self, round_number: int, seconds: float) -> None:
        # No wait after the final round
        if round_number < self.settings.max_rounds:
            self.sleep(seconds)

    def _outcome(self, decision, rounds, approvals, last_state, report):
        return PollOutcome(
            decision=decision,
            rounds=rounds,
            approvals=approvals,
            last_state=last_state,
            remediation=report,
        )
