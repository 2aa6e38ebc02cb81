"""AwaitMergeable node - poll until the PR can be merged."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prlander.core.config import State
from prlander.core.errors import (
    ApprovalMissing,
    PollExhausted,
    RemediationExhausted,
)
from prlander.core.log import logger
from prlander.core.result import MergeabilityDecision
from prlander.engine.poller import MergeabilityPoller
from prlander.engine.remediation import CIRemediationEngine


@dataclass
class AwaitMergeable(BaseNode[State]):
    """Poll approvals, CI and mergeability.

    Mergeable continues to MergePullRequest and AlreadyMerged to
    PushTag. Every other decision raises the matching LanderError.
    """

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "MergePullRequest | PushTag":
        config = ctx.state.config
        land = ctx.state.runtime.land

        remediation = CIRemediationEngine(
            land.client, settings=config.remediation, sleep=land.sleep,
        )
        poller = MergeabilityPoller(
            land.client,
            remediation,
            settings=config.poll,
            remediation_retries=config.remediation.max_retries,
            sleep=land.sleep,
        )
        outcome = poller.poll()
        land.outcome = outcome
        if poller.snapshot is not None:
            land.snapshot = poller.snapshot

        decision = outcome.decision
        logger.info(
            f"Mergeability decision: {decision.value}",
            rounds=outcome.rounds,
            approvals=outcome.approvals,
        )

        if decision is MergeabilityDecision.MERGEABLE:
            from prlander.workflow.nodes.merge_pull_request import (
                MergePullRequest,
            )
            return MergePullRequest()

        if decision is MergeabilityDecision.ALREADY_MERGED:
            land.status = "already_merged"
            # The tag carries the default branch's version
            land.repo.prepare_branch(land.repository.default_branch)
            from prlander.workflow.nodes.push_tag import PushTag
            return PushTag()

        if decision is MergeabilityDecision.NOT_APPROVED:
            raise ApprovalMissing(
                land.pr.url, outcome.approvals, config.poll.required_approvals
            )

        if decision is MergeabilityDecision.BLOCKED:
            report = outcome.remediation
            raise RemediationExhausted(
                land.snapshot.head_sha,
                len(report.attempts) if report else 0,
                report.log_paths if report else (),
            )

        raise PollExhausted(land.pr.url, outcome.rounds, outcome.last_state)
