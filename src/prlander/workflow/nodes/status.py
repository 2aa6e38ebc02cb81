"""Status node - report a pull request's approvals and CI without acting."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prlander.core.config import State
from prlander.core.log import logger
from prlander.engine.poller import count_approvals
from prlander.engine.remediation import partition
from prlander.workflow.nodes.common import ensure_client


@dataclass
class Status(BaseNode[State, None, str]):
    """Read the PR, its reviews and its CI records and log a summary.

    Ends with the PR's mergeable_state.
    """

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        config = ctx.state.config
        land = ctx.state.runtime.land

        client = ensure_client(ctx.state)

        snapshot = client.get_pull_request()
        land.snapshot = snapshot
        approvals = count_approvals(client.list_reviews())

        logger.info(
            "Pull request {pr}: {title}", pr=str(land.pr), title=snapshot.title
        )
        logger.info(
            f"  {snapshot.head_ref} -> {snapshot.base_ref} "
            f"(head {snapshot.head_sha[:12]})"
        )
        logger.info(
            f"  merged={snapshot.merged} mergeable={snapshot.mergeable} "
            f"state={snapshot.mergeable_state}"
        )
        logger.info(
            f"  approvals: {approvals} "
            f"(required {config.poll.required_approvals})"
        )

        if not snapshot.merged:
            records = (
                client.list_workflow_runs(snapshot.head_sha)
                + client.list_check_runs(snapshot.head_sha)
            )
            failed, pending, passing = partition(records)
            logger.info(
                f"  checks: {len(passing)} passed, {len(pending)} pending, "
                f"{len(failed)} failed"
            )
            for record in failed:
                logger.warn(f"  failed: {record.label}", url=record.html_url)

        return End(snapshot.mergeable_state)
