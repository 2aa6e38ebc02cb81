"""Initialize node - look up the pull request and prepare the checkout."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prlander.core.config import State
from prlander.core.log import logger
from prlander.workflow.nodes.common import ensure_collaborators


@dataclass
class Initialize(BaseNode[State]):
    """Fetch repository and PR details and check out the right branch.

    An already merged PR goes straight to PushTag on the default
    branch; any other PR continues with its head branch checked out.
    """

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "ReconcileVersion | PushTag":
        land = ctx.state.runtime.land
        land.status = "running"

        ensure_collaborators(ctx.state)

        logger.info("Fetching repository details")
        land.repository = land.client.get_repository()
        default_branch = land.repository.default_branch
        logger.info(f"Default branch is: {default_branch}")

        logger.info("Fetching pull request details")
        land.snapshot = land.client.get_pull_request()

        if land.repository.clone_url:
            land.repo.clone(land.repository.clone_url)

        if land.snapshot.merged:
            logger.info("Pull request is already merged")
            land.status = "already_merged"
            land.repo.prepare_branch(default_branch)

            from prlander.workflow.nodes.push_tag import PushTag
            return PushTag()

        logger.info(f"Pull request branch: {land.snapshot.head_ref}")
        land.repo.prepare_branch(land.snapshot.head_ref)

        from prlander.workflow.nodes.reconcile_version import (
            ReconcileVersion,
        )
        return ReconcileVersion()
