"""SyncBranch node - merge the default branch until up to date."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prlander.core.config import State
from prlander.core.log import logger
from prlander.engine.sync import BranchSyncEngine


@dataclass
class SyncBranch(BaseNode[State]):
    """Run the branch sync loop on the PR branch."""

    async def run(self, ctx: GraphRunContext[State]) -> "AwaitMergeable":
        config = ctx.state.config
        land = ctx.state.runtime.land

        logger.info("Starting periodic sync with default branch")
        engine = BranchSyncEngine(
            land.repo,
            land.packages,
            settings=config.sync,
            manifest=config.git.manifest,
            sleep=land.sleep,
        )
        land.sync_iterations = engine.converge(
            land.repository.default_branch, land.snapshot.head_ref
        )

        from prlander.workflow.nodes.await_mergeable import AwaitMergeable
        return AwaitMergeable()
