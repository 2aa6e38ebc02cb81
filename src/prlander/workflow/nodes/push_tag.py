"""PushTag node - offer the version tag once the PR has landed."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from prlander.core.config import State
from prlander.core.log import logger
from prlander.workflow.nodes.common import push_version_tag


@dataclass
class PushTag(BaseNode[State, None, str]):
    """Push v<version> after a bump, or for an already merged PR.

    Ends the workflow with the merge commit SHA (the PR head SHA when
    it was merged elsewhere).
    """

    async def run(self, ctx: GraphRunContext[State]) -> End[str]:
        land = ctx.state.runtime.land

        if land.bumped or land.status == "already_merged":
            push_version_tag(ctx.state)
        else:
            logger.debug("No version bump made, no tag to push")

        return End(land.merge_sha or land.snapshot.head_sha)
