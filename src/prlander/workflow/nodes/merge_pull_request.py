"""MergePullRequest node - merge through the GitHub API."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prlander.core.config import State
from prlander.core.confirm import require
from prlander.core.errors import ProviderError
from prlander.core.log import logger


@dataclass
class MergePullRequest(BaseNode[State]):
    """Confirm, then PUT the merge."""

    async def run(self, ctx: GraphRunContext[State]) -> "PushTag":
        github = ctx.state.config.github
        land = ctx.state.runtime.land
        client = land.client

        title = github.commit_title.format(number=land.pr.number)
        body = client.merge_body(title, github.merge_method)
        require(
            land.confirm,
            "Merging the pull request via GitHub API",
            client.curl("PUT", client.merge_path(), body),
        )

        logger.info("All updates and checks passed, merging pull request")
        result = client.merge_pull_request(title, github.merge_method)
        if not result.get("merged"):
            raise ProviderError(
                f"Merge failed: {result.get('message', 'unknown reason')}",
                next_step=client.curl("PUT", client.merge_path(), body),
            )

        land.merge_sha = result.get("sha")
        land.status = "merged"
        logger.info("Pull request merged successfully", sha=land.merge_sha)

        from prlander.workflow.nodes.push_tag import PushTag
        return PushTag()
