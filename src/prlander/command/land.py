"""Land command - sync, wait for CI and approval, then merge a PR."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_graph import End
from pydantic_settings import CliPositionalArg

from prlander.core.confirm import AutoApprove
from prlander.core.errors import LanderError
from prlander.core.log import logger
from prlander.github.models import PullRequestRef


class LandCommand(BaseModel):
    """Land a GitHub pull request.

    Bumps the PR's package.json version when it is not ahead of the
    default branch, keeps the PR branch merged with the default
    branch, re-runs failed CI, waits for approval and merges through
    the GitHub API. Every action that changes the checkout, the remote
    or the PR is confirmed first unless --auto-approve is given.
    """

    model_config = ConfigDict(populate_by_name=True)

    pr_url: CliPositionalArg[str] = Field(
        description="Pull request URL: https://github.com/owner/repo/pull/123"
    )
    bump: Literal["patch", "minor", "major"] | None = Field(
        default=None,
        description=(
            "Version bump kind used when the PR version is not ahead of "
            "the default branch"
        ),
    )
    auto_approve: bool = Field(
        default=False,
        alias="auto-approve",
        description="Answer yes to every confirmation prompt",
    )
    version_bump: bool = Field(
        default=True,
        alias="version-bump",
        description="Allow a version bump (--no-version-bump disables it)",
    )
    auto_tag: bool = Field(
        default=False,
        alias="auto-tag",
        description="Push the new version tag without asking",
    )
    tag: bool = Field(
        default=True,
        description="Offer to push the new version tag (--no-tag skips it)",
    )

    @property
    def tag_mode(self) -> str:
        if not self.tag:
            return "skip"
        if self.auto_tag or self.auto_approve:
            return "auto"
        return "ask"

    def apply(self, state: "State") -> None:
        """Copy this invocation's choices into the runtime state."""
        land = state.runtime.land
        land.pr = PullRequestRef.parse(self.pr_url)
        land.bump = self.bump
        land.version_bump = self.version_bump
        land.tag_mode = self.tag_mode
        if self.auto_approve and land.confirm is None:
            land.confirm = AutoApprove()

    async def run_workflow(self, state: "State") -> int:
        """Run the land workflow.

        Args:
            state: State instance with config loaded and runtime initialized

        Returns:
            Exit code (0=success, 1=failure)
        """
        from prlander.workflow.graph import create_workflow
        from prlander.workflow.nodes.initialize import Initialize

        land = state.runtime.land
        try:
            self.apply(state)
            logger.info(f"Landing pull request {land.pr}")

            workflow = create_workflow()
            async with workflow.iter(Initialize(), state=state) as run:
                async for node in run:
                    if isinstance(node, End):
                        logger.info(
                            f"Pull request {land.pr} landed "
                            f"({land.status})",
                            sha=node.data,
                            tag=land.tag,
                        )
                        return 0
        except LanderError as e:
            land.status = "failed"
            logger.error("Error: {error}", error=str(e))
            if e.next_step:
                logger.error(
                    "To continue by hand, run:\n{command}",
                    command=e.next_step,
                )
            return 1
        finally:
            land.close()

        logger.error("Land failed - workflow ended unexpectedly")
        return 1
