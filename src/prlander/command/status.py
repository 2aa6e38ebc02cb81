"""Status command - show where a pull request stands."""

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from prlander.core.errors import LanderError
from prlander.core.log import logger
from prlander.github.models import PullRequestRef


class StatusCommand(BaseModel):
    """Show a pull request's mergeability, approvals and CI results.

    Read-only: nothing is merged, pushed or re-run.
    """

    pr_url: CliPositionalArg[str] = Field(
        description="Pull request URL: https://github.com/owner/repo/pull/123"
    )

    async def run_workflow(self, state: "State") -> int:
        """Run status workflow.

        Args:
            state: State instance

        Returns:
            Exit code (0=success, 1=failure)
        """
        from pydantic_graph import End, Graph

        from prlander.workflow.nodes.status import Status

        land = state.runtime.land
        try:
            land.pr = PullRequestRef.parse(self.pr_url)

            # Single-node workflow
            workflow = Graph(nodes=(Status,), state_type=type(state))
            mergeable_state = None
            async with workflow.iter(Status(), state=state) as run:
                async for node in run:
                    if isinstance(node, End):
                        mergeable_state = node.data
        except LanderError as e:
            logger.error("Error: {error}", error=str(e))
            return 1
        finally:
            land.close()

        logger.info(f"Mergeable state: {mergeable_state}")
        return 0
