"""Graph workflow definition."""

from pydantic_graph import Graph

from prlander.core.config import State
from prlander.core.log import logger


def create_workflow():
    """Create the land workflow graph.

    Initialize -> ReconcileVersion -> SyncBranch -> AwaitMergeable ->
        MergePullRequest -> PushTag

    An already merged PR goes from Initialize (or AwaitMergeable)
    straight to PushTag.

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    # Import nodes (lazy to avoid circular imports)
    from prlander.workflow.nodes.await_mergeable import AwaitMergeable
    from prlander.workflow.nodes.initialize import Initialize
    from prlander.workflow.nodes.merge_pull_request import MergePullRequest
    from prlander.workflow.nodes.push_tag import PushTag
    from prlander.workflow.nodes.reconcile_version import ReconcileVersion
    from prlander.workflow.nodes.sync_branch import SyncBranch

    workflow = Graph(
        nodes=(
            Initialize,
            ReconcileVersion,
            SyncBranch,
            AwaitMergeable,
            MergePullRequest,
            PushTag,
        ),
        state_type=State
    )

    return workflow
