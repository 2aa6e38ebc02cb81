"""Workflow nodes for the land state machine."""

from prlander.workflow.nodes.await_mergeable import AwaitMergeable
from prlander.workflow.nodes.initialize import Initialize
from prlander.workflow.nodes.merge_pull_request import MergePullRequest
from prlander.workflow.nodes.push_tag import PushTag
from prlander.workflow.nodes.reconcile_version import ReconcileVersion
from prlander.workflow.nodes.status import Status
from prlander.workflow.nodes.sync_branch import SyncBranch

__all__ = [
    "Initialize",
    "ReconcileVersion",
    "SyncBranch",
    "AwaitMergeable",
    "MergePullRequest",
    "PushTag",
    "Status",
]
