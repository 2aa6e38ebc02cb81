"""Reconciliation engines: version, branch sync, CI remediation, polling."""

from prlander.engine.poller import MergeabilityPoller, count_approvals
from prlander.engine.remediation import CIRemediationEngine
from prlander.engine.sync import BranchSyncEngine
from prlander.engine.version import VersionPair, needs_bump, parse_version

__all__ = [
    "VersionPair",
    "BranchSyncEngine",
    "CIRemediationEngine",
    "MergeabilityPoller",
    "count_approvals",
    "needs_bump",
    "parse_version",
]
