"""Result types produced by the reconciliation engines."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from prlander.github.models import CheckRunRecord


class SyncState(BaseModel):
    """Outcome of one merge of the base branch into the working branch."""

    up_to_date: bool
    conflicted_paths: list[str] = Field(default_factory=list)
    resolved: bool = False


class RemediationAttempt(BaseModel):
    """What one CI remediation attempt saw and did."""

    attempt_number: int
    failed_records: list[CheckRunRecord] = Field(default_factory=list)
    pending_records: list[CheckRunRecord] = Field(default_factory=list)
    rerun_requests: set[str] = Field(default_factory=set)
    logs_collected: set[Path] = Field(default_factory=set)
    inconclusive: bool = False


class RemediationReport(BaseModel):
    """Verdict of a remediation run plus every attempt made."""

    commit_sha: str
    success: bool = False
    attempts: list[RemediationAttempt] = Field(default_factory=list)

    @property
    def log_paths(self) -> set[Path]:
        return {
            path for attempt in self.attempts
            for path in attempt.logs_collected
        }


class MergeabilityDecision(str, Enum):
    """Terminal states of the mergeability poller."""

    MERGEABLE = "mergeable"
    ALREADY_MERGED = "already_merged"
    NOT_APPROVED = "not_approved"
    BLOCKED = "blocked"
    POLL_EXHAUSTED = "poll_exhausted"


class PollOutcome(BaseModel):
    """Decision of the poller with the facts that led to it."""

    decision: MergeabilityDecision
    rounds: int
    approvals: int = 0
    last_state: str | None = None
    remediation: RemediationReport | None = None

    @property
    def mergeable(self) -> bool:
        return self.decision is MergeabilityDecision.MERGEABLE
