"""Exception hierarchy for prlander.

Every fatal condition derives from LanderError. The land command
catches LanderError, logs its message (plus the command that would
perform the next step, when there is one) and exits non-zero.
"""

from __future__ import annotations

from pathlib import Path


class LanderError(Exception):
    """Base class for all prlander failures.

    Attributes:
        next_step: Reproducible command or API call an operator can
            run to continue by hand, if any
    """

    def __init__(self, message: str, next_step: str | None = None):
        super().__init__(message)
        self.next_step = next_step


class ConfigurationError(LanderError):
    """Missing token or otherwise unusable configuration."""


class ParseError(LanderError):
    """Malformed input: version string, PR URL or manifest."""


class CommandFailed(LanderError):
    """A shell command exited non-zero."""

    def __init__(self, command: str, returncode: int, output: str = ""):
        super().__init__(
            f"Command failed ({returncode}): {command}\n{output}".rstrip()
        )
        self.command = command
        self.returncode = returncode
        self.output = output


class OperationAborted(LanderError):
    """The operator declined a confirmation prompt."""

    def __init__(self, description: str, command: str | None = None):
        super().__init__(
            f"Operation aborted by user: {description}", next_step=command
        )
        self.description = description


class ConflictError(LanderError):
    """A merge stopped on conflicts.

    Attributes:
        paths: Conflicted paths in the order git reported them
        resolvable: True when the conflict is a manifest
            version-only conflict that can be auto-resolved
    """

    resolvable = False

    def __init__(
        self, message: str, paths: list[str] | None = None,
        output: str = "",
    ):
        super().__init__(message)
        self.paths = list(paths or [])
        self.output = output


class ResolvableConflictError(ConflictError):
    """Manifest conflict that differs only in the version field."""

    resolvable = True


class UnresolvableConflictError(ConflictError):
    """Any other conflict shape. Needs a human."""

    def __init__(self, paths: list[str], base_ref: str):
        super().__init__(
            f"Merge conflicts detected in files: {', '.join(paths)}. "
            f"Resolve the conflicts of merging {base_ref} manually "
            f"and restart.",
            paths=paths,
        )
        self.base_ref = base_ref


class SyncExhausted(LanderError):
    """Branch sync did not converge within its iteration bound."""


class ProviderError(LanderError):
    """GitHub API returned a non-success response.

    Attributes:
        status_code: HTTP status, or None for transport failures
    """

    def __init__(
        self, message: str, status_code: int | None = None,
        next_step: str | None = None,
    ):
        super().__init__(message, next_step=next_step)
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Network failure or 5xx. The next polling round retries."""


class ApprovalMissing(LanderError):
    """The PR lacks the required number of approving reviews."""

    def __init__(self, pr_url: str, approvals: int, required: int):
        super().__init__(
            f"Pull request {pr_url} has {approvals} approval(s), "
            f"{required} required. Please request a review and restart."
        )
        self.approvals = approvals
        self.required = required


class RemediationExhausted(LanderError):
    """CI stayed red or pending through every remediation attempt."""

    def __init__(self, commit_sha: str, attempts: int, log_paths=()):
        logs = sorted(str(Path(p)) for p in log_paths)
        detail = f" Collected logs: {', '.join(logs)}" if logs else ""
        super().__init__(
            f"Checks for {commit_sha} still failing or pending after "
            f"{attempts} attempt(s).{detail}"
        )
        self.commit_sha = commit_sha
        self.attempts = attempts
        self.log_paths = logs


class PollExhausted(LanderError):
    """The pull request never became mergeable within the round budget."""

    def __init__(self, pr_url: str, rounds: int, last_state: str | None):
        super().__init__(
            f"Pull request {pr_url} not mergeable after {rounds} "
            f"polling round(s) (last state: {last_state or 'unknown'})."
        )
        self.rounds = rounds
        self.last_state = last_state


__all__ = [
    "LanderError",
    "ConfigurationError",
    "ParseError",
    "CommandFailed",
    "OperationAborted",
    "ConflictError",
    "ResolvableConflictError",
    "UnresolvableConflictError",
    "SyncExhausted",
    "ProviderError",
    "TransientProviderError",
    "ApprovalMissing",
    "RemediationExhausted",
    "PollExhausted",
]
