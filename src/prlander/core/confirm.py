"""Confirmation policies for dangerous actions.

Every action that changes the working tree, the remote or the pull
request asks a Confirm policy first. The CLI uses InteractivePrompt
unless --auto-approve is given; tests and CI use AutoApprove.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from prlander.core.errors import OperationAborted
from prlander.core.log import logger

BANNER = "=" * 80


@runtime_checkable
class Confirm(Protocol):
    """Decides whether a described action may proceed."""

    def __call__(self, description: str, command: str = "") -> bool:
        ...


class AutoApprove:
    """Approves everything, logging what was approved."""

    def __init__(self, log=logger):
        self.log = log
        self.approved: list[str] = []

    def __call__(self, description: str, command: str = "") -> bool:
        self.approved.append(description)
        self.log.info(f"Auto-approved: {description}", command=command)
        return True


class InteractivePrompt:
    """Prints the action and its reproducible command, then asks y/n."""

    def __init__(self, stdin=None, stdout=None, log=logger):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.log = log

    def __call__(self, description: str, command: str = "") -> bool:
        out = self.stdout
        out.write(f"\n{BANNER}\n")
        out.write(f"ACTION: {description}\n")
        if command:
            out.write(f"REPRODUCIBLE COMMAND/API CALL:\n{command}\n")
        out.write(f"{BANNER}\n")
        out.write("Do you want to continue? (y/n): ")
        out.flush()

        answer = self.stdin.readline().strip()
        self.log.debug("Confirmation answer", action=description, answer=answer)
        return answer.lower().startswith("y")


def require(confirm: Confirm, description: str, command: str = "") -> None:
    """Ask confirm and raise OperationAborted on a decline."""
    if not confirm(description, command):
        raise OperationAborted(description, command or None)


__all__ = ["Confirm", "AutoApprove", "InteractivePrompt", "require"]
