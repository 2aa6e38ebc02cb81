"""Package manager commands: lockfile refresh and version bump."""

from __future__ import annotations

from pathlib import Path

from prlander.core.confirm import AutoApprove, Confirm, require
from prlander.core.errors import ParseError
from prlander.core.log import logger
from prlander.core.runner import Runner

BUMP_KINDS = ("patch", "minor", "major")


class PackageManager:
    """Runs the ``package`` command templates (yarn by default)."""

    def __init__(
        self,
        workdir: Path,
        commands: dict[str, str],
        confirm: Confirm | None = None,
        runner: Runner | None = None,
        log=logger,
    ):
        self.workdir = Path(workdir)
        self.commands = commands
        self.confirm = confirm or AutoApprove(log=log)
        self.runner = runner or Runner()
        self.log = log

    def install(self) -> None:
        """Refresh the lockfile and installed dependencies."""
        command = self.commands["install"]
        require(
            self.confirm,
            "This will update your local lockfile and dependencies.",
            command,
        )
        self.runner.execute(command, cwd=self.workdir)
        self.log.info("Local dependencies updated")

    def bump(self, kind: str) -> None:
        """Bump the manifest version, creating the version commit and tag.

        Raises:
            ParseError: If kind is not patch, minor or major
        """
        if kind not in BUMP_KINDS:
            raise ParseError(
                f"Bump type must be one of: {', '.join(BUMP_KINDS)}"
            )
        command = self.commands["bump"].format(kind=kind)
        require(
            self.confirm,
            f"This will bump the version using {command}",
            command,
        )
        self.runner.execute(command, cwd=self.workdir)
        self.log.info(f"Version bump performed ({kind})")
