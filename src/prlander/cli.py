#!/usr/bin/env python3
"""prlander CLI - land a GitHub pull request."""

import asyncio
import sys

from pydantic import Field
from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from prlander import __version__
from prlander.command.land import LandCommand
from prlander.command.status import StatusCommand
from prlander.core.config import State
from prlander.core.log import logger


class CliState(State):
    """Land a GitHub pull request: version bump, branch sync, CI
    remediation, approval check and merge.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.poll.max_rounds 60)
    2. prlander.yaml in the current directory, then the user config
       directory, then the package defaults
    3. .env file for secrets
    4. Environment variables (PRLANDER_CONFIG__GITHUB__TOKEN=value)
    """

    land: CliSubCommand[LandCommand]
    status: CliSubCommand[StatusCommand]

    version: bool = Field(
        default=False,
        description="Print the prlander version and exit",
    )

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        if self.version:
            print(f"prlander {__version__}")
            sys.exit(0)

        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Use logger as context manager to ensure files are closed on exit
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except KeyboardInterrupt:
                logger.warn("Interrupted")
                exit_code = 130
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
