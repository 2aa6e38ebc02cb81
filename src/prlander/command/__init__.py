"""CLI command modules for prlander."""

from prlander.command.land import LandCommand
from prlander.command.status import StatusCommand

__all__ = ["LandCommand", "StatusCommand"]
