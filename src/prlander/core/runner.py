"""Command execution using invoke library with custom extensions."""

import contextlib
import io
import os
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut, UnexpectedExit

from prlander.core.errors import CommandFailed
from prlander.core.log import logger

# Keep git and yarn messages parseable regardless of the user's locale
DEFAULT_ENV = {"LC_ALL": "C", "GIT_TERMINAL_PROMPT": "0"}


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    All git and package-manager commands go through execute(), which
    captures output, logs it and turns a non-zero exit into
    CommandFailed.
    """

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's kill() sends signal.SIGKILL, which does not exist on
        Windows. os.kill() there accepts a number and passes it to
        TerminateProcess(), so 9 is used directly.
        """
        import platform

        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        log_file: Path | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Execute a command and capture its output.

        Args:
            command: Command string to execute
            cwd: Working directory for command execution
            timeout: Maximum execution time in seconds
            stdin: String to send to command's stdin
            log_file: Path to write combined stdout/stderr output
            check: If True, raise CommandFailed on non-zero exit
            env: Extra environment variables (merged into os.environ)

        Returns:
            invoke.Result with stdout, stderr, exited (return code)

        Raises:
            CommandFailed: If check=True and the command fails or
                times out
        """
        kwargs = {
            "hide": True,
            "warn": True,
            "in_stream": False,
            "env": {**DEFAULT_ENV, **(env or {})},
        }
        if timeout:
            kwargs["timeout"] = timeout
        if stdin:
            kwargs["in_stream"] = io.StringIO(stdin)

        logger.debug("Running command", command=command, cwd=str(cwd or ""))

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1
        except UnexpectedExit as e:
            result = e.result

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            log_file.write_text(result.stdout + result.stderr)

        logger.spew(
            "Command output",
            command=command,
            exited=result.exited,
            stdout=result.stdout,
            stderr=result.stderr,
        )

        if check and result.exited != 0:
            raise CommandFailed(
                command, result.exited, (result.stdout + result.stderr).strip()
            )

        return result
