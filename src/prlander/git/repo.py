"""Git operations on the local checkout of the pull request."""

from __future__ import annotations

import re
import shlex
from pathlib import Path

from prlander.core.confirm import AutoApprove, Confirm, require
from prlander.core.errors import CommandFailed, ConflictError
from prlander.core.log import logger
from prlander.core.runner import Runner

ALREADY_UP_TO_DATE = re.compile(r"Already up[ -]to[ -]date", re.IGNORECASE)


def is_up_to_date(merge_output: str) -> bool:
    """True when git reported the merge as a no-op."""
    return bool(ALREADY_UP_TO_DATE.search(merge_output or ""))


class GitRepo:
    """Runs the configured git command templates in one working tree.

    Commands that change the working tree or the remote ask the
    confirmation policy first and raise OperationAborted on a decline.
    Read-only commands run without asking.
    """

    def __init__(
        self,
        workdir: Path,
        commands: dict[str, str],
        confirm: Confirm | None = None,
        remote: str = "origin",
        runner: Runner | None = None,
        log=logger,
    ):
        self.workdir = Path(workdir)
        self.commands = commands
        self.confirm = confirm or AutoApprove(log=log)
        self.remote = remote
        self.runner = runner or Runner()
        self.log = log

    def render(self, name: str, **values) -> str:
        """Fill a command template, shell-quoting every value."""
        quoted = {k: shlex.quote(str(v)) for k, v in values.items()}
        return self.commands[name].format(remote=self.remote, **quoted)

    def _run(self, name: str, description: str | None = None,
             check: bool = True, **values):
        command = self.render(name, **values)
        if description:
            require(self.confirm, description, command)
        return self.runner.execute(command, cwd=self.workdir, check=check)

    # ------------------------------------------------------------
    # Read-only
    # ------------------------------------------------------------

    def current_branch(self) -> str:
        return self._run("current_branch").stdout.strip()

    def head_sha(self) -> str:
        return self._run("head_sha").stdout.strip()

    def conflicted_paths(self) -> list[str]:
        """Unmerged paths, in git's order."""
        output = self._run("conflicted_paths").stdout
        return [line.strip() for line in output.splitlines() if line.strip()]

    def show_file(self, ref: str, path: str) -> str:
        """Content of path at <remote>/<ref>."""
        return self._run("show", ref=ref, path=path).stdout

    def read_file(self, path: str) -> str:
        return (self.workdir / path).read_text(encoding="utf-8")

    def fetch(self, ref: str) -> None:
        self._run("fetch", ref=ref)

    # ------------------------------------------------------------
    # Mutating
    # ------------------------------------------------------------

    def merge(self, ref: str) -> str:
        """Merge <remote>/<ref> into the current branch.

        Returns:
            git's merge output

        Raises:
            ConflictError: If the merge stopped on conflicts
            CommandFailed: If it failed for any other reason
        """
        try:
            result = self._run(
                "merge",
                description=(
                    f"This will merge {self.remote}/{ref} into the "
                    f"current branch."
                ),
                ref=ref,
            )
        except CommandFailed as e:
            paths = self.conflicted_paths()
            if not paths:
                raise
            raise ConflictError(
                f"Merging {self.remote}/{ref} produced conflicts in: "
                f"{', '.join(paths)}",
                paths=paths,
                output=e.output,
            ) from e
        return result.stdout

    def checkout_theirs(self, path: str) -> None:
        self._run("checkout_theirs", path=path)

    def add(self, path: str) -> None:
        self._run("add", path=path)

    def commit(self, message: str) -> None:
        self._run("commit", message=message)

    def resolve_with_theirs(self, path: str, message: str) -> None:
        """Take the incoming side of path, stage it and commit.

        One confirmation covers all three steps.
        """
        steps = " && ".join([
            self.render("checkout_theirs", path=path),
            self.render("add", path=path),
            self.render("commit", message=message),
        ])
        require(self.confirm, f"Auto-resolving {path} conflict", steps)
        self.checkout_theirs(path)
        self.add(path)
        self.commit(message)

    def push(self, branch: str) -> None:
        self._run(
            "push",
            description=(
                f'This will push the branch "{branch}" to {self.remote}.'
            ),
            branch=branch,
        )

    def push_tag(self, tag: str, ask: bool = True) -> None:
        """Push tag to the remote, asking first unless ask is False."""
        description = (
            f"This will push the new tag {tag} to {self.remote}." if ask
            else None
        )
        self._run("push_tag", description=description, tag=tag)

    def checkout(self, branch: str) -> None:
        """Check out branch, resetting it to <remote>/<branch>."""
        self._run(
            "checkout_tracking",
            description=f"Checking out branch {branch}",
            branch=branch,
        )

    def pull(self) -> None:
        self._run("pull", description="Pulling latest changes")

    def clone(self, url: str) -> bool:
        """Clone url into workdir unless a checkout is already there.

        Returns:
            True if a clone was made
        """
        if (self.workdir / ".git").exists():
            self.log.debug(f"{self.workdir} is already a git checkout")
            return False
        command = self.render("clone", url=url, dest=self.workdir)
        require(
            self.confirm,
            f"This will clone {url} into {self.workdir}.",
            command,
        )
        self.workdir.parent.mkdir(parents=True, exist_ok=True)
        self.runner.execute(command, cwd=self.workdir.parent)
        self.log.info(f"Cloned {url} into {self.workdir}")
        return True

    def prepare_branch(self, branch: str) -> None:
        """Get onto branch with the latest remote commits."""
        if self.current_branch() == branch:
            self.log.info(f'Already on branch "{branch}", pulling')
        else:
            self.fetch(branch)
            self.log.info(f'Checking out branch "{branch}"')
            self.checkout(branch)
        self.pull()
