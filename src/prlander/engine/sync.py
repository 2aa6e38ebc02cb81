"""Keep the PR branch merged with its base branch."""

from __future__ import annotations

import time

from prlander.core.config import SyncConfig
from prlander.core.errors import (
    CommandFailed,
    ConflictError,
    ResolvableConflictError,
    SyncExhausted,
    UnresolvableConflictError,
)
from prlander.core.log import logger
from prlander.core.result import SyncState
from prlander.git.conflicts import is_version_only_conflict
from prlander.git.repo import is_up_to_date


class BranchSyncEngine:
    """Merges ``<remote>/<base>`` into the working branch until converged.

    A conflict confined to the manifest's version field is resolved by
    taking the base side. Every other conflict raises
    UnresolvableConflictError and is never retried.
    """

    def __init__(
        self,
        repo,
        packages,
        settings: SyncConfig | None = None,
        manifest: str = "package.json",
        sleep=time.sleep,
        log=logger,
    ):
        self.repo = repo
        self.packages = packages
        self.settings = settings or SyncConfig()
        self.manifest = manifest
        self.sleep = sleep
        self.log = log

    def sync(self, base: str, working: str) -> SyncState:
        """Merge base into the checked-out working branch once.

        Returns:
            SyncState with up_to_date=True only when git reported the
            merge as a no-op

        Raises:
            UnresolvableConflictError: For any conflict that is not a
                manifest version-only conflict
        """
        self.log.debug(f"Merging {self.repo.remote}/{base} into {working}")
        try:
            output = self.repo.merge(base)
        except ConflictError as e:
            conflict = self.classify(base, e.paths)
            if not conflict.resolvable:
                raise conflict from e
            return self._resolve(base, conflict)

        if is_up_to_date(output):
            return SyncState(up_to_date=True)
        return SyncState(up_to_date=False)

    def classify(self, base: str, paths: list[str]) -> ConflictError:
        """Sort a merge conflict into resolvable or not.

        Only a conflict confined to the manifest's version line is
        resolvable.
        """
        upstream = f"{self.repo.remote}/{base}"
        if paths != [self.manifest]:
            return UnresolvableConflictError(paths, upstream)

        content = self.repo.read_file(self.manifest)
        if not is_version_only_conflict(content):
            self.log.error(
                f"{self.manifest} conflict touches more than the version field"
            )
            return UnresolvableConflictError(paths, upstream)

        return ResolvableConflictError(
            f"{self.manifest} differs from {upstream} only in its version",
            paths=paths,
        )

    def _resolve(self, base: str, conflict: ConflictError) -> SyncState:
        self.repo.resolve_with_theirs(
            self.manifest,
            f"Auto-resolved {self.manifest} conflict from merging "
            f"{self.repo.remote}/{base}",
        )
        self.log.info(f"Auto-resolved {self.manifest} version conflict")
        return SyncState(
            up_to_date=False, conflicted_paths=conflict.paths, resolved=True,
        )

    def refresh(self, working: str) -> None:
        """Refresh dependencies and publish the merged branch."""
        self.log.info("New changes merged, updating dependencies")
        self.packages.install()
        self.repo.push(working)

    def converge(self, base: str, working: str) -> int:
        """Sync repeatedly until the working branch is up to date.

        Each iteration that merged something refreshes dependencies,
        pushes the working branch and waits settings.interval seconds.

        Returns:
            Number of iterations that merged changes

        Raises:
            UnresolvableConflictError: On any unresolvable conflict
            SyncExhausted: If settings.max_iterations is non-zero and
                reached before convergence
        """
        iterations = 0
        while True:
            with self.log.span("sync branch", base=base, working=working):
                try:
                    self.repo.fetch(base)
                except CommandFailed as e:
                    self.log.error(
                        f"Failed to fetch {base}", error=str(e)
                    )

                state = self.sync(base, working)
                if state.up_to_date:
                    self.log.info(
                        f"{working} is up to date with {base}",
                        iterations=iterations,
                    )
                    return iterations

                iterations += 1
                self.refresh(working)

            limit = self.settings.max_iterations
            if limit and iterations >= limit:
                raise SyncExhausted(
                    f"{working} still behind {base} after {iterations} "
                    f"sync iteration(s)"
                )
            self.log.info(
                f"Checking sync status again in {self.settings.interval:g}s"
            )
            self.sleep(self.settings.interval)
