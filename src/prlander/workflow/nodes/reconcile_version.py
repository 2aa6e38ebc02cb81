"""ReconcileVersion node - bump the PR version when it is not ahead."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from prlander.core.config import State
from prlander.core.errors import ConfigurationError
from prlander.core.log import logger
from prlander.engine.sync import BranchSyncEngine
from prlander.engine.version import needs_bump
from prlander.git.manifest import branch_version, local_version


@dataclass
class ReconcileVersion(BaseNode[State]):
    """Compare manifest versions and bump the PR branch if required.

    A bump merges the default branch forward once, refreshes
    dependencies when that merge brought changes, runs the package
    manager's version bump and pushes the PR branch.
    """

    async def run(self, ctx: GraphRunContext[State]) -> "SyncBranch":
        config = ctx.state.config
        land = ctx.state.runtime.land
        default_branch = land.repository.default_branch
        working = land.snapshot.head_ref
        manifest = config.git.manifest

        with logger.span("reconcile version", manifest=manifest):
            land.repo.fetch(default_branch)
            land.base_version = branch_version(
                land.repo, default_branch, manifest
            )
            land.candidate_version = local_version(config.git.workdir, manifest)
            logger.info(
                f"Default branch {manifest} version: {land.base_version}"
            )
            logger.info(
                f"PR branch {manifest} version: {land.candidate_version}"
            )

            if not needs_bump(land.candidate_version, land.base_version):
                logger.info(
                    "PR branch version is greater than the default branch "
                    "version. No version bump required."
                )
            elif not land.version_bump:
                logger.warn(
                    "PR branch version is not ahead of the default branch, "
                    "but version bumping is disabled"
                )
            else:
                self._bump(ctx.state, default_branch, working)

        from prlander.workflow.nodes.sync_branch import SyncBranch
        return SyncBranch()

    def _bump(self, state: State, default_branch: str, working: str) -> None:
        config = state.config
        land = state.runtime.land
        if land.bump is None:
            raise ConfigurationError(
                f"PR version {land.candidate_version} is not ahead of "
                f"{land.base_version}; a bump type (patch, minor or major) "
                f"is required"
            )

        logger.info("Merging default branch into PR branch")
        engine = BranchSyncEngine(
            land.repo,
            land.packages,
            settings=config.sync,
            manifest=config.git.manifest,
            sleep=land.sleep,
        )
        merged = engine.sync(default_branch, working)
        if merged.up_to_date:
            logger.info(
                "No changes detected from merging default branch, "
                "skipping dependency update"
            )
        else:
            land.packages.install()

        logger.info(f'Bumping version using "{land.bump}"')
        land.packages.bump(land.bump)
        land.repo.push(working)

        land.bumped = True
        land.candidate_version = local_version(
            config.git.workdir, config.git.manifest
        )
        logger.info(f"PR branch version is now {land.candidate_version}")
