"""Helpers shared by the land workflow nodes."""

from __future__ import annotations

from prlander.core.config import State
from prlander.core.confirm import AutoApprove, InteractivePrompt
from prlander.core.errors import ConfigurationError, OperationAborted
from prlander.core.log import logger
from prlander.core.runner import Runner
from prlander.git.manifest import local_version
from prlander.git.packages import PackageManager
from prlander.git.repo import GitRepo
from prlander.github.client import GitHubClient, resolve_token


def command_templates(state: State, category: str) -> dict[str, str]:
    """The configured command templates of one category.

    Raises:
        ConfigurationError: If the category is missing
    """
    templates = state.config.commands.get(category)
    if not templates:
        raise ConfigurationError(
            f"No '{category}' command templates configured "
            f"(commands.{category} in prlander.yaml)"
        )
    return templates


def ensure_client(state: State) -> GitHubClient:
    """The runtime's GitHub client, created from config if unset."""
    config = state.config
    land = state.runtime.land
    if land.client is None:
        token = resolve_token(config.github.token, runner=Runner())
        land.client = GitHubClient(
            land.pr,
            token,
            api_url=config.github.api_url,
            timeout=config.github.timeout,
        )
    return land.client


def ensure_collaborators(state: State) -> None:
    """Create whatever the runtime state does not already carry.

    Tests and embedders preset client, repo, packages and confirm;
    the CLI leaves them unset and gets the real implementations.
    """
    config = state.config
    land = state.runtime.land

    if land.confirm is None:
        land.confirm = (
            InteractivePrompt() if config.interactive else AutoApprove()
        )

    ensure_client(state)

    if land.repo is None:
        land.repo = GitRepo(
            config.git.workdir,
            command_templates(state, "git"),
            confirm=land.confirm,
            remote=config.git.remote,
        )

    if land.packages is None:
        land.packages = PackageManager(
            config.git.workdir,
            command_templates(state, "package"),
            confirm=land.confirm,
        )


def push_version_tag(state: State) -> str | None:
    """Push v<manifest version> according to the tag policy.

    ``ask`` pushes only if the push confirmation is accepted, ``auto``
    pushes without asking and ``skip`` never pushes.

    Returns:
        The pushed tag, or None if no tag was pushed
    """
    land = state.runtime.land
    if land.tag_mode == "skip":
        logger.info("Skipping tag push")
        return None

    version = local_version(state.config.git.workdir, state.config.git.manifest)
    tag = f"v{version}"
    try:
        land.repo.push_tag(tag, ask=land.tag_mode == "ask")
    except OperationAborted:
        logger.info("Skipping tag push")
        return None

    land.tag = tag
    logger.info(f"Tag {tag} pushed successfully")
    return tag
