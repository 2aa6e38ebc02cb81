"""Application state and configuration."""

from __future__ import annotations

import os
import re
import time
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from prlander.core.base import BaseConfig, BaseState
from prlander.core.log import Logger
from prlander.core.yaml_settings import (
    CONFIG_FILENAME,
    YamlWithIncludesSettingsSource,
)

# ============================================================
# TEMPLATE SUBSTITUTION NAMESPACE
# ============================================================

# Usage in YAML: {platformdirs.user_log_dir}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GitHubConfig(BaseConfig):
    """GitHub API access and merge settings."""

    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    token: str | None = Field(
        default=None,
        description=(
            "API token. If unset, GITHUB_TOKEN is used, then "
            "'gh auth token'"
        ),
    )
    merge_method: str = Field(
        default="merge",
        description="Merge method: 'merge', 'squash' or 'rebase'",
    )
    commit_title: str = Field(
        default="Auto-merge pull request #{number}",
        description="Merge commit title ({number} is the PR number)",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP timeout for each API call in seconds",
    )


class GitConfig(BaseConfig):
    """Local checkout of the pull request's repository."""

    workdir: Path = Field(
        default_factory=Path.cwd,
        description="Path to the local git working directory",
    )
    remote: str = Field(
        default="origin",
        description="Remote that hosts both branches",
    )
    manifest: str = Field(
        default="package.json",
        description="Manifest file carrying the version field",
    )


class SyncConfig(BaseConfig):
    """Branch sync loop settings."""

    model_config = ConfigDict(frozen=True)

    interval: float = Field(
        default=60.0,
        description="Seconds to wait after each sync that merged changes",
    )
    max_iterations: int = Field(
        default=0,
        description=(
            "Maximum non-converged sync iterations (0 = until up to date)"
        ),
    )


class PollConfig(BaseConfig):
    """Mergeability poller settings."""

    model_config = ConfigDict(frozen=True)

    max_rounds: int = Field(
        default=30,
        description="Maximum number of polling rounds",
    )
    interval: float = Field(
        default=30.0,
        description="Seconds between polling rounds",
    )
    required_approvals: int = Field(
        default=1,
        description="Minimum number of reviewers whose latest review approves",
    )
    post_remediation_delay: float = Field(
        default=5.0,
        description="Seconds to wait after successful CI remediation",
    )


class RemediationConfig(BaseConfig):
    """CI remediation settings."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(
        default=3,
        description="Remediation attempts after the first inspection",
    )
    backoff: float = Field(
        default=30.0,
        description="Seconds to wait between remediation attempts",
    )
    logs_dir: Path = Field(
        default=Path("logs"),
        description="Directory for downloaded workflow run logs",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    github: GitHubConfig = Field(
        default_factory=GitHubConfig,
        description="GitHub API settings",
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Local repository settings",
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Branch sync loop settings",
    )
    poll: PollConfig = Field(
        default_factory=PollConfig,
        description="Mergeability poller settings",
    )
    remediation: RemediationConfig = Field(
        default_factory=RemediationConfig,
        description="CI remediation settings",
    )

    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_name: str = Field(
        default="prlander",
        description="Run name used for the log directory",
    )
    interactive: bool = Field(
        default=True,
        description="Ask for confirmation before each dangerous action",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "prlander"
        ),
        description=(
            "Root directory for all log files "
            "(supports {platformdirs.*} templates)"
        ),
    )
    commands: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Command templates by category (git, package)",
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Configure the global logger singleton from the loaded config."""
        from prlander.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        # An explicit --config.log-level wins over the logger section
        level = self.logger.level
        console = self.logger.console
        if "log_level" in self.model_fields_set:
            level = self.log_level
            console = console.model_copy(update={"level": level})

        setup_logger(
            log_root=self.log_root,
            run_name=self.log_name,
            level=level,
            console=console,
            file=self.logger.file,
            otlp=self.logger.otlp,
        )

        from prlander.core.yaml_settings import _cleanup_bootstrap_logger
        _cleanup_bootstrap_logger()

        return self

    def close(self):
        """Close the global logger, then the other children."""
        from prlander.core.log import logger
        if logger is not None:
            logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class LandState(BaseState):
    """Land workflow runtime state (mutates during execution)."""

    pr: Any = Field(default=None, description="PullRequestRef being landed")
    client: Any = Field(default=None, description="GitHubClient instance")
    repository: Any = Field(
        default=None, description="Repository details from GitHub",
    )
    snapshot: Any = Field(
        default=None, description="Latest PullRequestSnapshot",
    )
    repo: Any = Field(default=None, description="GitRepo for the checkout")
    packages: Any = Field(
        default=None, description="PackageManager for the checkout",
    )
    confirm: Any = Field(
        default=None, description="Confirmation policy for dangerous actions",
    )
    sleep: Any = Field(
        default=time.sleep, description="Sleep function used by all waits",
    )
    bump: str | None = Field(
        default=None, description="Version bump kind: patch, minor, major",
    )
    version_bump: bool = Field(
        default=True, description="Whether a version bump may be performed",
    )
    tag_mode: str = Field(
        default="ask",
        description="Tag push policy after a bump: ask, auto, skip",
    )
    tag: str | None = Field(default=None, description="Version tag pushed")
    base_version: str | None = None
    candidate_version: str | None = None
    bumped: bool = False
    sync_iterations: int = 0
    outcome: Any = Field(default=None, description="Final PollOutcome")
    merge_sha: str | None = None
    status: str = Field(
        default="pending",
        description=(
            "Workflow status: pending, running, already_merged, merged, "
            "failed"
        ),
    )


class Runtime(BaseModel):
    """All runtime state organized by workflow."""

    land: LandState = Field(
        default_factory=LandState,
        description="Land workflow runtime state"
    )


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Complete application state: configuration and runtime.

    - config: loaded once from YAML/env/CLI, not mutated afterwards
    - runtime: mutated by workflow nodes
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=CONFIG_FILENAME,
        env_file=".env",
        env_prefix="PRLANDER_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init args, YAML, .env, environment, file secrets."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.*} and {platformdirs.*} templates everywhere."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        elif isinstance(value, BaseModel) and value.model_config.get("frozen"):
            # Frozen sections are rebuilt instead of mutated in place
            updates = {
                name: self._substitute_value(getattr(value, name))
                for name in value.__class__.model_fields
            }
            return value.model_copy(update=updates)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.git.workdir}/logs" -> "/home/user/repo/logs"
            "{platformdirs.user_log_dir}" -> "~/.local/state/prlander/log"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    obj = obj('prlander', appauthor=False)

                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
