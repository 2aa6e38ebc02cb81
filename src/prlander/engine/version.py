"""Decide whether the PR branch needs a merge-forward and version bump."""

from __future__ import annotations

import semver
from pydantic import BaseModel, ConfigDict

from prlander.core.errors import ParseError


def parse_version(text: str) -> semver.Version:
    """Parse a semantic version, tolerating a leading ``v``.

    Raises:
        ParseError: If text is not a valid semantic version
    """
    candidate = (text or "").strip()
    if candidate[:1] in ("v", "V"):
        candidate = candidate[1:]
    try:
        return semver.Version.parse(candidate)
    except (ValueError, TypeError) as e:
        raise ParseError(f"Invalid semantic version: {text!r}") from e


class VersionPair(BaseModel):
    """Default branch version and PR branch version, both parsed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base: semver.Version
    candidate: semver.Version

    @classmethod
    def parse(cls, candidate: str, base: str) -> VersionPair:
        return cls(base=parse_version(base), candidate=parse_version(candidate))

    @property
    def bump_required(self) -> bool:
        return self.candidate <= self.base


def needs_bump(candidate: str, base: str) -> bool:
    """True when the PR version is not ahead of the default branch.

    Uses semver precedence, so pre-releases sort before their release
    and equal versions also require a bump.

    Args:
        candidate: Version on the PR branch
        base: Version on the default branch
    """
    return VersionPair.parse(candidate, base).bump_required
