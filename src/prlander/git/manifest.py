"""Read the version field of the project manifest."""

from __future__ import annotations

import json
from pathlib import Path

from prlander.core.errors import ParseError


def read_version(text: str, source: str = "manifest") -> str:
    """Return the ``version`` string of a JSON manifest.

    Raises:
        ParseError: If the text is not JSON or has no string version
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in {source}: {e}") from e

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise ParseError(f"No version field in {source}")
    return version.strip()


def local_version(workdir: Path, manifest: str = "package.json") -> str:
    """Version in the working copy."""
    path = Path(workdir) / manifest
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ParseError(f"Cannot read {path}: {e}") from e
    return read_version(text, source=str(path))


def branch_version(repo, branch: str, manifest: str = "package.json") -> str:
    """Version on <remote>/<branch>, read with git show."""
    text = repo.show_file(branch, manifest)
    return read_version(text, source=f"{repo.remote}/{branch}:{manifest}")
