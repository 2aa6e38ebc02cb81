"""Parse git conflict markers and classify manifest conflicts."""

import re
from dataclasses import dataclass

VERSION_LINE = re.compile(r'^\s*"version"\s*:\s*"[^"]*"\s*,?\s*$')


@dataclass
class Hunk:
    """One conflicted region of a file."""

    ours: list[str]
    theirs: list[str]
    base: list[str] | None
    ours_ref: str
    theirs_ref: str
    start_line: int


def parse(file_content: str) -> list[Hunk]:
    """Split file content into its conflict hunks.

    Handles both the default two-way markers and diff3 style, where a
    ``|||||||`` section carries the merge base.

    Raises:
        ValueError: If conflict markers are malformed
    """
    hunks = []
    lines = file_content.splitlines()
    i = 0

    while i < len(lines):
        if not lines[i].startswith("<<<<<<<"):
            i += 1
            continue

        start = i
        ours_ref = lines[i][7:].strip() or "ours"

        base_idx = None
        separator_idx = None
        for j in range(i + 1, len(lines)):
            if lines[j].startswith("|||||||") and base_idx is None:
                base_idx = j
            elif lines[j].startswith("======="):
                separator_idx = j
                break
            elif lines[j].startswith("<<<<<<<"):
                break
        if separator_idx is None:
            raise ValueError(
                f"Malformed conflict at line {start + 1}: no separator found"
            )

        end_idx = None
        for j in range(separator_idx + 1, len(lines)):
            if lines[j].startswith(">>>>>>>"):
                end_idx = j
                break
        if end_idx is None:
            raise ValueError(
                f"Malformed conflict at line {start + 1}: no end marker found"
            )

        ours_end = base_idx if base_idx is not None else separator_idx
        hunks.append(Hunk(
            ours=lines[start + 1:ours_end],
            theirs=lines[separator_idx + 1:end_idx],
            base=(
                lines[base_idx + 1:separator_idx]
                if base_idx is not None else None
            ),
            ours_ref=ours_ref,
            theirs_ref=lines[end_idx][7:].strip() or "theirs",
            start_line=start + 1,
        ))
        i = end_idx + 1

    return hunks


def is_version_only(hunk: Hunk) -> bool:
    """True when each side is exactly one ``"version": "..."`` line."""
    return (
        len(hunk.ours) == 1
        and len(hunk.theirs) == 1
        and bool(VERSION_LINE.match(hunk.ours[0]))
        and bool(VERSION_LINE.match(hunk.theirs[0]))
    )


def is_version_only_conflict(file_content: str) -> bool:
    """True when the file has conflicts and all are version-only.

    Malformed markers count as not version-only.
    """
    try:
        hunks = parse(file_content)
    except ValueError:
        return False
    return bool(hunks) and all(is_version_only(h) for h in hunks)
