"""
Version parsing and comparison for agent and extension versions.

Versions are canonicalized to a 4-component numeric tuple
(major, minor, build, revision). Missing trailing components are padded
with 0 so that "1.2" and "1.2.0.0" compare equal. Anything that cannot be
expressed that way is INCOMPARABLE, never EQUAL.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

from packaging.version import InvalidVersion, Version

COMPONENTS = 4


class Comparison(enum.Enum):
    """Outcome of comparing two version strings."""

    LESS = -1
    EQUAL = 0
    GREATER = 1
    INCOMPARABLE = None


@dataclass(frozen=True, order=True)
class VersionIdentifier:
    """
    Canonical version.

    Attributes:
        parts: Numeric (major, minor, build, revision) tuple
        original: String the identifier was parsed from
    """
    parts: tuple[int, int, int, int]
    original: str = field(default="", compare=False)

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)


def parse_version(text: str | None) -> VersionIdentifier | None:
    """
    Parse a dotted version string into a VersionIdentifier.

    Only plain release versions with 1-4 numeric components are accepted.
    Pre-releases, post/dev/local segments and epochs are rejected.

    Args:
        text: Version string (e.g., "1.2", "v1.36.2311.5")

    Returns:
        VersionIdentifier, or None if the string cannot be normalized
    """
    if not text:
        return None

    raw = text.strip()
    try:
        parsed = Version(raw)
    except InvalidVersion:
        return None

    if parsed.epoch or parsed.pre or parsed.post is not None or parsed.dev is not None or parsed.local:
        return None

    release = parsed.release
    if len(release) > COMPONENTS:
        return None

    padded = tuple(release) + (0,) * (COMPONENTS - len(release))
    return VersionIdentifier(parts=padded, original=raw)


def compare_versions(a: str | None, b: str | None) -> Comparison:
    """
    Compare two version strings.

    Args:
        a: First version
        b: Second version

    Returns:
        LESS if a < b, EQUAL if a == b, GREATER if a > b,
        INCOMPARABLE if either side cannot be parsed
    """
    left = parse_version(a)
    right = parse_version(b)
    if left is None or right is None:
        return Comparison.INCOMPARABLE

    if left.parts < right.parts:
        return Comparison.LESS
    if left.parts > right.parts:
        return Comparison.GREATER
    return Comparison.EQUAL


def is_outdated(current: str | None, latest: str | None) -> bool:
    """True only when both versions are known and current < latest."""
    return compare_versions(current, latest) is Comparison.LESS


def latest_version(candidates: Iterable[str]) -> str | None:
    """
    Pick the highest version from a collection of version strings.

    Malformed candidates are skipped.

    Args:
        candidates: Version strings

    Returns:
        The original string of the highest version, or None if none parse
    """
    best: VersionIdentifier | None = None
    for candidate in candidates:
        parsed = parse_version(candidate)
        if parsed is None:
            continue
        if best is None or parsed > best:
            best = parsed
    return best.original if best is not None else None
