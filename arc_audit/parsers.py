"""
Extraction of version identifiers from raw upstream responses.

Each upstream source has its own parser. The regular expressions here are a
compatibility contract with the upstream page layouts: when a page changes,
only this module needs to follow.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from .versions import latest_version

# "AzureConnectedMachineAgent Version 1.36" on the update catalog search page
CATALOG_VERSION_RE = re.compile(
    r"AzureConnectedMachineAgent\s+Version\s+(\d+(?:\.\d+){1,3})",
    re.IGNORECASE,
)


def repository_package_pattern(package: str) -> re.Pattern[str]:
    """Build the filename pattern for a package in a repository index.

    Matches e.g. ``azcmagent_1.36.02311.654_amd64.deb``.
    """
    return re.compile(rf"{re.escape(package)}_(\d+\.\d+\.\d+\.\d+)_amd64\.[A-Za-z]+")


def parse_catalog_version(body: str) -> str | None:
    """Extract the agent version from an update catalog search page.

    Args:
        body: Raw HTML of the catalog search results

    Returns:
        Highest version mentioned on the page, or None if the pattern is absent
    """
    return latest_version(m.group(1) for m in CATALOG_VERSION_RE.finditer(body or ""))


def parse_repository_versions(body: str, package: str) -> list[str]:
    """Extract all package versions listed in a repository directory index.

    Args:
        body: Raw HTML directory listing
        package: Package name (e.g., "azcmagent")

    Returns:
        Versions in page order (may contain duplicates across .deb/.rpm)
    """
    return [m.group(1) for m in repository_package_pattern(package).finditer(body or "")]


def parse_repository_latest(body: str, package: str) -> str | None:
    """Latest package version in a repository index, or None if none match."""
    return latest_version(parse_repository_versions(body, package))


def parse_extension_versions(entries: Iterable[dict[str, Any]] | None) -> str | None:
    """Return the version of the first extension metadata entry.

    Args:
        entries: Extension image entries, each carrying a ``version`` field

    Returns:
        Version string, or None if there are no entries
    """
    first = next(iter(entries or ()), None)
    if not isinstance(first, dict):
        return None
    version = str(first.get("version") or "").strip()
    return version or None
