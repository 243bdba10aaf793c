"""
Mapping of OS SKU descriptions to package repository endpoints.

An OS SKU such as "Ubuntu 20.04.6 LTS" or "Red Hat Enterprise Linux 8.6 (Ootpa)"
resolves to a DistributionProfile naming the distro family, the version token
the repository uses and the directory listing that holds the agent packages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_PACKAGE = "azcmagent"

REPOSITORY_BASE = "https://packages.microsoft.com"

# One repository layout per supported family
ENDPOINT_TEMPLATES = {
    "ubuntu": REPOSITORY_BASE + "/ubuntu/{version}/prod/pool/main/{initial}/{package}/",
    "debian": REPOSITORY_BASE + "/debian/{version}/prod/pool/main/{initial}/{package}/",
    "rhel": REPOSITORY_BASE + "/rhel/{version}/prod/Packages/{initial}/",
    "centos": REPOSITORY_BASE + "/centos/{version}/prod/Packages/{initial}/",
    "sles": REPOSITORY_BASE + "/sles/{version}/prod/Packages/{initial}/",
    "amazonlinux": REPOSITORY_BASE + "/amazonlinux/{version}/prod/Packages/{initial}/",
}

# Ordered: first match wins
FAMILY_PATTERNS = [
    (re.compile(r"^ubuntu\b", re.IGNORECASE), "ubuntu"),
    (re.compile(r"^debian\b", re.IGNORECASE), "debian"),
    (re.compile(r"^(red\s*hat\s+enterprise\s+linux|rhel|oracle\s+linux)\b", re.IGNORECASE), "rhel"),
    (re.compile(r"^centos\b", re.IGNORECASE), "centos"),
    (re.compile(r"^(suse\s+linux\s+enterprise|sles)\b", re.IGNORECASE), "sles"),
    (re.compile(r"^amazon\s*linux\b", re.IGNORECASE), "amazonlinux"),
]

RHEL_FAMILY = {"rhel", "centos"}

_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)")
_LTS_RE = re.compile(r"\bLTS\b", re.IGNORECASE)
_SKU_RE = re.compile(r"^(?P<name>.*?)\s*(?P<version>\b\d\S*(?:\s+.*)?)?$")


@dataclass(frozen=True)
class DistributionProfile:
    """
    Resolved package repository for a Linux machine.

    Attributes:
        family: Distro family (ubuntu, debian, rhel, centos, sles, amazonlinux)
        version: Version token as used in the repository path
        endpoint: Directory listing URL holding the agent packages
    """
    family: str
    version: str
    endpoint: str


@dataclass(frozen=True)
class UnresolvedDistribution:
    """
    OS SKU that does not map to a supported repository.

    Attributes:
        token: Distro name token extracted from the SKU (for diagnostics)
        os_sku: The original SKU string
    """
    token: str
    os_sku: str = ""


def split_os_sku(os_sku: str) -> tuple[str, str]:
    """
    Split an OS SKU into a distro name token and a version token.

    Trailing parenthetical build info and "LTS" suffixes are ignored.

    Args:
        os_sku: Free-text OS SKU (e.g., "CentOS Linux 7.9.2009 (Core)")

    Returns:
        (name, version) where version may be empty
    """
    cleaned = _PARENTHETICAL_RE.sub("", os_sku or "")
    cleaned = _LTS_RE.sub("", cleaned)
    cleaned = " ".join(cleaned.split())

    match = _SKU_RE.match(cleaned)
    if not match:
        return cleaned, ""
    return match.group("name").strip(), (match.group("version") or "").strip()


def detect_family(name: str) -> str | None:
    """Map a distro name token to a supported family."""
    for pattern, family in FAMILY_PATTERNS:
        if pattern.search(name):
            return family
    return None


def family_version(family: str, version: str) -> str:
    """
    Reduce a raw version token to the form the family's repository uses.

    Ubuntu keeps major.minor, the RHEL family keeps the integer major,
    everything else keeps the first whitespace-delimited token.
    """
    if family == "ubuntu":
        match = re.match(r"\d+\.\d+", version)
        return match.group(0) if match else version.split()[0]
    if family in RHEL_FAMILY:
        match = re.match(r"\d+", version)
        return match.group(0) if match else version.split()[0]
    return version.split()[0]


def resolve_distribution(
    os_sku: str,
    package: str = DEFAULT_PACKAGE,
) -> DistributionProfile | UnresolvedDistribution:
    """
    Resolve an OS SKU to a package repository profile.

    Args:
        os_sku: Free-text OS SKU reported by the machine
        package: Agent package name used in repository paths

    Returns:
        DistributionProfile, or UnresolvedDistribution if the distro is
        unsupported or carries no version
    """
    name, version = split_os_sku(os_sku)
    family = detect_family(name)
    if family is None or not version:
        return UnresolvedDistribution(token=name, os_sku=os_sku or "")

    token = family_version(family, version)
    endpoint = ENDPOINT_TEMPLATES[family].format(
        version=token,
        package=package,
        initial=package[:1],
    )
    return DistributionProfile(family=family, version=token, endpoint=endpoint)
