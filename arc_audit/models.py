"""
Data model for fleet audits.

Machines and extensions arrive as JSON from the inventory; they are converted
into the frozen dataclasses below so every field used downstream is declared.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

OS_TYPES = ("windows", "linux", "other")


def _lookup(data: dict[str, Any], *paths: str) -> Any:
    """Return the first non-empty value among dotted key paths."""
    for path in paths:
        node: Any = data
        for key in path.split("."):
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(key)
        if node not in (None, ""):
            return node
    return None


def _normalize_os_type(value: Any) -> str:
    os_type = str(value or "").strip().lower()
    return os_type if os_type in ("windows", "linux") else "other"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass(frozen=True)
class Machine:
    """
    Registered server as reported by the inventory.

    Attributes:
        name: Machine name
        resource_group: Resource group (scope) the machine belongs to
        os_type: "windows", "linux" or "other"
        os_sku: Free-text OS description (e.g., "Ubuntu 22.04.3 LTS")
        status: Agent status (Connected, Disconnected, Expired, ...)
        config_mode: Agent configuration mode ("full", "monitor", ...)
        automatic_upgrade: Whether automatic agent upgrade is enabled
        agent_version: Installed agent version, if reported
        location: Region the machine resource lives in
    """
    name: str
    resource_group: str
    os_type: str = "other"
    os_sku: str = ""
    status: str = ""
    config_mode: str = ""
    automatic_upgrade: bool = False
    agent_version: str | None = None
    location: str = ""

    @property
    def key(self) -> str:
        """Identity of the machine within the fleet (resource group / name)."""
        return f"{self.resource_group}/{self.name}"

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Machine:
        """Create Machine from `az connectedmachine list` JSON."""
        return Machine(
            name=_lookup(data, "name") or "",
            resource_group=_lookup(data, "resourceGroup") or "",
            os_type=_normalize_os_type(_lookup(data, "osType", "properties.osType")),
            os_sku=_lookup(data, "osSku", "properties.osSku") or "",
            status=_lookup(data, "status", "properties.status") or "",
            config_mode=_lookup(
                data,
                "agentConfiguration.configMode",
                "properties.agentConfiguration.configMode",
            ) or "",
            automatic_upgrade=_as_bool(_lookup(
                data,
                "agentUpgrade.enableAutomaticUpgrade",
                "properties.agentUpgrade.enableAutomaticUpgrade",
            )),
            agent_version=_lookup(data, "agentVersion", "properties.agentVersion"),
            location=_lookup(data, "location") or "",
        )


@dataclass(frozen=True)
class ExtensionRecord:
    """
    Extension deployed on a machine.

    Attributes:
        extension_type: Extension type name (e.g., "AzureMonitorLinuxAgent")
        publisher: Extension publisher
        location: Region used for the metadata lookup
        installed_version: Installed handler version, if reported
    """
    extension_type: str
    publisher: str
    location: str = ""
    installed_version: str | None = None

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ExtensionRecord:
        """Create ExtensionRecord from `az connectedmachine extension list` JSON."""
        return ExtensionRecord(
            extension_type=_lookup(
                data, "typePropertiesType", "properties.type", "name"
            ) or "",
            publisher=_lookup(data, "publisher", "properties.publisher") or "",
            location=_lookup(data, "location") or "",
            installed_version=_lookup(
                data,
                "instanceView.typeHandlerVersion",
                "properties.instanceView.typeHandlerVersion",
                "typeHandlerVersion",
                "properties.typeHandlerVersion",
            ),
        )


class Rule(str, enum.Enum):
    """Classification of a recommendation."""

    CONFIG_MODE = "config-mode-not-minimal"
    AGENT_OUTDATED = "agent-outdated"
    AGENT_VERSION_UNKNOWN = "agent-version-unknown"
    EXTENSION_OUTDATED = "extension-outdated"
    EXTENSION_VERSION_UNKNOWN = "extension-version-unknown"
    MACHINE_EXPIRED = "machine-expired"


@dataclass(frozen=True)
class Recommendation:
    """Finding produced by one audit rule."""
    rule: Rule
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"rule": self.rule.value, "message": self.message}


@dataclass(frozen=True)
class ExtensionStatus:
    """
    Installed-extension summary for the report.

    Attributes:
        extension_type: Extension type name
        publisher: Extension publisher
        installed_version: Installed version, if known
        latest_version: Latest published version, if known
        update_available: True only if both versions are known and installed < latest
    """
    extension_type: str
    publisher: str
    installed_version: str | None
    latest_version: str | None
    update_available: bool = False

    def summary(self) -> str:
        installed = self.installed_version or "?"
        latest = self.latest_version or "?"
        marker = " (update available)" if self.update_available else ""
        return f"{self.extension_type} {installed} -> {latest}{marker}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "extension_type": self.extension_type,
            "publisher": self.publisher,
            "installed_version": self.installed_version,
            "latest_version": self.latest_version,
            "update_available": self.update_available,
        }


@dataclass(frozen=True)
class AuditRecord:
    """
    Audit outcome for one machine.

    Attributes:
        machine: The audited machine
        latest_agent_version: Latest agent version for this machine's OS, if known
        update_available: True only if both agent versions are known and current < latest
        extensions: Per-extension summaries, in inventory order
        recommendations: Findings in evaluation order
    """
    machine: Machine
    latest_agent_version: str | None
    update_available: bool
    extensions: tuple[ExtensionStatus, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    def has_rule(self, rule: Rule) -> bool:
        return any(r.rule is rule for r in self.recommendations)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        m = self.machine
        return {
            "name": m.name,
            "resource_group": m.resource_group,
            "os_type": m.os_type,
            "os_sku": m.os_sku,
            "status": m.status,
            "config_mode": m.config_mode,
            "automatic_upgrade": m.automatic_upgrade,
            "agent_version": m.agent_version,
            "latest_agent_version": self.latest_agent_version,
            "update_available": self.update_available,
            "extensions": [e.to_dict() for e in self.extensions],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
