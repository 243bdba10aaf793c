"""
Per-machine audit: agent status, agent version, extension versions.

The auditor never raises for data-quality problems. Unknown versions,
unsupported distributions and failed lookups all turn into recommendations
asking for a manual check.
"""

from __future__ import annotations

import logging

from .collectors import LatestVersionFetcher
from .distributions import UnresolvedDistribution, resolve_distribution
from .inventory import Inventory, InventoryError
from .models import AuditRecord, ExtensionRecord, ExtensionStatus, Machine, Recommendation, Rule
from .versions import Comparison, compare_versions

logger = logging.getLogger(__name__)

MANUAL_CHECK = "please check manually"


class MachineAuditor:
    """
    Audits a single machine against the latest published versions.

    Attributes:
        inventory: Source of the machine's extension inventory
        fetcher: Latest version lookups
    """

    def __init__(self, inventory: Inventory, fetcher: LatestVersionFetcher):
        self.inventory = inventory
        self.fetcher = fetcher

    def audit(self, machine: Machine, windows_latest: str | None = None) -> AuditRecord:
        """
        Audit one machine.

        Recommendations are appended in a fixed order: configuration mode,
        agent version, extensions, machine status.

        Args:
            machine: Machine to audit
            windows_latest: Precomputed latest Windows agent version (shared
                across the fleet), used for every non-Linux machine

        Returns:
            AuditRecord for the machine
        """
        recommendations: list[Recommendation] = []

        if machine.config_mode.lower() == "full":
            recommendations.append(Recommendation(
                Rule.CONFIG_MODE,
                "Agent runs in 'full' configuration mode; switch to 'monitor' mode "
                "to restrict remote operations to the minimum",
            ))

        latest_agent = self.latest_agent_version(machine, windows_latest)
        agent_cmp = compare_versions(machine.agent_version, latest_agent)
        if agent_cmp is Comparison.LESS:
            recommendations.append(Recommendation(
                Rule.AGENT_OUTDATED,
                f"Agent {machine.agent_version} is older than the latest {latest_agent}; "
                "update the agent or enable automatic upgrade",
            ))
        elif agent_cmp is Comparison.INCOMPARABLE:
            recommendations.append(Recommendation(
                Rule.AGENT_VERSION_UNKNOWN,
                f"Unable to compare agent version {machine.agent_version or '(unknown)'} "
                f"with latest {latest_agent or '(unknown)'}; {MANUAL_CHECK}",
            ))

        extensions = self.audit_extensions(machine, recommendations)

        if machine.status.lower() == "expired":
            recommendations.append(Recommendation(
                Rule.MACHINE_EXPIRED,
                "Machine status is Expired; reconnect the agent or remove the machine resource",
            ))

        return AuditRecord(
            machine=machine,
            latest_agent_version=latest_agent,
            update_available=agent_cmp is Comparison.LESS,
            extensions=tuple(extensions),
            recommendations=tuple(recommendations),
        )

    def latest_agent_version(self, machine: Machine, windows_latest: str | None) -> str | None:
        """Latest agent version applicable to the machine's OS, or None."""
        if machine.os_type != "linux":
            return windows_latest

        profile = resolve_distribution(machine.os_sku, package=self.fetcher.package_name)
        if isinstance(profile, UnresolvedDistribution):
            logger.warning(
                f"{machine.name}: unsupported distribution '{profile.token}' "
                f"(OS SKU '{machine.os_sku}'), latest agent version unknown"
            )
            return None
        return self.fetcher.fetch_linux_agent_latest(profile)

    def audit_extensions(
        self,
        machine: Machine,
        recommendations: list[Recommendation],
    ) -> list[ExtensionStatus]:
        """
        Check every installed extension, appending findings to recommendations.

        Returns:
            Extension summaries in inventory order
        """
        try:
            records = self.inventory.get_extensions(machine)
        except InventoryError as e:
            logger.warning(f"{machine.name}: extension inventory unavailable: {e}")
            recommendations.append(Recommendation(
                Rule.EXTENSION_VERSION_UNKNOWN,
                f"Unable to list extensions; {MANUAL_CHECK}",
            ))
            return []

        return [self.audit_extension(machine, record, recommendations) for record in records]

    def audit_extension(
        self,
        machine: Machine,
        record: ExtensionRecord,
        recommendations: list[Recommendation],
    ) -> ExtensionStatus:
        name = record.extension_type
        latest = self.fetcher.fetch_extension_latest(
            record.extension_type,
            record.publisher,
            record.location or machine.location,
        )

        cmp = Comparison.INCOMPARABLE
        if not record.installed_version:
            recommendations.append(Recommendation(
                Rule.EXTENSION_VERSION_UNKNOWN,
                f"Extension {name}: unable to find installed version; {MANUAL_CHECK}",
            ))
        elif not latest:
            recommendations.append(Recommendation(
                Rule.EXTENSION_VERSION_UNKNOWN,
                f"Extension {name}: unable to find latest version; {MANUAL_CHECK}",
            ))
        else:
            cmp = compare_versions(record.installed_version, latest)
            if cmp is Comparison.INCOMPARABLE:
                logger.debug(f"{machine.name}: cannot compare {name} {record.installed_version!r} with {latest!r}")
                recommendations.append(Recommendation(
                    Rule.EXTENSION_VERSION_UNKNOWN,
                    f"Extension {name}: unable to verify version "
                    f"{record.installed_version} against {latest}; {MANUAL_CHECK}",
                ))
            elif cmp is Comparison.LESS:
                recommendations.append(Recommendation(
                    Rule.EXTENSION_OUTDATED,
                    f"Extension {name} {record.installed_version} is older than "
                    f"the latest {latest}; update the extension",
                ))

        return ExtensionStatus(
            extension_type=name,
            publisher=record.publisher,
            installed_version=record.installed_version,
            latest_version=latest,
            update_available=cmp is Comparison.LESS,
        )
