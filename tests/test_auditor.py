"""
Tests for the per-machine auditor.
"""

from dataclasses import replace

from arc_audit.auditor import MANUAL_CHECK, MachineAuditor
from arc_audit.models import ExtensionRecord, Rule

from fakes import FakeFetcher, FakeInventory


def rules(record):
    return [r.rule for r in record.recommendations]


class TestRecommendationOrder:
    """Tests for the fixed recommendation order."""

    def test_all_findings_in_order(self, linux_machine):
        """Test config, agent, extension and status findings appear in that order."""
        machine = replace(linux_machine, config_mode="full", agent_version="1.0.0.0", status="Expired")
        inventory = FakeInventory(
            machines=[machine],
            extensions={"web-01": [ExtensionRecord("AzureMonitorLinuxAgent", "Microsoft.Azure.Monitor")]},
        )
        fetcher = FakeFetcher(linux={"ubuntu": "1.1.0.0"}, extensions={"AzureMonitorLinuxAgent": "1.29.4"})

        record = MachineAuditor(inventory, fetcher).audit(machine)

        assert rules(record) == [
            Rule.CONFIG_MODE,
            Rule.AGENT_OUTDATED,
            Rule.EXTENSION_VERSION_UNKNOWN,
            Rule.MACHINE_EXPIRED,
        ]
        assert record.update_available is True
        assert record.latest_agent_version == "1.1.0.0"

    def test_clean_machine_has_no_findings(self, linux_machine, monitor_extension):
        """Test an up-to-date machine produces no recommendations."""
        inventory = FakeInventory(extensions={"web-01": [monitor_extension]})
        fetcher = FakeFetcher(
            linux={"ubuntu": "1.36.02311.654"},
            extensions={"AzureMonitorLinuxAgent": "1.28.11"},
        )
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert record.recommendations == ()
        assert record.update_available is False
        assert record.extensions[0].update_available is False

    def test_audit_is_repeatable(self, linux_machine, monitor_extension):
        """Test auditing twice with the same inputs gives equal records."""
        inventory = FakeInventory(extensions={"web-01": [monitor_extension]})
        fetcher = FakeFetcher(linux={"ubuntu": "1.40"}, extensions={"AzureMonitorLinuxAgent": "1.30"})
        auditor = MachineAuditor(inventory, fetcher)
        assert auditor.audit(linux_machine) == auditor.audit(linux_machine)


class TestAgentVersion:
    """Tests for the agent version rules."""

    def test_linux_uses_distribution_profile(self, linux_machine):
        """Test Linux machines query the resolved distribution repository."""
        fetcher = FakeFetcher(linux={"ubuntu": "1.40.0.0"})
        MachineAuditor(FakeInventory(), fetcher).audit(linux_machine)
        profile = fetcher.linux_profiles[0]
        assert profile.family == "ubuntu"
        assert profile.version == "20.04"
        assert "azcmagent" in profile.endpoint

    def test_windows_uses_shared_latest(self, windows_machine):
        """Test non-Linux machines use the precomputed Windows version."""
        fetcher = FakeFetcher(windows="9.9")
        record = MachineAuditor(FakeInventory(), fetcher).audit(windows_machine, windows_latest="1.40")
        assert record.latest_agent_version == "1.40"
        assert record.update_available is True
        assert rules(record) == [Rule.AGENT_OUTDATED]
        assert fetcher.linux_profiles == []

    def test_equal_after_padding(self, windows_machine):
        """Test '1.36' and '1.36.0.0' are treated as equal."""
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(windows_machine, windows_latest="1.36.0.0")
        assert record.recommendations == ()
        assert record.update_available is False

    def test_newer_than_latest(self, windows_machine):
        """Test an agent ahead of the published version is not flagged."""
        machine = replace(windows_machine, agent_version="1.41")
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(machine, windows_latest="1.40")
        assert record.recommendations == ()

    def test_unknown_latest(self, windows_machine):
        """Test a missing latest version never reports an update."""
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(windows_machine, windows_latest=None)
        assert record.update_available is False
        assert rules(record) == [Rule.AGENT_VERSION_UNKNOWN]
        assert MANUAL_CHECK in record.recommendations[0].message

    def test_unknown_installed(self, windows_machine):
        """Test a missing installed version never reports an update."""
        machine = replace(windows_machine, agent_version=None)
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(machine, windows_latest="1.40")
        assert record.update_available is False
        assert rules(record) == [Rule.AGENT_VERSION_UNKNOWN]

    def test_malformed_version(self, windows_machine):
        """Test malformed versions are incomparable rather than equal."""
        machine = replace(windows_machine, agent_version="1.36-beta")
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(machine, windows_latest="1.36")
        assert rules(record) == [Rule.AGENT_VERSION_UNKNOWN]

    def test_unsupported_distribution(self, linux_machine, caplog):
        """Test an unsupported distribution is logged and left unknown."""
        machine = replace(linux_machine, os_sku="Gentoo Linux")
        fetcher = FakeFetcher(linux={"ubuntu": "1.40"})
        with caplog.at_level("WARNING", logger="arc_audit"):
            record = MachineAuditor(FakeInventory(), fetcher).audit(machine)
        assert fetcher.linux_profiles == []
        assert record.latest_agent_version is None
        assert rules(record) == [Rule.AGENT_VERSION_UNKNOWN]
        assert "unsupported distribution" in caplog.text

    def test_config_mode_case_insensitive(self, windows_machine):
        """Test 'Full' configuration mode is flagged."""
        machine = replace(windows_machine, config_mode="Full")
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(machine, windows_latest="1.36")
        assert rules(record) == [Rule.CONFIG_MODE]

    def test_expired_status_case_insensitive(self, windows_machine):
        """Test 'EXPIRED' status is flagged."""
        machine = replace(windows_machine, status="EXPIRED")
        record = MachineAuditor(FakeInventory(), FakeFetcher()).audit(machine, windows_latest="1.36")
        assert rules(record) == [Rule.MACHINE_EXPIRED]


class TestExtensions:
    """Tests for extension checks."""

    def test_outdated_extension(self, linux_machine, monitor_extension):
        """Test an older installed extension is flagged."""
        inventory = FakeInventory(extensions={"web-01": [monitor_extension]})
        fetcher = FakeFetcher(linux={"ubuntu": "1.36.02311.654"}, extensions={"AzureMonitorLinuxAgent": "1.29.4"})
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert rules(record) == [Rule.EXTENSION_OUTDATED]
        status = record.extensions[0]
        assert status.update_available is True
        assert status.latest_version == "1.29.4"
        assert status.summary() == "AzureMonitorLinuxAgent 1.28.11 -> 1.29.4 (update available)"

    def test_missing_latest(self, linux_machine, monitor_extension):
        """Test a failed metadata lookup asks for a manual check."""
        inventory = FakeInventory(extensions={"web-01": [monitor_extension]})
        fetcher = FakeFetcher(linux={"ubuntu": "1.36.02311.654"})
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert rules(record) == [Rule.EXTENSION_VERSION_UNKNOWN]
        assert "latest version" in record.recommendations[0].message
        assert record.extensions[0].update_available is False

    def test_incomparable_versions(self, linux_machine):
        """Test incomparable extension versions are not reported as equal."""
        ext = ExtensionRecord("Custom", "Contoso", "westeurope", "1.0.0.0.1")
        inventory = FakeInventory(extensions={"web-01": [ext]})
        fetcher = FakeFetcher(linux={"ubuntu": "1.36.02311.654"}, extensions={"Custom": "1.0"})
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert rules(record) == [Rule.EXTENSION_VERSION_UNKNOWN]
        assert "unable to verify version" in record.recommendations[0].message

    def test_extensions_keep_inventory_order(self, linux_machine):
        """Test one finding per extension in inventory order."""
        exts = [
            ExtensionRecord("A", "p", "westeurope", "1.0"),
            ExtensionRecord("B", "p", "westeurope", None),
            ExtensionRecord("C", "p", "westeurope", "2.0"),
        ]
        inventory = FakeInventory(extensions={"web-01": exts})
        fetcher = FakeFetcher(linux={"ubuntu": "1.36.02311.654"}, extensions={"A": "1.1", "B": "1.0", "C": "2.0"})
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert [e.extension_type for e in record.extensions] == ["A", "B", "C"]
        assert rules(record) == [Rule.EXTENSION_OUTDATED, Rule.EXTENSION_VERSION_UNKNOWN]

    def test_extension_list_failure(self, linux_machine):
        """Test a failed extension listing yields a single manual-check finding."""
        inventory = FakeInventory(failing={"web-01"})
        fetcher = FakeFetcher(linux={"ubuntu": "1.36.02311.654"})
        record = MachineAuditor(inventory, fetcher).audit(linux_machine)
        assert record.extensions == ()
        assert rules(record) == [Rule.EXTENSION_VERSION_UNKNOWN]
        assert "Unable to list extensions" in record.recommendations[0].message
