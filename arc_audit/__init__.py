"""
Arc Agent Audit - fleet version auditing for Azure Arc connected machines.

Core Modules:
- Versions: Version parsing, comparison and upstream page parsing
- Collection: Distribution resolution and latest version lookups
- Auditing: Per-machine audit and bounded parallel fleet scan
- Output: Dated CSV report, JSON dump and console table
"""

__version__ = "1.0.0"

VERSION = __version__

# Versions
from .versions import (
    Comparison,
    VersionIdentifier,
    parse_version,
    compare_versions,
    is_outdated,
    latest_version,
)
from .parsers import (
    parse_catalog_version,
    parse_repository_versions,
    parse_repository_latest,
    parse_extension_versions,
)

# Collection
from .distributions import (
    DistributionProfile,
    UnresolvedDistribution,
    resolve_distribution,
)
from .collectors import (
    CollectionError,
    NetworkError,
    LatestVersionFetcher,
    http_get,
)
from .inventory import (
    Inventory,
    AzCliInventory,
    InventoryError,
    SessionError,
)

# Auditing
from .models import (
    Machine,
    ExtensionRecord,
    ExtensionStatus,
    Recommendation,
    Rule,
    AuditRecord,
)
from .auditor import MachineAuditor
from .scanner import (
    FleetScanner,
    ProgressTracker,
    ScanFailure,
    ScanResult,
    run_fleet_audit,
)

# Output
from .report import write_report, get_report_path, dump_json
from .render import render_table, print_summary

# Configuration and logging
from .config import Config, Preferences, ReportPreferences, load_config, load_config_file
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    "VERSION",
    # Versions
    "Comparison",
    "VersionIdentifier",
    "parse_version",
    "compare_versions",
    "is_outdated",
    "latest_version",
    "parse_catalog_version",
    "parse_repository_versions",
    "parse_repository_latest",
    "parse_extension_versions",
    # Collection
    "DistributionProfile",
    "UnresolvedDistribution",
    "resolve_distribution",
    "CollectionError",
    "NetworkError",
    "LatestVersionFetcher",
    "http_get",
    "Inventory",
    "AzCliInventory",
    "InventoryError",
    "SessionError",
    # Auditing
    "Machine",
    "ExtensionRecord",
    "ExtensionStatus",
    "Recommendation",
    "Rule",
    "AuditRecord",
    "MachineAuditor",
    "FleetScanner",
    "ProgressTracker",
    "ScanFailure",
    "ScanResult",
    "run_fleet_audit",
    # Output
    "write_report",
    "get_report_path",
    "dump_json",
    "render_table",
    "print_summary",
    # Configuration and logging
    "Config",
    "Preferences",
    "ReportPreferences",
    "load_config",
    "load_config_file",
    "setup_logging",
    "get_logger",
]
