"""
Configuration file parsing and management.

YAML configuration files are merged from multiple sources
(custom → project → user → system → defaults), then environment overrides
are applied.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

import yaml

from .collectors import CATALOG_SEARCH_URL
from .common import env_int, vlog
from .distributions import DEFAULT_PACKAGE

# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".arc-audit.yml",                                       # Project root (highest priority)
    ".arc-audit.yaml",
    os.path.expanduser("~/.config/arc-audit/config.yml"),   # User global
    os.path.expanduser("~/.config/arc-audit/config.yaml"),
    "/etc/arc-audit/config.yml",                            # System global
    "/etc/arc-audit/config.yaml",
]

DEFAULT_MAX_WORKERS = 10
DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_AZ_TIMEOUT_SECONDS = 120
DEFAULT_FILE_PREFIX = "arc-agent-audit"


@dataclass(frozen=True)
class Preferences:
    """
    Scan behavior.

    Attributes:
        max_workers: Maximum number of machines audited in parallel
        timeout_seconds: Timeout for each HTTP request
        az_timeout_seconds: Timeout for each az CLI invocation
        catalog_url: Update catalog search URL for the Windows agent
        package_name: Linux agent package name in the repositories
    """
    max_workers: int = DEFAULT_MAX_WORKERS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    az_timeout_seconds: int = DEFAULT_AZ_TIMEOUT_SECONDS
    catalog_url: str = CATALOG_SEARCH_URL
    package_name: str = DEFAULT_PACKAGE

    def __post_init__(self):
        """Validate preferences after initialization."""
        if self.max_workers < 1 or self.max_workers > 64:
            raise ValueError(
                f"Invalid max_workers: {self.max_workers}. "
                "Must be between 1 and 64"
            )

        if self.timeout_seconds < 1 or self.timeout_seconds > 120:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 120"
            )

        if self.az_timeout_seconds < 5 or self.az_timeout_seconds > 600:
            raise ValueError(
                f"Invalid az_timeout_seconds: {self.az_timeout_seconds}. "
                "Must be between 5 and 600"
            )

        if not self.package_name:
            raise ValueError("package_name must not be empty")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Preferences:
        """Create Preferences from dictionary."""
        return Preferences(
            max_workers=data.get("max_workers", DEFAULT_MAX_WORKERS),
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            az_timeout_seconds=data.get("az_timeout_seconds", DEFAULT_AZ_TIMEOUT_SECONDS),
            catalog_url=data.get("catalog_url", CATALOG_SEARCH_URL),
            package_name=data.get("package_name", DEFAULT_PACKAGE),
        )


@dataclass(frozen=True)
class ReportPreferences:
    """
    Report output.

    Attributes:
        output_dir: Directory receiving the dated CSV report
        file_prefix: Report file name prefix (date and .csv are appended)
    """
    output_dir: str = "."
    file_prefix: str = DEFAULT_FILE_PREFIX

    def __post_init__(self):
        if not self.file_prefix or os.sep in self.file_prefix:
            raise ValueError(f"Invalid file_prefix: {self.file_prefix!r}")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ReportPreferences:
        return ReportPreferences(
            output_dir=str(data.get("output_dir", ".")),
            file_prefix=data.get("file_prefix", DEFAULT_FILE_PREFIX),
        )


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for the fleet audit.

    Attributes:
        version: Config schema version
        preferences: Scan preferences
        report: Report preferences
        source: Path to the configuration file that was loaded
    """
    version: int = 1
    preferences: Preferences = field(default_factory=Preferences)
    report: ReportPreferences = field(default_factory=ReportPreferences)
    source: str = ""

    def __post_init__(self):
        if self.version != 1:
            raise ValueError(f"Unsupported config version: {self.version}. Expected version 1")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        return Config(
            version=data.get("version", 1),
            preferences=Preferences.from_dict(data.get("preferences") or {}),
            report=ReportPreferences.from_dict(data.get("report") or {}),
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring non-default values from this config.

        Args:
            other: Other config to merge (lower priority)

        Returns:
            New merged Config object
        """
        defaults = Preferences()
        mine, theirs = self.preferences, other.preferences
        merged_preferences = Preferences(**{
            name: getattr(mine, name) if getattr(mine, name) != getattr(defaults, name) else getattr(theirs, name)
            for name in ("max_workers", "timeout_seconds", "az_timeout_seconds", "catalog_url", "package_name")
        })

        report_defaults = ReportPreferences()
        merged_report = ReportPreferences(
            output_dir=self.report.output_dir if self.report.output_dir != report_defaults.output_dir else other.report.output_dir,
            file_prefix=self.report.file_prefix if self.report.file_prefix != report_defaults.file_prefix else other.report.file_prefix,
        )

        return Config(
            version=self.version,
            preferences=merged_preferences,
            report=merged_report,
            source=self.source or other.source,
        )

    def with_environment(self) -> Config:
        """Apply ARC_AUDIT_* environment overrides."""
        preferences = self.preferences
        max_workers = env_int("ARC_AUDIT_MAX_WORKERS")
        if max_workers is not None:
            preferences = replace(preferences, max_workers=max_workers)
        timeout = env_int("ARC_AUDIT_TIMEOUT")
        if timeout is not None:
            preferences = replace(preferences, timeout_seconds=timeout)

        report = self.report
        output_dir = os.environ.get("ARC_AUDIT_OUTPUT_DIR")
        if output_dir:
            report = replace(report, output_dir=output_dir)

        return replace(self, preferences=preferences, report=report)


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Environment variables (ARC_AUDIT_MAX_WORKERS, ARC_AUDIT_TIMEOUT, ARC_AUDIT_OUTPUT_DIR)
    2. Custom path (if provided)
    3. Project .arc-audit.yml
    4. User ~/.config/arc-audit/config.yml
    5. System /etc/arc-audit/config.yml
    6. Defaults

    Args:
        custom_path: Optional path to custom configuration file
        verbose: Enable verbose logging

    Returns:
        Merged Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but cannot be loaded, or an
            environment override is out of range
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)

    if not configs:
        vlog("No config files found, using defaults", verbose)
        return Config().with_environment()

    merged = configs[0]
    for config in configs[1:]:
        merged = merged.merge_with(config)

    vlog(f"Merged {len(configs)} config files", verbose)
    return merged.with_environment()
