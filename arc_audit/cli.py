"""
Azure Arc agent fleet audit - command line entry point.

Usage:
    arc-audit                     # Audit all machines, write today's CSV report
    arc-audit -v                  # Verbose progress output
    arc-audit --json              # Print results as JSON instead of a table
    python -m arc_audit ...       # Same, without the console script
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Sequence

from . import __version__
from .collectors import LatestVersionFetcher
from .config import Config, load_config
from .inventory import AzCliInventory, InventoryError, SessionError
from .logging_config import setup_logging
from .render import print_summary, render_recommendations, render_table
from .report import dump_json, write_report
from .scanner import ProgressTracker, run_fleet_audit

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arc-audit",
        description="Audit Azure Arc connected machine agents and extensions against the latest versions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (YAML)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        metavar="N",
        help="Maximum number of machines audited in parallel (default: 10)",
    )
    parser.add_argument(
        "--output-dir",
        metavar="DIR",
        help="Directory for the dated CSV report",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON to stdout",
    )
    parser.add_argument(
        "--no-table",
        action="store_true",
        help="Do not print the console table",
    )
    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Also write a DEBUG log to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Load configuration and apply command line overrides."""
    config = load_config(custom_path=args.config, verbose=args.verbose)
    if args.max_workers is not None:
        config = replace(config, preferences=replace(config.preferences, max_workers=args.max_workers))
    if args.output_dir:
        config = replace(config, report=replace(config.report, output_dir=args.output_dir))
    return config


def cmd_audit(args: argparse.Namespace, config: Config) -> int:
    """Run the fleet audit and write the report."""
    prefs = config.preferences
    inventory = AzCliInventory(timeout=prefs.az_timeout_seconds)

    try:
        account = inventory.check_session()
    except SessionError as e:
        logger.error(str(e))
        return 1
    logger.debug(f"Using subscription {account.get('name', '?')} ({account.get('id', '?')})")

    fetcher = LatestVersionFetcher(
        inventory=inventory,
        timeout=prefs.timeout_seconds,
        catalog_url=prefs.catalog_url,
        package_name=prefs.package_name,
    )

    tracker = ProgressTracker()
    if args.verbose:
        def _on_progress(machine_key: str, status: str, message: str) -> None:
            if status in ("success", "failed"):
                logger.debug(f"{machine_key}: {status} {message}".rstrip())
        tracker.register_callback(_on_progress)

    try:
        result = run_fleet_audit(
            inventory,
            fetcher,
            max_workers=prefs.max_workers,
            progress_tracker=tracker,
            verbose=args.verbose,
        )
    except InventoryError as e:
        logger.error(f"Cannot enumerate machines: {e}")
        return 1

    records = list(result.records)

    if args.json:
        print(dump_json(records, result.failures))
    elif not args.no_table:
        render_table(records)
        render_recommendations(records)

    print_summary(records, failed=len(result.failures))

    try:
        path = write_report(records, config.report.output_dir, config.report.file_prefix)
    except IOError as e:
        logger.error(str(e))
        return 1
    logger.info(f"Report written: {path}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the fleet audit."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        config = resolve_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    return cmd_audit(args, config)


def run() -> None:
    """Console script wrapper."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
