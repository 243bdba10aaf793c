"""
Fleet scan with bounded parallel execution.

Runs the machine auditor over every machine on a thread pool. Submission
blocks while the configured number of audits is in flight, and a failing
audit is recorded and logged without affecting its siblings.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Sequence

from .auditor import MachineAuditor
from .collectors import LatestVersionFetcher
from .common import vlog
from .inventory import Inventory
from .models import AuditRecord, Machine

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 10


@dataclass
class ProgressTracker:
    """
    Thread-safe progress tracking for fleet scans.

    Attributes:
        _lock: Threading lock for thread-safe updates
        _progress: Progress state for each machine
        _callbacks: Callbacks to invoke on progress updates
    """
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _progress: dict[str, dict] = field(default_factory=dict)
    _callbacks: list[Callable[[str, str, str], None]] = field(default_factory=list)

    def register_callback(self, callback: Callable[[str, str, str], None]) -> None:
        """Register a callback for progress updates."""
        with self._lock:
            self._callbacks.append(callback)

    def update(self, machine_key: str, status: str, message: str = "") -> None:
        """
        Update progress for a machine.

        Args:
            machine_key: Machine identity (resource group / name)
            status: Status ("pending", "in_progress", "success", "failed")
            message: Optional status message
        """
        with self._lock:
            self._progress[machine_key] = {
                "status": status,
                "message": message,
                "timestamp": time.time(),
            }
            for callback in self._callbacks:
                callback(machine_key, status, message)

    def get_progress(self, machine_key: str) -> dict | None:
        """Get progress for a specific machine."""
        with self._lock:
            return self._progress.get(machine_key)

    def get_summary(self) -> dict[str, int]:
        """Get summary counts by status."""
        with self._lock:
            summary = {
                "pending": 0,
                "in_progress": 0,
                "success": 0,
                "failed": 0,
            }
            for progress in self._progress.values():
                status = progress.get("status", "pending")
                summary[status] = summary.get(status, 0) + 1
            return summary


@dataclass(frozen=True)
class ScanFailure:
    """Machine whose audit raised an unexpected error."""
    machine_key: str
    error: str

    def to_dict(self) -> dict:
        return {"machine": self.machine_key, "error": self.error}


@dataclass(frozen=True)
class ScanResult:
    """
    Complete result of a fleet scan.

    Attributes:
        records: Audit records, in input order
        failures: Machines whose audit failed, in input order
        duration_seconds: Total execution time
    """
    records: tuple[AuditRecord, ...]
    failures: tuple[ScanFailure, ...] = ()
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.records) + len(self.failures)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "records": [r.to_dict() for r in self.records],
            "failures": [f.to_dict() for f in self.failures],
            "duration_seconds": self.duration_seconds,
        }


class FleetScanner:
    """
    Fans a MachineAuditor out over a fleet with bounded concurrency.

    Attributes:
        auditor: Per-machine auditor (anything with an ``audit(machine, windows_latest)`` method)
        max_workers: Maximum number of audits in flight at once
        progress_tracker: Receives per-machine status updates
        verbose: Enable verbose logging
    """

    def __init__(
        self,
        auditor: MachineAuditor,
        max_workers: int = DEFAULT_MAX_WORKERS,
        progress_tracker: ProgressTracker | None = None,
        verbose: bool = False,
    ):
        if max_workers < 1:
            raise ValueError(f"Invalid max_workers: {max_workers}. Must be at least 1")
        self.auditor = auditor
        self.max_workers = max_workers
        self.progress_tracker = progress_tracker or ProgressTracker()
        self.verbose = verbose

    def scan(self, machines: Sequence[Machine], windows_latest: str | None = None) -> ScanResult:
        """
        Audit every machine.

        Args:
            machines: Machines to audit
            windows_latest: Latest Windows agent version shared by all audits

        Returns:
            ScanResult; every machine contributes exactly one record or one failure
        """
        start_time = time.time()
        tracker = self.progress_tracker

        for machine in machines:
            tracker.update(machine.key, "pending")

        vlog(f"Auditing {len(machines)} machines with {self.max_workers} workers...", self.verbose)

        slots = threading.BoundedSemaphore(self.max_workers)
        submitted: list[tuple[Machine, Future]] = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for machine in machines:
                # Blocks until a running audit completes
                slots.acquire()
                try:
                    future = executor.submit(self._audit_one, machine, windows_latest)
                except BaseException:
                    slots.release()
                    raise
                future.add_done_callback(lambda _f: slots.release())
                submitted.append((machine, future))

        records: list[AuditRecord] = []
        failures: list[ScanFailure] = []
        for machine, future in submitted:
            try:
                record = future.result()
            except Exception as e:
                logger.warning(f"Audit of {machine.key} failed: {e}")
                failures.append(ScanFailure(machine_key=machine.key, error=str(e) or type(e).__name__))
                tracker.update(machine.key, "failed", str(e))
            else:
                records.append(record)
                tracker.update(machine.key, "success", f"{len(record.recommendations)} recommendations")

        duration = time.time() - start_time
        vlog(
            f"Scan finished in {duration:.1f}s: {len(records)} audited, {len(failures)} failed",
            self.verbose,
        )

        return ScanResult(
            records=tuple(records),
            failures=tuple(failures),
            duration_seconds=duration,
        )

    def _audit_one(self, machine: Machine, windows_latest: str | None) -> AuditRecord:
        self.progress_tracker.update(machine.key, "in_progress", "Auditing...")
        return self.auditor.audit(machine, windows_latest)


def run_fleet_audit(
    inventory: Inventory,
    fetcher: LatestVersionFetcher,
    max_workers: int = DEFAULT_MAX_WORKERS,
    progress_tracker: ProgressTracker | None = None,
    verbose: bool = False,
) -> ScanResult:
    """
    List the fleet and audit every machine.

    The Windows agent version is looked up once per run, and only when the
    fleet contains non-Linux machines.

    Raises:
        InventoryError: If the machine inventory cannot be listed
    """
    machines = inventory.list_machines()
    vlog(f"Found {len(machines)} machines", verbose)

    windows_latest = None
    if any(m.os_type != "linux" for m in machines):
        windows_latest = fetcher.fetch_windows_agent_latest()

    scanner = FleetScanner(
        MachineAuditor(inventory, fetcher),
        max_workers=max_workers,
        progress_tracker=progress_tracker,
        verbose=verbose,
    )
    return scanner.scan(machines, windows_latest)
