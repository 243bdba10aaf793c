"""
Report persistence for fleet audit results.

One CSV file per calendar day; repeated writes on the same day append rows
and the header is only written when the file is created.
"""

import csv
import datetime
import json
from pathlib import Path
from typing import Any, Iterable

from .models import AuditRecord

DEFAULT_PREFIX = "arc-agent-audit"

REPORT_COLUMNS = (
    "Name",
    "ResourceGroup",
    "OsType",
    "OsSku",
    "Status",
    "ConfigMode",
    "AutomaticUpgrade",
    "AgentVersion",
    "LatestAgentVersion",
    "UpdateAvailable",
    "Extensions",
    "Recommendations",
)


def get_report_path(
    output_dir: str | Path = ".",
    prefix: str = DEFAULT_PREFIX,
    day: datetime.date | None = None,
) -> Path:
    """Report file path for a calendar day (today if not given).

    Returns:
        Path like ``<output_dir>/<prefix>-2024-05-31.csv``
    """
    day = day or datetime.date.today()
    return Path(output_dir) / f"{prefix}-{day.isoformat()}.csv"


def record_to_row(record: AuditRecord) -> dict[str, str]:
    """Flatten an AuditRecord into one report row.

    Extensions and recommendations are joined into single cells.
    """
    m = record.machine
    return {
        "Name": m.name,
        "ResourceGroup": m.resource_group,
        "OsType": m.os_type,
        "OsSku": m.os_sku,
        "Status": m.status,
        "ConfigMode": m.config_mode,
        "AutomaticUpgrade": str(m.automatic_upgrade),
        "AgentVersion": m.agent_version or "",
        "LatestAgentVersion": record.latest_agent_version or "unknown",
        "UpdateAvailable": str(record.update_available),
        "Extensions": "; ".join(e.summary() for e in record.extensions),
        "Recommendations": " | ".join(r.message for r in record.recommendations),
    }


def write_report(
    records: Iterable[AuditRecord],
    output_dir: str | Path = ".",
    prefix: str = DEFAULT_PREFIX,
    day: datetime.date | None = None,
) -> Path:
    """Append audit records to the day's CSV report.

    Args:
        records: Audit records to write, in report order
        output_dir: Directory for the report (created if missing)
        prefix: File name prefix
        day: Report date (defaults to today)

    Returns:
        Path of the written report

    Raises:
        IOError: If the report cannot be written
    """
    path = get_report_path(output_dir, prefix, day)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not path.exists() or path.stat().st_size == 0
        with open(path, "a", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=REPORT_COLUMNS)
            if write_header:
                writer.writeheader()
            for record in records:
                writer.writerow(record_to_row(record))
    except OSError as e:
        raise IOError(f"Failed to write report {path}: {e}") from e
    return path


def dump_json(records: Iterable[AuditRecord], failures: Iterable[Any] = ()) -> str:
    """Serialize audit records (and scan failures) as a JSON document."""
    doc = {
        "__meta__": {
            "schema_version": 1,
            "created_at": datetime.datetime.now(datetime.timezone.utc)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
        },
        "machines": [r.to_dict() for r in records],
        "failures": [f.to_dict() for f in failures],
    }
    doc["__meta__"]["count"] = len(doc["machines"])
    return json.dumps(doc, indent=2, ensure_ascii=False, sort_keys=True)
