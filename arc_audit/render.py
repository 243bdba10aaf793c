"""
Console rendering of audit results.

Columns are aligned by display width (wcwidth) so emoji icons and ANSI
colors do not break the layout.
"""

import re
import sys
from typing import TextIO

from wcwidth import wcswidth

from .common import env_flag
from .models import AuditRecord, Rule

USE_EMOJI = env_flag("ARC_AUDIT_EMOJI", default=True)
USE_COLOR = env_flag("ARC_AUDIT_COLOR", default=True)

GREEN = "\033[32m"
BOLD_GREEN = "\033[1;32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
RESET = "\033[0m"

# CSI (color etc.): ESC [ ... cmd
CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")

HEADERS = ("state", "machine", "os", "agent", "latest", "findings")


def machine_state(record: AuditRecord) -> str:
    """Overall state of a machine: EXPIRED, OUTDATED, UNKNOWN or UP-TO-DATE."""
    if record.has_rule(Rule.MACHINE_EXPIRED):
        return "EXPIRED"
    if record.update_available or any(e.update_available for e in record.extensions):
        return "OUTDATED"
    if record.has_rule(Rule.AGENT_VERSION_UNKNOWN) or record.has_rule(Rule.EXTENSION_VERSION_UNKNOWN):
        return "UNKNOWN"
    return "UP-TO-DATE"


def status_icon(state: str) -> str:
    if not USE_EMOJI:
        return {"UP-TO-DATE": "✓", "OUTDATED": "↑", "EXPIRED": "x"}.get(state, "?")
    return {"UP-TO-DATE": "✅", "OUTDATED": "⬆", "EXPIRED": "❌"}.get(state, "❓")


def colorize(text: str, color: str) -> str:
    if not USE_COLOR or not text:
        return text
    return f"{color}{text}{RESET}"


def display_width(text: str) -> int:
    """Terminal width of text, ignoring ANSI escapes."""
    visible = CSI_RE.sub("", text)
    width = wcswidth(visible)
    return width if width >= 0 else len(visible)


def format_table(rows: list[list[str]], pad: int = 2) -> list[str]:
    """Align rows into columns; the first row is the header."""
    if not rows:
        return []
    ncol = max(len(r) for r in rows)
    widths = [0] * ncol
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], display_width(cell))

    lines = []
    for ridx, r in enumerate(rows):
        cells = []
        for i in range(ncol):
            cell = r[i] if i < len(r) else ""
            cells.append(cell + " " * (widths[i] - display_width(cell)))
        lines.append((" " * pad).join(cells).rstrip())
        if ridx == 0:
            lines.append((" " * pad).join("-" * w for w in widths))
    return lines


def _record_row(record: AuditRecord) -> list[str]:
    m = record.machine
    state = machine_state(record)
    if state == "UP-TO-DATE":
        agent_color, latest_color = GREEN, GREEN
    elif state == "OUTDATED":
        agent_color, latest_color = YELLOW, BOLD_GREEN
    elif state == "EXPIRED":
        agent_color, latest_color = RED, BLUE
    else:
        agent_color, latest_color = BLUE, BLUE

    return [
        status_icon(state),
        m.name,
        m.os_type,
        colorize(m.agent_version or "?", agent_color),
        colorize(record.latest_agent_version or "?", latest_color),
        str(len(record.recommendations)),
    ]


def render_table(records: list[AuditRecord], out: TextIO | None = None) -> None:
    """Print audit records as an aligned table."""
    out = out or sys.stdout
    rows = [list(HEADERS)] + [_record_row(r) for r in records]
    for line in format_table(rows):
        print(line, file=out)


def render_recommendations(records: list[AuditRecord], out: TextIO | None = None) -> None:
    """Print each machine's recommendations below the table."""
    out = out or sys.stdout
    for record in records:
        if not record.recommendations:
            continue
        print(f"\n{record.machine.key}:", file=out)
        for rec in record.recommendations:
            print(f"  - [{rec.rule.value}] {rec.message}", file=out)


def print_summary(records: list[AuditRecord], failed: int = 0, out: TextIO | None = None) -> None:
    """Print summary line.

    Args:
        records: Audited machines
        failed: Number of machines whose audit failed
        out: Output stream (stderr by default)
    """
    out = out or sys.stderr
    states = [machine_state(r) for r in records]
    parts = [
        f"{len(records) + failed} machines",
        f"{states.count('OUTDATED')} outdated",
        f"{states.count('UNKNOWN')} unknown",
        f"{states.count('EXPIRED')} expired",
        f"{failed} failed",
    ]
    print(f"\nFleet: {', '.join(parts)}", file=out)
