"""
Common utilities shared across arc_audit modules.
"""

from __future__ import annotations

import os
import sys


def env_flag(name: str, default: bool = False) -> bool:
    """
    Read a boolean flag ("1"/"0") from the environment.

    Args:
        name: Environment variable name
        default: Value when the variable is unset

    Returns:
        True if the variable is set to "1"
    """
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip() == "1"


def env_int(name: str) -> int | None:
    """Read an integer from the environment, or None if unset or invalid."""
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or env_flag("ARC_AUDIT_DEBUG"):
        try:
            from .logging_config import get_logger
            logger = get_logger()
            logger.info(msg)
        except Exception:
            # Fallback to stderr if logging fails
            try:
                print(f"[arc_audit] {msg}", file=sys.stderr)
            except Exception:
                pass
