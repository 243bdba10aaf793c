"""
Inventory access through the Azure CLI.

All calls shell out to `az ... -o json` with a timeout. Establishing the
session (az login) happens outside this tool; only its presence is checked.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import replace
from typing import Any, Protocol, Sequence

from .models import ExtensionRecord, Machine

logger = logging.getLogger(__name__)

DEFAULT_AZ_TIMEOUT = 120


class InventoryError(Exception):
    """Raised when the inventory cannot be queried."""
    pass


class SessionError(InventoryError):
    """Raised when no authenticated session is available."""
    pass


class Inventory(Protocol):
    """Collaborator that lists machines and their extensions."""

    def list_machines(self) -> list[Machine]: ...

    def get_extensions(self, machine: Machine) -> list[ExtensionRecord]: ...

    def get_extension_images(
        self, extension_type: str, publisher: str, location: str
    ) -> list[dict[str, Any]]: ...


class AzCliInventory:
    """
    Inventory backed by the `az` command line.

    Attributes:
        timeout: Timeout in seconds for each az invocation
        az_binary: Name or path of the az executable
    """

    def __init__(self, timeout: int = DEFAULT_AZ_TIMEOUT, az_binary: str = "az"):
        self.timeout = timeout
        self.az_binary = az_binary

    def run(self, args: Sequence[str]) -> Any:
        """
        Run an az command and return its parsed JSON output.

        Args:
            args: Arguments after the az binary (output format is appended)

        Returns:
            Parsed JSON (list, dict or None for empty output)

        Raises:
            InventoryError: If az is missing, times out, fails or emits invalid JSON
        """
        cmd = [self.az_binary, *args, "-o", "json"]
        logger.debug("Running: az %s", " ".join(args[:4]))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise InventoryError(f"az CLI not found: {self.az_binary}") from e
        except subprocess.TimeoutExpired as e:
            raise InventoryError(f"az {' '.join(args[:3])} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise InventoryError(
                f"az {' '.join(args[:3])} failed (exit {result.returncode}): {result.stderr.strip()[:200]}"
            )

        if not result.stdout.strip():
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise InventoryError(f"az {' '.join(args[:3])} returned invalid JSON: {e}") from e

    def check_session(self) -> dict[str, Any]:
        """
        Verify that an authenticated az session exists.

        Returns:
            Account information from `az account show`

        Raises:
            SessionError: If az is unavailable or not logged in
        """
        if shutil.which(self.az_binary) is None:
            raise SessionError(f"az CLI not found on PATH: {self.az_binary}")
        try:
            account = self.run(["account", "show"])
        except InventoryError as e:
            raise SessionError(f"No authenticated Azure session ({e}); run 'az login' first") from e
        if not isinstance(account, dict):
            raise SessionError("No authenticated Azure session; run 'az login' first")
        return account

    def list_machines(self) -> list[Machine]:
        data = self.run(["connectedmachine", "list"])
        if data is None:
            return []
        if not isinstance(data, list):
            raise InventoryError("Unexpected machine list payload")
        return [Machine.from_dict(item) for item in data if isinstance(item, dict)]

    def get_extensions(self, machine: Machine) -> list[ExtensionRecord]:
        data = self.run([
            "connectedmachine", "extension", "list",
            "--machine-name", machine.name,
            "--resource-group", machine.resource_group,
        ])
        if data is None:
            return []
        if not isinstance(data, list):
            raise InventoryError(f"Unexpected extension list payload for {machine.name}")
        records = []
        for item in data:
            if not isinstance(item, dict):
                continue
            record = ExtensionRecord.from_dict(item)
            if not record.location:
                record = replace(record, location=machine.location)
            records.append(record)
        return records

    def get_extension_images(
        self, extension_type: str, publisher: str, location: str
    ) -> list[dict[str, Any]]:
        data = self.run([
            "vm", "extension", "image", "list",
            "--name", extension_type,
            "--publisher", publisher,
            "--location", location,
            "--latest",
        ])
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]
