"""
Latest version collection from upstream sources.

This module fetches the latest agent version from the Microsoft Update
Catalog (Windows) and packages.microsoft.com (Linux), and the latest
extension version from the extension image metadata.

Every lookup is fail-soft: errors are logged and reported as None so a
single unreachable source never aborts a fleet scan.
"""

import logging
import urllib.parse
import urllib.request
from typing import TYPE_CHECKING

from .distributions import DEFAULT_PACKAGE, DistributionProfile
from .parsers import parse_catalog_version, parse_extension_versions, parse_repository_latest

if TYPE_CHECKING:
    from .inventory import Inventory

logger = logging.getLogger(__name__)

USER_AGENT = "arc-agent-audit/1.0"

CATALOG_SEARCH_URL = (
    "https://www.catalog.update.microsoft.com/Search.aspx?q="
    + urllib.parse.quote("AzureConnectedMachineAgent")
)

DEFAULT_TIMEOUT = 10


class CollectionError(Exception):
    """Raised when version collection fails."""
    pass


class NetworkError(CollectionError):
    """Raised when network requests fail."""
    pass


def http_get(url: str, timeout: int = DEFAULT_TIMEOUT, headers: dict[str, str] | None = None) -> bytes:
    """Perform HTTP GET request.

    Args:
        url: URL to fetch
        timeout: Timeout in seconds
        headers: Optional HTTP headers

    Returns:
        Response body as bytes

    Raises:
        NetworkError: If request fails or times out
    """
    try:
        default_headers = {"User-Agent": USER_AGENT}
        if headers:
            default_headers.update(headers)

        req = urllib.request.Request(url, headers=default_headers)
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except Exception as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e


class LatestVersionFetcher:
    """
    Fail-soft lookups of the latest agent and extension versions.

    Holds configuration only; there is no cache, so instances are safe to
    share between worker threads.

    Attributes:
        inventory: Collaborator answering extension image lookups
        timeout: Timeout in seconds for each HTTP request
        catalog_url: Update catalog search URL for the Windows agent
        package_name: Linux agent package name in the repositories
    """

    def __init__(
        self,
        inventory: "Inventory | None" = None,
        timeout: int = DEFAULT_TIMEOUT,
        catalog_url: str = CATALOG_SEARCH_URL,
        package_name: str = DEFAULT_PACKAGE,
    ):
        self.inventory = inventory
        self.timeout = timeout
        self.catalog_url = catalog_url
        self.package_name = package_name

    def _get_text(self, url: str) -> str:
        return http_get(url, timeout=self.timeout).decode("utf-8", errors="ignore")

    def fetch_windows_agent_latest(self) -> str | None:
        """Latest Windows agent version from the update catalog, or None."""
        try:
            body = self._get_text(self.catalog_url)
        except CollectionError as e:
            logger.warning(f"Update catalog unreachable: {e}")
            return None

        version = parse_catalog_version(body)
        if version is None:
            logger.warning(f"Update catalog: no agent version found at {self.catalog_url}")
            return None

        logger.debug(f"Update catalog: latest Windows agent {version}")
        return version

    def fetch_linux_agent_latest(self, profile: DistributionProfile) -> str | None:
        """Latest Linux agent version from the distribution's repository, or None.

        Args:
            profile: Resolved distribution profile

        Returns:
            Highest package version listed in the repository index
        """
        try:
            body = self._get_text(profile.endpoint)
        except CollectionError as e:
            logger.warning(f"Package repository {profile.family} {profile.version} unreachable: {e}")
            return None

        version = parse_repository_latest(body, self.package_name)
        if version is None:
            logger.warning(
                f"Package repository {profile.family} {profile.version}: "
                f"no {self.package_name} packages found at {profile.endpoint}"
            )
            return None

        logger.debug(f"Package repository {profile.family} {profile.version}: {version}")
        return version

    def fetch_extension_latest(self, extension_type: str, publisher: str, location: str) -> str | None:
        """Latest published version of an extension, or None.

        Args:
            extension_type: Extension type name
            publisher: Extension publisher
            location: Region to query

        Returns:
            Version of the first metadata entry
        """
        if self.inventory is None:
            logger.debug(f"Extension {publisher}/{extension_type}: no metadata source configured")
            return None

        try:
            entries = self.inventory.get_extension_images(extension_type, publisher, location)
        except Exception as e:
            logger.warning(f"Extension {publisher}/{extension_type}: metadata lookup failed: {e}")
            return None

        version = parse_extension_versions(entries)
        if version is None:
            logger.warning(f"Extension {publisher}/{extension_type}: no published versions in {location}")
        else:
            logger.debug(f"Extension {publisher}/{extension_type}: {version}")
        return version
