"""
Shared fixtures for fleet audit tests.
"""

from __future__ import annotations

import logging

import pytest

from arc_audit import logging_config
from arc_audit.models import ExtensionRecord, Machine


@pytest.fixture
def linux_machine() -> Machine:
    return Machine(
        name="web-01",
        resource_group="rg-prod",
        os_type="linux",
        os_sku="Ubuntu 20.04.6 LTS",
        status="Connected",
        config_mode="monitor",
        automatic_upgrade=False,
        agent_version="1.36.02311.654",
        location="westeurope",
    )


@pytest.fixture
def windows_machine() -> Machine:
    return Machine(
        name="dc-01",
        resource_group="rg-prod",
        os_type="windows",
        os_sku="Windows Server 2022 Datacenter",
        status="Connected",
        config_mode="monitor",
        automatic_upgrade=True,
        agent_version="1.36",
        location="westeurope",
    )


@pytest.fixture
def monitor_extension() -> ExtensionRecord:
    return ExtensionRecord(
        extension_type="AzureMonitorLinuxAgent",
        publisher="Microsoft.Azure.Monitor",
        location="westeurope",
        installed_version="1.28.11",
    )


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() between tests so caplog keeps receiving records."""
    logger = logging.getLogger(logging_config.LOGGER_NAME)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    logging_config._logger = None
