"""
Lease Table Factory

Provides a single entry point for obtaining a lease table instance.
Automatically selects the static or dnsmasq table based on ENV_MODE.

Usage:
    from queue_portal.services.identity import get_lease_table, DeviceIdentityResolver

    resolver = DeviceIdentityResolver(get_lease_table())
    device_id = await resolver.resolve("192.168.4.23")

Environment Switching:
    - ENV_MODE=development → StaticLeaseTable (STATIC_LEASES setting)
    - ENV_MODE=staging → DnsmasqLeaseTable (LEASES_FILE setting)
    - ENV_MODE=production → DnsmasqLeaseTable (LEASES_FILE setting)
"""

import logging
from functools import lru_cache

from queue_portal.core.config import get_settings
from queue_portal.services.identity.base import BaseLeaseTable, LeaseEntry
from queue_portal.services.identity.dnsmasq import DnsmasqLeaseTable, parse_lease_line
from queue_portal.services.identity.resolver import DeviceIdentityResolver, ResolvedIdentity
from queue_portal.services.identity.static import StaticLeaseTable

logger = logging.getLogger(__name__)


@lru_cache()
def get_lease_table() -> BaseLeaseTable:
    """
    Get the configured lease table instance.

    Returns:
        BaseLeaseTable: StaticLeaseTable in development, DnsmasqLeaseTable otherwise
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Lease Table: Using StaticLeaseTable (development mode)")
        return StaticLeaseTable(settings.static_leases_map)

    logger.info(
        f"Lease Table: Using DnsmasqLeaseTable at {settings.leases_file} "
        f"({settings.env_mode.value} mode)"
    )
    return DnsmasqLeaseTable(settings.leases_file)


def reset_lease_table() -> None:
    """
    Clear the cached lease table instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_lease_table.cache_clear()
    logger.debug("Lease table cache cleared")


__all__ = [
    "get_lease_table",
    "reset_lease_table",
    "BaseLeaseTable",
    "LeaseEntry",
    "DeviceIdentityResolver",
    "ResolvedIdentity",
    "DnsmasqLeaseTable",
    "StaticLeaseTable",
    "parse_lease_line",
]
