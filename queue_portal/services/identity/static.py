"""
Static Lease Table Implementation

Serves leases from a fixed in-memory mapping instead of the dnsmasq file.
Used in development mode (ENV_MODE=development) to:
    - Run the portal on a laptop without a DHCP server
    - Give tests a deterministic address -> device mapping
"""

import logging
from typing import Mapping, Optional

from queue_portal.services.identity.base import BaseLeaseTable

logger = logging.getLogger(__name__)


class StaticLeaseTable(BaseLeaseTable):
    """
    Lease table backed by a dictionary.

    Example:
        >>> table = StaticLeaseTable({"10.0.0.7": "AA:BB:CC:DD:EE:FF"})
        >>> await table.lookup("10.0.0.7")
        'aa:bb:cc:dd:ee:ff'
    """

    def __init__(self, leases: Optional[Mapping[str, str]] = None):
        self._leases = {
            address: hwid.lower() for address, hwid in (leases or {}).items()
        }

    @property
    def provider_name(self) -> str:
        return "static"

    async def lookup(self, address: str) -> Optional[str]:
        return self._leases.get(address)

    def assign(self, address: str, hwid: str) -> None:
        """Add or replace a lease, as a DHCP renewal would."""
        self._leases[address] = hwid.lower()
        logger.debug(f"Static lease {address} -> {hwid.lower()}")

    def release(self, address: str) -> None:
        self._leases.pop(address, None)
