"""
Lease Table Abstract Base Class

Defines the interface contract for all lease table implementations.
Both StaticLeaseTable and DnsmasqLeaseTable must implement these methods.

A lease table answers one question: which hardware address currently holds
a given network address? The ordering engine uses the answer as the
device's identity for the day.

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LeaseEntry:
    """
    One DHCP lease.

    Attributes:
        timestamp: Lease timestamp (dnsmasq writes the expiry time)
        hwid: Hardware address
        address: Leased network address
        label: Optional client hostname
    """
    timestamp: int
    hwid: str
    address: str
    label: Optional[str] = None


class BaseLeaseTable(ABC):
    """
    Abstract base class for lease tables.

    Example:
        >>> table = get_lease_table()
        >>> await table.lookup("192.168.4.23")
        'b8:27:eb:12:34:56'
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the lease source.

        Returns:
            str: Provider name (e.g., "static", "dnsmasq")
        """
        pass

    @abstractmethod
    async def lookup(self, address: str) -> Optional[str]:
        """
        Find the hardware address leased to ``address``.

        Args:
            address: Transient network address (e.g. IPv4 string)

        Returns:
            Lowercased hardware address, or None if there is no lease

        Raises:
            OSError: If the underlying table cannot be read
        """
        pass

    async def health_check(self) -> bool:
        """
        Check if the lease source is readable.

        Returns:
            bool: True if lookups can be served
        """
        return True
