"""
Device Identity Resolver

Maps the transient address a request arrives from to a stable device
identity. Network addresses are reassigned on every DHCP cycle; the
hardware address behind them stays put for the length of a visit.

When the lease table has no answer (file missing, address absent, any other
failure) the address itself becomes the identity. The order flow keeps
working, at the cost of treating a device whose address changed mid-day as
a new device.
"""

import logging
from dataclasses import dataclass

from queue_portal.core.exceptions import ResolutionFallback
from queue_portal.services.identity.base import BaseLeaseTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedIdentity:
    """
    Attributes:
        device_id: Key used by the order ledger
        address: Address the request came from
        fallback: True when device_id is the address itself
    """
    device_id: str
    address: str
    fallback: bool = False


class DeviceIdentityResolver:
    """Resolve addresses through a lease table, degrading to the address."""

    def __init__(self, lease_table: BaseLeaseTable):
        self.lease_table = lease_table

    async def resolve_identity(self, address: str) -> ResolvedIdentity:
        try:
            hwid = await self.lease_table.lookup(address)
            if not hwid:
                raise ResolutionFallback(address, "no lease for address")
        except ResolutionFallback as e:
            logger.info(f"Identity fallback: {e}")
            return ResolvedIdentity(device_id=address, address=address, fallback=True)
        except Exception as e:
            fallback = ResolutionFallback(address, f"{type(e).__name__}: {e}")
            logger.warning(f"Identity fallback: {fallback}")
            return ResolvedIdentity(device_id=address, address=address, fallback=True)

        logger.debug(f"Resolved {address} -> {hwid}")
        return ResolvedIdentity(device_id=hwid.lower(), address=address)

    async def resolve(self, address: str) -> str:
        """
        Args:
            address: Transient network address

        Returns:
            Lowercased hardware address, or ``address`` unchanged
        """
        identity = await self.resolve_identity(address)
        return identity.device_id
