"""
dnsmasq Lease Table Implementation

Reads the lease file maintained by dnsmasq on the access point.

Line format (whitespace separated):
    <timestamp> <hwid> <address> <hostname|*> [client-id]

dnsmasq may also write a "duid ..." line for DHCPv6; any line whose first
field is not an integer timestamp is skipped.

Version: 1.0.0
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterator, Optional, Union

from queue_portal.services.identity.base import BaseLeaseTable, LeaseEntry

logger = logging.getLogger(__name__)


def parse_lease_line(line: str) -> Optional[LeaseEntry]:
    """
    Parse one lease line.

    Returns:
        LeaseEntry, or None for blank and malformed lines
    """
    parts = line.strip().split()
    if len(parts) < 3:
        return None
    try:
        timestamp = int(parts[0])
    except ValueError:
        return None
    label = parts[3] if len(parts) > 3 and parts[3] != "*" else None
    return LeaseEntry(timestamp=timestamp, hwid=parts[1], address=parts[2], label=label)


class DnsmasqLeaseTable(BaseLeaseTable):
    """
    Lease table backed by a dnsmasq lease file.

    The file is re-read on every lookup; dnsmasq rewrites it on each lease
    change and it only holds one line per client.

    Attributes:
        path: Location of the lease file
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @property
    def provider_name(self) -> str:
        return "dnsmasq"

    def _entries(self) -> Iterator[LeaseEntry]:
        with open(self.path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                entry = parse_lease_line(line)
                if entry is not None:
                    yield entry

    def _find(self, address: str) -> Optional[str]:
        best: Optional[LeaseEntry] = None
        for entry in self._entries():
            if entry.address != address:
                continue
            # Most recent lease wins; a later line wins a tie
            if best is None or entry.timestamp >= best.timestamp:
                best = entry
        return best.hwid.lower() if best else None

    async def lookup(self, address: str) -> Optional[str]:
        return await asyncio.to_thread(self._find, address)

    async def health_check(self) -> bool:
        readable = self.path.is_file()
        if not readable:
            logger.warning(f"Lease file not readable: {self.path}")
        return readable
