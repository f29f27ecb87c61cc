"""IPv4 range → region lookup table.

The table is loaded once from a flat range file and never mutated; a reload
builds a new table and swaps the reference.

Range file format, one record per line (``\\n`` or ``\\r\\n``):

    low,high,region

where ``low`` and ``high`` are inclusive decimal encodings of IPv4 addresses.
"""

import bisect
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from errors import MalformedAddress

logger = logging.getLogger(__name__)

UNKNOWN_REGION = "unknown"
MAX_IPV4 = 2**32 - 1

_DECIMAL = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class IpRange:
    low: int
    high: int
    region: str

    def contains(self, ip: int) -> bool:
        return self.low <= ip <= self.high


def parse_ipv4(address: str) -> int:
    """Encode a dotted-quad IPv4 string as ``a*2^24 + b*2^16 + c*2^8 + d``.

    Raises:
        MalformedAddress: If there are not exactly four parts or a part is
            not a decimal integer in 0..255.
    """
    parts = address.split(".")
    if len(parts) != 4:
        raise MalformedAddress(address, f"expected 4 octets, got {len(parts)}")

    value = 0
    for part in parts:
        if not _DECIMAL.fullmatch(part):
            raise MalformedAddress(address, f"octet {part!r} is not a number")
        octet = int(part)
        if octet > 255:
            raise MalformedAddress(address, f"octet {octet} out of range")
        value = (value << 8) | octet
    return value


def _parse_range_line(line: str) -> IpRange | None:
    parts = line.split(",")
    if len(parts) != 3:
        return None
    low, high, region = (p.strip() for p in parts)
    if not (_DECIMAL.fullmatch(low) and _DECIMAL.fullmatch(high)):
        return None
    low_value, high_value = int(low), int(high)
    if low_value > high_value or high_value > MAX_IPV4:
        return None
    return IpRange(low=low_value, high=high_value, region=region)


class IpRangeTable:
    """Immutable, sorted range table with binary-search lookup."""

    def __init__(self, ranges: list[IpRange] | None = None):
        self._ranges = tuple(sorted(ranges or [], key=lambda r: (r.low, r.high)))
        self._lows = [r.low for r in self._ranges]

    def __len__(self) -> int:
        return len(self._ranges)

    @classmethod
    def from_text(cls, text: str) -> "IpRangeTable":
        """Build a table from range-file content, skipping malformed lines."""
        ranges = []
        skipped = 0
        for line in text.splitlines():
            if not line.strip():
                continue
            ip_range = _parse_range_line(line)
            if ip_range is None:
                skipped += 1
                continue
            ranges.append(ip_range)
        if skipped:
            logger.warning(f"Skipped {skipped} malformed ip range lines")
        return cls(ranges)

    @classmethod
    def from_file(cls, path: str | Path) -> "IpRangeTable":
        """Load a range file. A missing file gives an empty table."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read ip list file {path}: {e}")
            return cls()
        table = cls.from_text(text)
        logger.info(f"Loaded {len(table)} ip regions")
        return table

    def resolve(self, ip: int) -> str:
        """Return the region of the range containing ``ip``, or ``"unknown"``."""
        index = bisect.bisect_right(self._lows, ip) - 1
        if index >= 0 and self._ranges[index].contains(ip):
            return self._ranges[index].region
        return UNKNOWN_REGION
