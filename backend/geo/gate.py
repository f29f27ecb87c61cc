"""Geo-IP access gate.

Composes the range table and the region policy into an admit/deny decision
for a request's source address. Unparsable addresses are denied.
"""

import logging
from dataclasses import dataclass

from errors import AccessDenied, MalformedAddress
from geo.ip_table import IpRangeTable, parse_ipv4
from geo.policy import RegionPolicy

logger = logging.getLogger(__name__)

INVALID_REGION = "invalid"


@dataclass(frozen=True)
class GeoDecision:
    allowed: bool
    region: str
    reason: str = ""


class GeoAccessGate:
    """Admit or deny a source address by the region it resolves to.

    The table and policy are immutable; ``reload`` swaps the references so
    concurrent readers always see one complete table.
    """

    def __init__(self, table: IpRangeTable, policy: RegionPolicy):
        # (table, policy) is replaced as one tuple so readers never mix generations
        self._state = (table, policy)

    @property
    def table(self) -> IpRangeTable:
        return self._state[0]

    @property
    def policy(self) -> RegionPolicy:
        return self._state[1]

    def reload(self, table: IpRangeTable | None = None, policy: RegionPolicy | None = None) -> None:
        current_table, current_policy = self._state
        self._state = (
            table if table is not None else current_table,
            policy if policy is not None else current_policy,
        )
        logger.info(f"Geo gate reloaded: {len(self.table)} ranges, enabled={self.policy.enabled}")

    def resolve_region(self, address: str) -> str:
        """Resolve a dotted-quad address to its region.

        Raises:
            MalformedAddress: If the address cannot be parsed.
        """
        return self.table.resolve(parse_ipv4(address))

    def admit(self, address: str) -> GeoDecision:
        table, policy = self._state
        if not policy.enabled:
            return GeoDecision(allowed=True, region="", reason="region block disabled")

        try:
            region = table.resolve(parse_ipv4(address))
        except MalformedAddress as e:
            logger.warning(f"Denied malformed source address: {e.reason}")
            return GeoDecision(allowed=False, region=INVALID_REGION, reason=str(e))

        if policy.admits(region):
            logger.debug(f"Admitted {address} from region {region}")
            return GeoDecision(allowed=True, region=region)

        logger.warning(f"Denied {address} from region {region}")
        return GeoDecision(allowed=False, region=region, reason=f"region {region} not allowed")

    def enforce(self, address: str) -> GeoDecision:
        """Like ``admit`` but raises ``AccessDenied`` on a deny decision."""
        decision = self.admit(address)
        if not decision.allowed:
            raise AccessDenied(decision.region)
        return decision
