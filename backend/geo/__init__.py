from .ip_table import UNKNOWN_REGION, IpRange, IpRangeTable, parse_ipv4
from .policy import RegionPolicy
from .gate import GeoAccessGate, GeoDecision

__all__ = [
    "UNKNOWN_REGION",
    "IpRange",
    "IpRangeTable",
    "parse_ipv4",
    "RegionPolicy",
    "GeoAccessGate",
    "GeoDecision",
]
