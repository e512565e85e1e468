"""
Discovery building blocks.

- DiscoveryMethod: common interface (async discover() -> list[PrinterRecord])
- Subnet enumeration: locally attached IPv4 subnets from live adapter state
- Host-range expansion: candidate addresses per subnet, capped at 254
"""

from .base import DiscoveryMethod
from .subnets import (
    get_local_subnets,
    get_subnet_hosts,
    is_truncated,
    usable_host_count,
)

__all__ = [
    "DiscoveryMethod",
    "get_local_subnets",
    "get_subnet_hosts",
    "is_truncated",
    "usable_host_count",
]
