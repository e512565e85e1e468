"""
Local subnet enumeration and host-range expansion.

Finds the IPv4 subnets attached to operational, non-loopback, non-tunnel
adapters and expands each one into the candidate host addresses to probe.
"""

from __future__ import annotations

import logging
import socket
from ipaddress import IPv4Address, AddressValueError
from typing import Optional

import psutil

from .._types import MAX_HOSTS_PER_SUBNET, SubnetDescriptor

logger = logging.getLogger(__name__)

# Adapter name prefixes/fragments that identify tunnel interfaces
TUNNEL_NAME_PREFIXES = ("tun", "utun", "wg", "gif", "stf", "ipip", "sit", "gre", "ppp")
TUNNEL_NAME_FRAGMENTS = ("teredo", "isatap", "tunnel")


def _flag_set(stats) -> set[str]:
    flags = getattr(stats, "flags", "") or ""
    return {f.strip() for f in flags.split(",") if f.strip()}


def _is_loopback_adapter(name: str, stats) -> bool:
    lower = name.lower()
    return "loopback" in _flag_set(stats) or lower == "lo" or lower.startswith("lo0") or "loopback" in lower


def _is_tunnel_adapter(name: str, stats) -> bool:
    lower = name.lower()
    if "pointopoint" in _flag_set(stats):
        return True
    if lower.startswith(TUNNEL_NAME_PREFIXES):
        return True
    return any(fragment in lower for fragment in TUNNEL_NAME_FRAGMENTS)


def _parse_ipv4(value: Optional[str]) -> Optional[IPv4Address]:
    if not value:
        return None
    try:
        return IPv4Address(value)
    except (AddressValueError, ValueError):
        return None


def get_local_subnets() -> list[SubnetDescriptor]:
    """
    Enumerate locally attached IPv4 subnets.

    Only adapters that are up, not loopback and not tunnels are considered.
    Each IPv4 unicast address with a netmask yields one descriptor. An
    empty list is a valid result.
    """
    subnets: list[SubnetDescriptor] = []

    stats = psutil.net_if_stats()
    addrs = psutil.net_if_addrs()

    for name, nic_stats in stats.items():
        if not nic_stats.isup:
            continue
        if _is_loopback_adapter(name, nic_stats) or _is_tunnel_adapter(name, nic_stats):
            continue

        for addr in addrs.get(name, []):
            if addr.family != socket.AF_INET:
                continue

            address = _parse_ipv4(addr.address)
            mask = _parse_ipv4(addr.netmask)
            if address is None or mask is None:
                continue
            if address.is_loopback:
                continue

            subnets.append(SubnetDescriptor(address=address, mask=mask))

    return subnets


def _host_bounds(address: IPv4Address, mask: IPv4Address) -> tuple[int, int]:
    """Return (network, broadcast) as 32-bit integers."""
    addr_int = int(address)
    mask_int = int(mask)
    network = addr_int & mask_int
    broadcast = addr_int | (~mask_int & 0xFFFFFFFF)
    return network, broadcast


def usable_host_count(address: IPv4Address, mask: IPv4Address) -> int:
    """Number of addresses strictly between network and broadcast."""
    network, broadcast = _host_bounds(address, mask)
    return max(broadcast - network - 1, 0)


def is_truncated(
    address: IPv4Address,
    mask: IPv4Address,
    max_hosts: int = MAX_HOSTS_PER_SUBNET,
) -> bool:
    """Whether the host cap drops part of this subnet."""
    return usable_host_count(address, mask) > max_hosts


def get_subnet_hosts(
    address: IPv4Address,
    mask: IPv4Address,
    max_hosts: int = MAX_HOSTS_PER_SUBNET,
) -> list[IPv4Address]:
    """
    Expand a subnet into candidate host addresses.

    Args:
        address: Local address on the subnet (excluded from the result)
        mask: Subnet mask
        max_hosts: Cap on the host range (first N hosts are kept)

    Returns:
        Hosts from network+1 upwards in ascending order, never including
        the network address, the broadcast address or the local address.
    """
    network, _ = _host_bounds(address, mask)
    host_count = min(usable_host_count(address, mask), max_hosts)

    hosts = []
    for i in range(1, host_count + 1):
        host = IPv4Address(network + i)
        if host == address:
            continue
        hosts.append(host)

    return hosts
