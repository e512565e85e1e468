"""
MAC address resolution through the OS neighbor (ARP) cache.

An ICMP echo is sent first so the kernel has a fresh neighbor entry, then
the platform's arp tool is queried for the single address.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sys
from typing import Optional

from ._types import NEIGHBOR_TIMEOUT_SECONDS, PING_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

MAC_PATTERN = re.compile(
    r"([0-9a-fA-F]{1,2}[:\-][0-9a-fA-F]{1,2}[:\-][0-9a-fA-F]{1,2}"
    r"[:\-][0-9a-fA-F]{1,2}[:\-][0-9a-fA-F]{1,2}[:\-][0-9a-fA-F]{1,2})"
)


def parse_mac(output: str, ip: str) -> Optional[str]:
    """
    Find the MAC address for an IP in arp/ip-neigh output.

    Only lines mentioning the IP are considered. The MAC is upper-cased
    and dash separators are normalised to colons.
    """
    ip_pattern = re.compile(rf"(?<![\d.]){re.escape(ip)}(?![\d.])")
    for line in output.splitlines():
        if not ip_pattern.search(line):
            continue
        match = MAC_PATTERN.search(line)
        if match:
            return match.group(1).upper().replace("-", ":")
    return None


def ping_command(ip: str, platform: str = sys.platform) -> list[str]:
    """Single ICMP echo with a ~500ms budget."""
    if platform.startswith("win"):
        return ["ping", "-n", "1", "-w", str(int(PING_TIMEOUT_SECONDS * 1000)), ip]
    if platform == "darwin":
        return ["ping", "-c", "1", "-W", str(int(PING_TIMEOUT_SECONDS * 1000)), ip]
    return ["ping", "-c", "1", "-W", "1", ip]


def neighbor_commands(ip: str, platform: str = sys.platform) -> list[list[str]]:
    """Neighbor cache queries to try in order."""
    if platform.startswith("win"):
        return [["arp", "-a", ip]]
    if platform == "darwin":
        return [["arp", "-n", ip]]
    return [["arp", "-n", ip], ["ip", "neigh", "show", ip]]


class NeighborResolver:
    """Resolves IPv4 addresses to MAC addresses."""

    def __init__(self, platform: str = sys.platform):
        self.platform = platform

    async def _run(self, cmd: list[str], timeout: float) -> Optional[str]:
        """Run a command, returning stdout or None on any failure."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError) as e:
            logger.debug(f"{cmd[0]} unavailable: {e}")
            return None

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.debug(f"{' '.join(cmd)} timed out")
            return None

        return stdout.decode(errors="replace")

    async def ping(self, ip: str) -> None:
        """Send one echo request to populate the neighbor cache."""
        await self._run(ping_command(ip, self.platform), timeout=PING_TIMEOUT_SECONDS + 1.5)

    async def lookup(self, ip: str) -> Optional[str]:
        """Look up an IP in the neighbor cache without pinging."""
        for cmd in neighbor_commands(ip, self.platform):
            output = await self._run(cmd, timeout=NEIGHBOR_TIMEOUT_SECONDS)
            if output is None:
                continue
            mac = parse_mac(output, ip)
            if mac:
                return mac
        return None

    async def resolve_mac(self, ip: str) -> Optional[str]:
        """Ping the host, then read its MAC from the neighbor cache."""
        try:
            await self.ping(ip)
            return await self.lookup(ip)
        except OSError as e:
            logger.debug(f"MAC lookup for {ip} failed: {e}")
            return None
