"""
SNMP network printer scanner.

Enumerates local subnets, probes every candidate host in fixed-size
concurrent batches and bounds the whole run with a 5-minute deadline.
The scan never raises for operational problems: deadline expiry and
unexpected errors return whatever printers were found so far. Only caller
cancellation (asyncio task cancellation) propagates.
"""

from __future__ import annotations

import asyncio
import logging
from ipaddress import IPv4Address
from typing import Callable, Optional

from ._types import (
    BATCH_SIZE,
    MAX_HOSTS_PER_SUBNET,
    SCAN_TIMEOUT_SECONDS,
    PrinterRecord,
    ScanResult,
    SubnetDescriptor,
    now_utc,
)
from .discovery import DiscoveryMethod, get_local_subnets, get_subnet_hosts, is_truncated
from .neighbor import NeighborResolver
from .prober import PrinterProber
from .snmp import PysnmpTransport, SnmpTransport

logger = logging.getLogger(__name__)


class NetworkPrinterScanner(DiscoveryMethod):
    """
    Discover network printers on all locally attached IPv4 subnets.

    At most batch_size hosts are probed at once; a batch must finish
    completely before the next one starts.
    """

    def __init__(
        self,
        transport: Optional[SnmpTransport] = None,
        neighbors: Optional[NeighborResolver] = None,
        subnet_source: Callable[[], list[SubnetDescriptor]] = get_local_subnets,
        batch_size: int = BATCH_SIZE,
        scan_timeout: float = SCAN_TIMEOUT_SECONDS,
        max_hosts_per_subnet: int = MAX_HOSTS_PER_SUBNET,
    ):
        """
        Initialize printer scanner.

        Args:
            transport: SNMP GET primitive (pysnmp over UDP by default)
            neighbors: MAC resolver (system ping/arp by default)
            subnet_source: Returns the subnets to scan
            batch_size: Concurrent host probes per batch
            scan_timeout: Overall deadline in seconds
            max_hosts_per_subnet: Host cap per subnet
        """
        self.transport = transport if transport is not None else PysnmpTransport()
        self.prober = PrinterProber(
            self.transport,
            neighbors if neighbors is not None else NeighborResolver(),
        )
        self.subnet_source = subnet_source
        self.batch_size = batch_size
        self.scan_timeout = scan_timeout
        self.max_hosts_per_subnet = max_hosts_per_subnet
        self.last_result: Optional[ScanResult] = None

    @property
    def name(self) -> str:
        return "snmp-printer"

    async def discover(self) -> list[PrinterRecord]:
        return await self.scan()

    async def close(self) -> None:
        await self.transport.close()

    async def scan(self) -> list[PrinterRecord]:
        """
        Scan all local subnets for SNMP printers.

        Returns the printers found. On deadline expiry or unexpected
        failure the printers from completed batches are returned.
        """
        printers: list[PrinterRecord] = []
        result = ScanResult()
        self.last_result = result

        try:
            async with asyncio.timeout(self.scan_timeout):
                subnets = self.subnet_source()
                result.subnets = [str(s) for s in subnets]
                logger.info(f"Found {len(subnets)} local subnets: {', '.join(result.subnets)}")

                if not subnets:
                    logger.warning("No local subnets found for printer scanning")
                    result.status = "completed"
                    return printers

                for subnet in subnets:
                    await self._scan_subnet(subnet, printers, result)

            result.status = "completed"
            logger.info(f"Printer scan complete, found {len(printers)} printers")
            return printers

        except TimeoutError:
            # asyncio.timeout only raises TimeoutError for its own deadline;
            # caller cancellation stays a CancelledError and propagates.
            result.status = "timed_out"
            logger.warning(f"Printer scan timed out, returning {len(printers)} printers found so far")
            return printers

        except Exception as e:
            result.status = "failed"
            result.error_message = str(e)
            logger.warning(f"Printer scan failed, returning {len(printers)} printers found so far: {e}")
            return printers

        finally:
            result.completed_at = now_utc()
            result.printers_found = len(printers)

    async def _scan_subnet(
        self,
        subnet: SubnetDescriptor,
        printers: list[PrinterRecord],
        result: ScanResult,
    ) -> None:
        hosts = get_subnet_hosts(subnet.address, subnet.mask, self.max_hosts_per_subnet)

        if is_truncated(subnet.address, subnet.mask, self.max_hosts_per_subnet):
            result.truncated_subnets.append(str(subnet))
            logger.warning(f"Subnet {subnet} exceeds {self.max_hosts_per_subnet} hosts, scanning first hosts only")

        logger.info(f"Scanning {len(hosts)} hosts on {subnet} for SNMP printers")
        await self.scan_hosts(hosts, printers, result)

    async def scan_hosts(
        self,
        hosts: list[IPv4Address],
        printers: list[PrinterRecord],
        result: Optional[ScanResult] = None,
    ) -> None:
        """
        Probe hosts in sequential batches, appending printers as batches finish.

        printers is only mutated between batches, never while probes run.
        """
        for i in range(0, len(hosts), self.batch_size):
            batch = hosts[i:i + self.batch_size]

            tasks = [self.prober.probe(str(ip)) for ip in batch]
            batch_results = await asyncio.gather(*tasks, return_exceptions=True)

            found = 0
            for ip, probe_result in zip(batch, batch_results):
                if isinstance(probe_result, BaseException):
                    logger.debug(f"Probe of {ip} ended with {probe_result!r}")
                    continue
                if probe_result is not None:
                    printers.append(probe_result)
                    found += 1

            if result is not None:
                result.hosts_probed += len(batch)

            if found > 0:
                logger.info(f"Batch {i}-{i + len(batch) - 1}: found {found} printers")
