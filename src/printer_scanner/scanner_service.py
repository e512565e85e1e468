"""
Printer Scanner Service - periodic discovery and reporting loop.

Runs the SNMP printer scan on a fixed interval and posts any printers
found to the inventory API. Also provides the command-line entry point,
including a one-shot scan and a single-host SNMP diagnostic probe.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from ._types import (
    OID_HR_DEVICE_DESCR,
    OID_HR_DEVICE_TYPE,
    OID_HR_PRINTER_STATUS,
    OID_PRT_GENERAL_SERIAL,
    OID_PRT_PAGE_COUNT,
    OID_SYS_DESCR,
    PrinterRecord,
)
from .config import AgentConfig
from .neighbor import NeighborResolver
from .prober import PrinterProber
from .reporter import InventoryClient
from .scanner import NetworkPrinterScanner
from .snmp import PysnmpTransport, SnmpTransport

logger = logging.getLogger(__name__)

DIAGNOSTIC_OIDS = {
    "sysDescr": OID_SYS_DESCR,
    "hrDeviceDescr": OID_HR_DEVICE_DESCR,
    "prtGeneralSerial": OID_PRT_GENERAL_SERIAL,
    "prtPageCount": OID_PRT_PAGE_COUNT,
    "hrDeviceType": OID_HR_DEVICE_TYPE,
    "hrPrinterStatus": OID_HR_PRINTER_STATUS,
}


class PrinterScanService:
    """
    Periodic printer discovery worker.

    Each cycle runs one scan and posts the result when at least one
    printer was found. Errors in a cycle are logged and the loop goes on.
    """

    def __init__(
        self,
        config: AgentConfig,
        scanner: Optional[NetworkPrinterScanner] = None,
        client: Optional[InventoryClient] = None,
    ):
        """
        Initialize scan service.

        Args:
            config: Agent configuration
            scanner: Printer scanner (created from defaults if None)
            client: Inventory API client (created from config if None)
        """
        self.config = config
        self.scanner = scanner if scanner is not None else NetworkPrinterScanner()
        self.client = client if client is not None else InventoryClient(config)
        self._running = False
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start the scan service and run until stopped."""
        logger.info("Starting Printer Scanner Service")
        self._running = True
        self._shutdown_event.clear()
        await self._main_loop()

    async def stop(self) -> None:
        """Stop the scan service."""
        logger.info("Stopping Printer Scanner Service")
        self._running = False
        self._shutdown_event.set()

    async def close(self) -> None:
        await self.client.close()
        await self.scanner.close()

    async def _main_loop(self) -> None:
        logger.info("Scanner main loop started")

        while self._running:
            if self.config.enable_printer_scan:
                scan_task = asyncio.create_task(self.run_cycle())
                stop_task = asyncio.create_task(self._shutdown_event.wait())
                try:
                    done, _ = await asyncio.wait(
                        {scan_task, stop_task},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    stop_task.cancel()

                if scan_task not in done:
                    # Shutdown requested mid-scan
                    scan_task.cancel()
                    try:
                        await scan_task
                    except asyncio.CancelledError:
                        pass
                    break
            else:
                logger.info("Printer scan disabled, skipping cycle")

            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(),
                    timeout=self.config.scan_interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

        logger.info("Scanner main loop stopped")

    async def run_cycle(self) -> list[PrinterRecord]:
        """Run one scan and report the printers found."""
        try:
            logger.info("Starting network printer discovery")
            printers = await self.scanner.scan()

            if printers:
                await self.client.post_printers(printers)
            else:
                logger.info("No network printers found, nothing to report")

            return printers

        except Exception as e:
            logger.warning(f"Failed to post peripherals to API: {e}")
            return []


async def run_once(scanner: NetworkPrinterScanner) -> list[dict]:
    """Run a single scan and return the printers as dicts."""
    try:
        printers = await scanner.scan()
    finally:
        await scanner.close()
    return [p.to_dict() for p in printers]


async def probe_host(
    ip: str,
    transport: Optional[SnmpTransport] = None,
    neighbors: Optional[NeighborResolver] = None,
) -> dict:
    """
    Query the diagnostic OIDs on one host and run the full printer probe.

    Returns {"oids": {name: {"kind", "value"} | None}, "printer": dict | None}.
    """
    transport = transport if transport is not None else PysnmpTransport()
    try:
        oids = {}
        for name, oid in DIAGNOSTIC_OIDS.items():
            value = await transport.get(ip, oid)
            oids[name] = {"kind": value.kind.value, "value": value.value} if value is not None else None

        prober = PrinterProber(transport, neighbors if neighbors is not None else NeighborResolver())
        printer = await prober.probe(ip)

        return {
            "oids": oids,
            "printer": printer.to_dict() if printer else None,
        }
    finally:
        await transport.close()


def main():
    """Entry point for printer-scanner."""
    import argparse

    parser = argparse.ArgumentParser(description="SNMP Network Printer Scanner")
    parser.add_argument("--config", type=str, help="Path to config file")
    parser.add_argument("--once", action="store_true", help="Run one scan, print JSON and exit")
    parser.add_argument("--probe", type=str, metavar="IP", help="Diagnose a single host and exit")
    parser.add_argument("--log-level", type=str, default=None, help="Log level")
    args = parser.parse_args()

    # Load configuration
    if args.config:
        config = AgentConfig.from_yaml(Path(args.config))
    else:
        config = AgentConfig.from_env()

    if args.log_level:
        config.log_level = args.log_level

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.probe:
        result = asyncio.run(probe_host(args.probe))
        for name, value in result["oids"].items():
            if value is None:
                print(f"{name:<20} (no result)")
            else:
                print(f"{name:<20} [{value['kind']}] {value['value']}")
        print(json.dumps(result["printer"], indent=2))
        return

    if args.once:
        printers = asyncio.run(run_once(NetworkPrinterScanner()))
        print(json.dumps(printers, indent=2))
        return

    # Validate
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        sys.exit(1)

    # Create service
    service = PrinterScanService(config)

    # Handle signals
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.ensure_future(service.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    try:
        loop.run_until_complete(service.start())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        loop.run_until_complete(service.stop())
        loop.run_until_complete(service.close())
        loop.close()


if __name__ == "__main__":
    main()
