"""
Per-host SNMP printer probe.

Each host goes through three steps, strictly in order:

1. Liveness: GET sysDescr. Every SNMP agent answers it, so no answer means
   no agent and the host is dropped without further requests.
2. Classification: GET page count, serial number and hrDeviceType. Without
   at least one printer signal the host is dropped.
3. Extraction: device description, manufacturer/model, firmware, toner
   supplies, MAC address and printer status.
"""

from __future__ import annotations

import logging
from typing import Optional

from ._types import (
    MAX_SUPPLY_SLOTS,
    OID_HR_DEVICE_DESCR,
    OID_HR_DEVICE_TYPE,
    OID_HR_PRINTER_ERROR_STATE,
    OID_HR_PRINTER_STATUS,
    OID_PRT_GENERAL_SERIAL,
    OID_PRT_PAGE_COUNT,
    OID_SUPPLY_DESCR_BASE,
    OID_SUPPLY_LEVEL_BASE,
    OID_SUPPLY_MAX_BASE,
    OID_SYS_DESCR,
    PrinterRecord,
    PrinterStatus,
)
from .classifier import (
    classify_toner_color,
    extract_firmware_version,
    is_printer_device_type,
    map_printer_status,
    parse_manufacturer_model,
    supply_percent,
)
from .neighbor import NeighborResolver
from .snmp import SnmpSession, SnmpTransport

logger = logging.getLogger(__name__)


class PrinterProber:
    """Runs the liveness/classification/extraction sequence for one host at a time."""

    def __init__(
        self,
        transport: SnmpTransport,
        neighbors: Optional[NeighborResolver] = None,
    ):
        """
        Initialize prober.

        Args:
            transport: SNMP GET primitive
            neighbors: MAC resolver (None disables MAC lookup)
        """
        self.transport = transport
        self.neighbors = neighbors

    async def probe(self, ip: str) -> Optional[PrinterRecord]:
        """
        Probe a single host.

        Returns a PrinterRecord for printers, None for anything else.
        Failures drop the host; cancellation propagates.
        """
        try:
            return await self._probe(ip)
        except Exception as e:
            logger.debug(f"SNMP scan failed for {ip}: {e!r}")
            return None

    async def _probe(self, ip: str) -> Optional[PrinterRecord]:
        session = SnmpSession(self.transport, ip)

        sys_descr = await session.get_string(OID_SYS_DESCR)
        if sys_descr is None:
            return None

        page_count = await session.get_int(OID_PRT_PAGE_COUNT)
        serial_number = await session.get_string(OID_PRT_GENERAL_SERIAL)
        device_type = await session.get_string(OID_HR_DEVICE_TYPE)

        if page_count is None and serial_number is None and not is_printer_device_type(device_type):
            return None

        logger.info(
            f"Printer detected at {ip} - pageCount={page_count}, "
            f"serial={serial_number}, deviceType={device_type}"
        )

        device_descr = await session.get_string(OID_HR_DEVICE_DESCR)
        manufacturer, model = parse_manufacturer_model(sys_descr, device_descr)
        firmware_version = extract_firmware_version(sys_descr)
        toner = await self.read_toner_levels(session)
        mac_address = await self._resolve_mac(ip)
        status = await self.read_status(session)

        return PrinterRecord(
            ip_address=ip,
            mac_address=mac_address,
            manufacturer=manufacturer,
            model=model,
            serial_number=serial_number,
            firmware_version=firmware_version,
            page_count=page_count,
            toner_black=toner.get("black"),
            toner_cyan=toner.get("cyan"),
            toner_magenta=toner.get("magenta"),
            toner_yellow=toner.get("yellow"),
            status=status,
        )

    async def read_toner_levels(self, session: SnmpSession) -> dict[str, Optional[int]]:
        """
        Walk the marker supplies table by slot index.

        Stops at the first slot without a description. Slots whose
        description names no known color are ignored.
        """
        levels: dict[str, Optional[int]] = {}

        for slot in range(1, MAX_SUPPLY_SLOTS + 1):
            description = await session.get_string(f"{OID_SUPPLY_DESCR_BASE}.{slot}")
            if description is None:
                break

            max_capacity = await session.get_int(f"{OID_SUPPLY_MAX_BASE}.{slot}")
            level = await session.get_int(f"{OID_SUPPLY_LEVEL_BASE}.{slot}")

            known, percent = supply_percent(max_capacity, level)
            if not known:
                continue

            color = classify_toner_color(description)
            if color is not None:
                levels[color] = percent

        return levels

    async def read_status(self, session: SnmpSession) -> PrinterStatus:
        """hrPrinterStatus, falling back to Error/Online from the error state."""
        status_code = await session.get_int(OID_HR_PRINTER_STATUS)
        error_state = await session.get_string(OID_HR_PRINTER_ERROR_STATE)
        return map_printer_status(status_code, error_state)

    async def _resolve_mac(self, ip: str) -> Optional[str]:
        if self.neighbors is None:
            return None
        return await self.neighbors.resolve_mac(ip)
