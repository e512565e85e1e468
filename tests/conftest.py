"""Shared fixtures: in-memory SNMP agent and neighbor cache."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from printer_scanner._types import (
    OID_HR_DEVICE_DESCR,
    OID_HR_DEVICE_TYPE,
    OID_HR_PRINTER_STATUS,
    OID_PRT_GENERAL_SERIAL,
    OID_PRT_PAGE_COUNT,
    OID_SUPPLY_DESCR_BASE,
    OID_SUPPLY_LEVEL_BASE,
    OID_SUPPLY_MAX_BASE,
    OID_SYS_DESCR,
    HR_DEVICE_PRINTER,
    SnmpValue,
)
from printer_scanner.neighbor import NeighborResolver
from printer_scanner.snmp import SnmpTransport


class FakeSnmpTransport(SnmpTransport):
    """SNMP transport backed by a dict of ip -> {oid: SnmpValue}."""

    def __init__(self, delay: float = 0.0):
        self.hosts: dict[str, dict[str, SnmpValue]] = {}
        self.delays: dict[str, float] = {}
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    def add_host(self, ip: str, oids: dict[str, SnmpValue], delay: Optional[float] = None) -> None:
        self.hosts[ip] = dict(oids)
        if delay is not None:
            self.delays[ip] = delay

    def calls_for(self, ip: str) -> list[str]:
        return [oid for host, oid in self.calls if host == ip]

    async def get(self, ip: str, oid: str) -> Optional[SnmpValue]:
        self.calls.append((ip, oid))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(ip, self.delay)
            if delay:
                await asyncio.sleep(delay)
            return self.hosts.get(ip, {}).get(oid)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


class FakeNeighborResolver(NeighborResolver):
    """Neighbor resolver answering from a dict instead of ping/arp."""

    def __init__(self, macs: Optional[dict[str, str]] = None):
        super().__init__(platform="linux")
        self.macs = macs or {}
        self.resolved: list[str] = []

    async def resolve_mac(self, ip: str) -> Optional[str]:
        self.resolved.append(ip)
        return self.macs.get(ip)


def supply_oids(slot: int, description: str, max_capacity: Optional[int], level: Optional[int]) -> dict[str, SnmpValue]:
    """OIDs for one prtMarkerSupplies row."""
    oids = {f"{OID_SUPPLY_DESCR_BASE}.{slot}": SnmpValue.string(description)}
    if max_capacity is not None:
        oids[f"{OID_SUPPLY_MAX_BASE}.{slot}"] = SnmpValue.integer(max_capacity)
    if level is not None:
        oids[f"{OID_SUPPLY_LEVEL_BASE}.{slot}"] = SnmpValue.integer(level)
    return oids


def printer_oids(
    sys_descr: str = "HP ETHERNET MULTI-ENVIRONMENT,ROM none,JETDIRECT,JD153,EEPROM JSI23900FW:2.73.1",
    device_descr: Optional[str] = "HP LaserJet Pro M404dn",
    serial: Optional[str] = "SN1",
    page_count: Optional[int] = 1200,
    device_type_printer: bool = True,
    status: Optional[int] = 3,
    supplies: tuple = (("Black Cartridge HP CF259A", 100, 30), ("Cyan Cartridge", 100, 60)),
) -> dict[str, SnmpValue]:
    """OID map for a responsive printer."""
    oids = {OID_SYS_DESCR: SnmpValue.string(sys_descr)}
    if device_descr is not None:
        oids[OID_HR_DEVICE_DESCR] = SnmpValue.string(device_descr)
    if serial is not None:
        oids[OID_PRT_GENERAL_SERIAL] = SnmpValue.string(serial)
    if page_count is not None:
        oids[OID_PRT_PAGE_COUNT] = SnmpValue.counter(page_count)
    if device_type_printer:
        oids[OID_HR_DEVICE_TYPE] = SnmpValue.object_id(HR_DEVICE_PRINTER)
    if status is not None:
        oids[OID_HR_PRINTER_STATUS] = SnmpValue.integer(status)
    for slot, (description, max_capacity, level) in enumerate(supplies, start=1):
        oids.update(supply_oids(slot, description, max_capacity, level))
    return oids


@pytest.fixture
def fake_transport():
    """Empty in-memory SNMP transport."""
    return FakeSnmpTransport()


@pytest.fixture
def fake_neighbors():
    """Neighbor resolver with no known MACs."""
    return FakeNeighborResolver()
