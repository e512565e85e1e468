"""
Type definitions for the printer scanner.

These dataclasses define the domain model for SNMP printer discovery,
plus the fixed protocol constants and lookup tables used by the prober.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from ipaddress import IPv4Address
from typing import Any, Optional


def now_utc() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Scan limits
# =============================================================================

BATCH_SIZE = 20                 # Concurrent host probes per batch
SNMP_TIMEOUT_SECONDS = 3.0      # Per-OID GET timeout
SCAN_TIMEOUT_SECONDS = 300.0    # Overall scan ceiling (5 minutes)
PING_TIMEOUT_SECONDS = 0.5      # ICMP echo before neighbor lookup
NEIGHBOR_TIMEOUT_SECONDS = 2.0  # arp / ip neigh subprocess
MAX_HOSTS_PER_SUBNET = 254      # Effectively /24
MAX_SUPPLY_SLOTS = 8

SNMP_PORT = 161
SNMP_COMMUNITY = "public"


# =============================================================================
# OIDs (MIB-II, HOST-RESOURCES-MIB, Printer MIB RFC 3805)
# =============================================================================

OID_SYS_DESCR = "1.3.6.1.2.1.1.1.0"
OID_HR_DEVICE_TYPE = "1.3.6.1.2.1.25.3.2.1.2.1"
OID_HR_DEVICE_DESCR = "1.3.6.1.2.1.25.3.2.1.3.1"
OID_HR_PRINTER_STATUS = "1.3.6.1.2.1.25.3.5.1.1.1"
OID_HR_PRINTER_ERROR_STATE = "1.3.6.1.2.1.25.3.5.1.2.1"
OID_PRT_GENERAL_SERIAL = "1.3.6.1.2.1.43.5.1.1.17.1"
OID_PRT_PAGE_COUNT = "1.3.6.1.2.1.43.10.2.1.4.1.1"

# prtMarkerSupplies table columns, suffixed with .{slot}
OID_SUPPLY_DESCR_BASE = "1.3.6.1.2.1.43.11.1.1.6.1"
OID_SUPPLY_MAX_BASE = "1.3.6.1.2.1.43.11.1.1.8.1"
OID_SUPPLY_LEVEL_BASE = "1.3.6.1.2.1.43.11.1.1.9.1"

# hrDeviceType value for the "printer" device category
HR_DEVICE_PRINTER = "1.3.6.1.2.1.25.3.1.5"

# prtMarkerSuppliesLevel: "some remaining, amount unknown"
SUPPLY_LEVEL_SOME_REMAINING = -3


# =============================================================================
# Lookup tables (read-only, iteration order is significant)
# =============================================================================

# (name fragment, manufacturer) - first match wins
KNOWN_MANUFACTURERS: tuple[tuple[str, str], ...] = (
    ("HP", "HP"),
    ("Hewlett-Packard", "HP"),
    ("Hewlett Packard", "HP"),
    ("Brother", "Brother"),
    ("Canon", "Canon"),
    ("Epson", "Epson"),
    ("Ricoh", "Ricoh"),
    ("Xerox", "Xerox"),
    ("Lexmark", "Lexmark"),
    ("Kyocera", "Kyocera"),
    ("Samsung", "Samsung"),
    ("Konica", "Konica Minolta"),
    ("Sharp", "Sharp"),
    ("OKI", "OKI"),
    ("Dell", "Dell"),
)

# (color, lowercase keywords) - first match wins
TONER_COLOR_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("black", ("black", "bk")),
    ("cyan", ("cyan", "c ")),
    ("magenta", ("magenta", "m ")),
    ("yellow", ("yellow", "y ")),
)

FIRMWARE_PREFIXES: tuple[str, ...] = ("FW:", "firmware ", "Firmware:", "V")

MODEL_MAX_LENGTH = 100


class PrinterStatus(str, Enum):
    """Operational status reported for a printer."""
    IDLE = "Idle"
    PRINTING = "Printing"
    WARMING_UP = "Warming Up"
    ERROR = "Error"
    ONLINE = "Online"


# hrPrinterStatus codes: 1=other, 2=unknown, 3=idle, 4=printing, 5=warmup
HR_PRINTER_STATUS_CODES: dict[int, PrinterStatus] = {
    3: PrinterStatus.IDLE,
    4: PrinterStatus.PRINTING,
    5: PrinterStatus.WARMING_UP,
}


class SnmpValueKind(str, Enum):
    """Kinds of SNMP varbind values the prober cares about."""
    INTEGER = "integer"
    COUNTER = "counter"
    OCTET_STRING = "octet_string"
    OBJECT_ID = "object_id"
    OTHER = "other"


@dataclass(frozen=True)
class SnmpValue:
    """
    A value returned by an SNMP GET.

    Absent values (NoSuchInstance, NoSuchObject, EndOfMibView, errors and
    timeouts) are never represented here; the GET primitive returns None.
    """
    kind: SnmpValueKind
    value: Any

    @classmethod
    def integer(cls, value: int) -> "SnmpValue":
        return cls(SnmpValueKind.INTEGER, int(value))

    @classmethod
    def counter(cls, value: int) -> "SnmpValue":
        return cls(SnmpValueKind.COUNTER, int(value))

    @classmethod
    def string(cls, value: str) -> "SnmpValue":
        return cls(SnmpValueKind.OCTET_STRING, value)

    @classmethod
    def object_id(cls, value: str) -> "SnmpValue":
        return cls(SnmpValueKind.OBJECT_ID, value)

    def as_int(self) -> Optional[int]:
        """Integer value for INTEGER/COUNTER kinds, None otherwise."""
        if self.kind in (SnmpValueKind.INTEGER, SnmpValueKind.COUNTER):
            return int(self.value)
        return None

    def as_string(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SubnetDescriptor:
    """A locally attached IPv4 subnet (address + mask of one adapter)."""
    address: IPv4Address
    mask: IPv4Address

    def __str__(self) -> str:
        return f"{self.address}/{self.mask}"


@dataclass(frozen=True)
class PrinterRecord:
    """
    A network printer discovered via SNMP.

    Only emitted for hosts that answered sysDescr and gave at least one
    printer signal (page count, serial number, or printer device type).
    """
    ip_address: str
    mac_address: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    firmware_version: Optional[str] = None
    page_count: Optional[int] = None

    # Percent 0-100, None when the supply is missing or its level is unknown
    toner_black: Optional[int] = None
    toner_cyan: Optional[int] = None
    toner_magenta: Optional[int] = None
    toner_yellow: Optional[int] = None

    status: PrinterStatus = PrinterStatus.ONLINE

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the inventory API field names."""
        return {
            "ipAddress": self.ip_address,
            "macAddress": self.mac_address,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "serialNumber": self.serial_number,
            "firmwareVersion": self.firmware_version,
            "pageCount": self.page_count,
            "tonerBlackPercent": self.toner_black,
            "tonerCyanPercent": self.toner_cyan,
            "tonerMagentaPercent": self.toner_magenta,
            "tonerYellowPercent": self.toner_yellow,
            "status": self.status.value,
        }


@dataclass
class ScanResult:
    """Summary of a printer scan run."""
    scan_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=now_utc)
    completed_at: Optional[datetime] = None

    # Results
    subnets: list[str] = field(default_factory=list)
    hosts_probed: int = 0
    printers_found: int = 0

    # Subnets with more usable hosts than MAX_HOSTS_PER_SUBNET
    truncated_subnets: list[str] = field(default_factory=list)

    # Status
    status: str = "running"  # running, completed, timed_out, failed
    error_message: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return bool(self.truncated_subnets)
