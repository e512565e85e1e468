"""
Printer Scanner - SNMP discovery of network printers for the inventory agent.

Scans every locally attached IPv4 subnet for SNMP agents, keeps the ones
that look like printers and extracts manufacturer, model, serial number,
firmware, page count, toner levels and status.

Architecture:
    subnet enumeration -> host-range expansion -> batched concurrent probes
    -> per-host liveness/classification -> attribute extraction

The whole scan is bounded by a 5-minute deadline and degrades to partial
results instead of failing.
"""

__version__ = "0.1.0"

from ._types import (
    PrinterRecord,
    PrinterStatus,
    ScanResult,
    SnmpValue,
    SnmpValueKind,
    SubnetDescriptor,
)

__all__ = [
    "__version__",
    "PrinterRecord",
    "PrinterStatus",
    "ScanResult",
    "SnmpValue",
    "SnmpValueKind",
    "SubnetDescriptor",
]
