"""
Printer attribute extraction from SNMP responses.

Vendors fill sysDescr and hrDeviceDescr with loosely structured text, so
manufacturer, model, firmware and supply colors are recovered with
heuristics rather than authoritative MIB lookups. All functions here are
pure; the prober feeds them raw strings and integers.
"""

from __future__ import annotations

import re
from typing import Optional

from ._types import (
    FIRMWARE_PREFIXES,
    HR_DEVICE_PRINTER,
    HR_PRINTER_STATUS_CODES,
    KNOWN_MANUFACTURERS,
    MODEL_MAX_LENGTH,
    SUPPLY_LEVEL_SOME_REMAINING,
    TONER_COLOR_KEYWORDS,
    PrinterStatus,
)

_MODEL_SEPARATORS = re.compile(r"[\n\r;]")


def is_printer_device_type(device_type: Optional[str]) -> bool:
    """Whether an hrDeviceType value names the printer device category."""
    return device_type is not None and HR_DEVICE_PRINTER in device_type


def parse_manufacturer(
    sys_descr: Optional[str],
    device_descr: Optional[str],
) -> Optional[str]:
    """
    Find a known manufacturer name in the device or system description.

    The device description is searched first. Within one string the first
    entry of KNOWN_MANUFACTURERS that occurs (case-insensitively) wins.
    """
    for source in (device_descr, sys_descr):
        if not source or not source.strip():
            continue
        lower = source.lower()
        for fragment, brand in KNOWN_MANUFACTURERS:
            if fragment.lower() in lower:
                return brand
    return None


def parse_model(
    sys_descr: Optional[str],
    device_descr: Optional[str],
) -> Optional[str]:
    """First line/segment of the device description (else sysDescr), max 100 chars."""
    source = device_descr if device_descr is not None else sys_descr
    if source is None:
        return None

    segments = [s for s in _MODEL_SEPARATORS.split(source) if s]
    if not segments:
        return None

    model = segments[0].strip()
    return model[:MODEL_MAX_LENGTH] or None


def parse_manufacturer_model(
    sys_descr: Optional[str],
    device_descr: Optional[str],
) -> tuple[Optional[str], Optional[str]]:
    """Return (manufacturer, model) from the SNMP description strings."""
    return (
        parse_manufacturer(sys_descr, device_descr),
        parse_model(sys_descr, device_descr),
    )


def extract_firmware_version(sys_descr: Optional[str]) -> Optional[str]:
    """
    Pull a firmware version out of sysDescr.

    Looks for "FW:", "firmware ", "Firmware:" and "V" in that order and
    takes the run of digits and dots right after the first occurrence.
    The bare "V" prefix also matches words like "Version2"; that is a
    known limitation of the heuristic.
    """
    if sys_descr is None:
        return None

    for prefix in FIRMWARE_PREFIXES:
        match = re.search(re.escape(prefix), sys_descr, re.IGNORECASE)
        if match is None:
            continue

        start = match.end()
        end = start
        while end < len(sys_descr) and (sys_descr[end].isdecimal() or sys_descr[end] == "."):
            end += 1

        if end > start:
            return sys_descr[start:end]

    return None


def classify_toner_color(description: str) -> Optional[str]:
    """Map a marker-supply description to black/cyan/magenta/yellow."""
    lower = description.lower()
    for color, keywords in TONER_COLOR_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return color
    return None


def supply_percent(max_capacity: Optional[int], level: Optional[int]) -> tuple[bool, Optional[int]]:
    """
    Compute the remaining percentage of a supply slot.

    Returns:
        (known, percent). known is False when the slot carries no usable
        reading. The -3 "some remaining" sentinel yields (True, None).
    """
    if level == SUPPLY_LEVEL_SOME_REMAINING:
        return True, None

    if max_capacity is not None and max_capacity > 0 and level is not None:
        percent = round(level * 100.0 / max_capacity)
        return True, max(0, min(100, percent))

    return False, None


def map_printer_status(status_code: Optional[int], error_state: Optional[str]) -> PrinterStatus:
    """Map hrPrinterStatus (+ detected error state) to a PrinterStatus."""
    if status_code is not None and status_code in HR_PRINTER_STATUS_CODES:
        return HR_PRINTER_STATUS_CODES[status_code]
    return PrinterStatus.ERROR if error_state is not None else PrinterStatus.ONLINE
