"""
Base class for discovery methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .._types import PrinterRecord


class DiscoveryMethod(ABC):
    """Base class for discovery methods."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this discovery method."""
        pass

    @abstractmethod
    async def discover(self) -> list[PrinterRecord]:
        """
        Discover printers using this method.

        Returns list of discovered printers.
        """
        pass

    async def is_available(self) -> bool:
        """Check if this discovery method is available."""
        return True
