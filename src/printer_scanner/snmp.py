"""
SNMP v2c GET primitive.

Every GET resolves to either an SnmpValue or None. Timeouts, transport
errors, error PDUs and the NoSuchInstance/NoSuchObject/EndOfMibView
exception values are all reported as None ("absent") so callers never need
exception handling for per-OID failures.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from pyasn1.type import univ
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto import rfc1902, rfc1905

from ._types import (
    SNMP_COMMUNITY,
    SNMP_PORT,
    SNMP_TIMEOUT_SECONDS,
    SnmpValue,
    SnmpValueKind,
)

logger = logging.getLogger(__name__)

_ABSENT_TYPES = (rfc1905.NoSuchInstance, rfc1905.NoSuchObject, rfc1905.EndOfMibView)


def convert_value(value) -> Optional[SnmpValue]:
    """Convert a pysnmp varbind value into an SnmpValue (None if absent)."""
    if value is None or isinstance(value, _ABSENT_TYPES):
        return None

    if isinstance(value, rfc1902.Counter32):
        return SnmpValue.counter(int(value))
    if isinstance(value, rfc1902.Integer32):
        return SnmpValue.integer(int(value))
    if isinstance(value, univ.OctetString):
        text = value.asOctets().decode("utf-8", errors="replace")
        return SnmpValue.string(text.rstrip("\x00"))
    if isinstance(value, univ.ObjectIdentifier):
        return SnmpValue.object_id(str(value))

    return SnmpValue(SnmpValueKind.OTHER, value.prettyPrint())


class SnmpTransport(ABC):
    """Issues single-OID SNMP GET requests."""

    @abstractmethod
    async def get(self, ip: str, oid: str) -> Optional[SnmpValue]:
        """
        GET one OID from a host.

        Returns None on any failure; never raises for network errors.
        Cancellation still propagates.
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


class PysnmpTransport(SnmpTransport):
    """SNMP v2c GET over UDP using pysnmp."""

    def __init__(
        self,
        community: str = SNMP_COMMUNITY,
        port: int = SNMP_PORT,
        timeout: float = SNMP_TIMEOUT_SECONDS,
    ):
        self.community = community
        self.port = port
        self.timeout = timeout
        self._engine: Optional[SnmpEngine] = None

    def _get_engine(self) -> SnmpEngine:
        if self._engine is None:
            self._engine = SnmpEngine()
        return self._engine

    async def get(self, ip: str, oid: str) -> Optional[SnmpValue]:
        try:
            async with asyncio.timeout(self.timeout):
                target = await UdpTransportTarget.create(
                    (ip, self.port),
                    timeout=self.timeout,
                    retries=0,
                )
                error_indication, error_status, _, var_binds = await get_cmd(
                    self._get_engine(),
                    CommunityData(self.community, mpModel=1),
                    target,
                    ContextData(),
                    ObjectType(ObjectIdentity(oid)),
                )
        except Exception as e:
            logger.debug(f"SNMP GET {oid} on {ip} failed: {e!r}")
            return None

        if error_indication or error_status:
            logger.debug(f"SNMP GET {oid} on {ip}: {error_indication or error_status.prettyPrint()}")
            return None
        if not var_binds:
            return None

        return convert_value(var_binds[0][1])

    async def close(self) -> None:
        if self._engine is not None:
            self._engine.close_dispatcher()
            self._engine = None


class SnmpSession:
    """Typed GET helpers bound to one host."""

    def __init__(self, transport: SnmpTransport, ip: str):
        self.transport = transport
        self.ip = ip

    async def get(self, oid: str) -> Optional[SnmpValue]:
        return await self.transport.get(self.ip, oid)

    async def get_string(self, oid: str) -> Optional[str]:
        """String rendering of any present value."""
        value = await self.get(oid)
        return value.as_string() if value is not None else None

    async def get_int(self, oid: str) -> Optional[int]:
        """Integer value for INTEGER or Counter32 varbinds only."""
        value = await self.get(oid)
        return value.as_int() if value is not None else None
