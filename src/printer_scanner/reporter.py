"""
Inventory API client.

Posts peripheral reports (discovered network printers) to the inventory
API. Failures are logged and reported through the return value; nothing
here raises for HTTP or network errors.
"""

import aiohttp
import asyncio
import logging
from typing import Optional, Dict, Any, List

from . import __version__
from ._types import PrinterRecord
from .config import AgentConfig

logger = logging.getLogger(__name__)

PERIPHERALS_ENDPOINT = "/inventory/peripherals"


def build_peripheral_report(
    hardware_uuid: str,
    computer_name: str,
    printers: List[PrinterRecord],
) -> Dict[str, Any]:
    """Build the peripheral report body for a printer-only submission."""
    return {
        "hardwareUuid": hardware_uuid,
        "computerName": computer_name,
        "monitors": [],
        "usbDevices": [],
        "printers": [p.to_dict() for p in printers],
    }


class InventoryClient:
    """
    HTTP client for the inventory API.

    Uses an optional API key as Bearer token.
    """

    def __init__(self, config: AgentConfig):
        """
        Initialize inventory client.

        Args:
            config: Agent configuration (URL, key, timeout, retries)
        """
        self.config = config
        self.max_retries = config.max_retries
        self.timeout = aiohttp.ClientTimeout(total=config.request_timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            headers = {
                'User-Agent': f'printer-scanner/{__version__}',
                'Content-Type': 'application/json',
            }
            if self.config.api_key:
                headers['Authorization'] = f'Bearer {self.config.api_key}'

            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers=headers,
            )
        return self._session

    async def close(self):
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict] = None,
    ) -> tuple[int, Dict[str, Any]]:
        """
        Make HTTP request with retry logic.

        Returns:
            Tuple of (status_code, response_json); status 0 when every
            attempt failed at the transport level.
        """
        url = f"{self.config.api_url.rstrip('/')}{endpoint}"
        session = await self._get_session()
        last_error = None

        for attempt in range(self.max_retries):
            try:
                async with session.request(method, url, json=json_data) as response:
                    try:
                        data = await response.json(content_type=None)
                    except Exception:
                        data = {"error": await response.text()}

                    return response.status, data if isinstance(data, dict) else {"data": data}

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)

        logger.error(f"All retries failed: {last_error}")
        return 0, {"error": str(last_error)}

    async def post_printers(self, printers: List[PrinterRecord]) -> bool:
        """
        Post discovered network printers as a peripheral report.

        Returns True if the API accepted the report.
        """
        payload = build_peripheral_report(
            self.config.hardware_uuid,
            self.config.computer_name,
            printers,
        )

        status, response = await self._request('POST', PERIPHERALS_ENDPOINT, json_data=payload)

        if 200 <= status < 300:
            logger.info(f"Posted network printers - {len(printers)} printers - status: {status}")
            return True

        logger.warning(f"Posting network printers failed: {status} - {response}")
        return False
