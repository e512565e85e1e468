"""
Printer scanner agent configuration.

Covers how the agent identifies itself and where it reports discovered
printers. The SNMP scan itself (batch size, timeouts, community string,
port) uses fixed constants and is not configurable.
"""

from __future__ import annotations

import logging
import os
import socket
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


def _default_hardware_uuid() -> str:
    """Stable per-machine identifier derived from the primary MAC address."""
    return str(uuid.uuid5(uuid.NAMESPACE_OID, f"{uuid.getnode():012x}"))


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass
class AgentConfig:
    """Printer scanner agent configuration."""

    # Inventory API
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout_seconds: int = 30
    max_retries: int = 3

    # Machine identity reported alongside the printers
    hardware_uuid: str = field(default_factory=_default_hardware_uuid)
    computer_name: str = field(default_factory=socket.gethostname)

    # Schedule
    enable_printer_scan: bool = True
    scan_interval_seconds: int = 900  # 15 minutes

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Load configuration from environment variables."""
        config = cls()

        config.api_url = os.getenv("ITSM_API_URL")
        config.api_key = os.getenv("ITSM_API_KEY")
        config.request_timeout_seconds = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
        config.max_retries = int(os.getenv("MAX_RETRIES", "3"))

        if hardware_uuid := os.getenv("HARDWARE_UUID"):
            config.hardware_uuid = hardware_uuid
        if computer_name := os.getenv("COMPUTER_NAME"):
            config.computer_name = computer_name

        config.enable_printer_scan = _env_bool("ENABLE_PRINTER_SCAN", True)
        config.scan_interval_seconds = int(os.getenv("SCAN_INTERVAL_SECONDS", "900"))

        config.log_level = os.getenv("LOG_LEVEL", "INFO")

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "AgentConfig":
        """Load configuration from YAML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}, using defaults")
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "api" in data:
            a = data["api"]
            config.api_url = a.get("url")
            config.api_key = a.get("api_key")
            config.request_timeout_seconds = a.get("timeout", 30)
            config.max_retries = a.get("max_retries", 3)

        if "identity" in data:
            i = data["identity"]
            config.hardware_uuid = i.get("hardware_uuid", config.hardware_uuid)
            config.computer_name = i.get("computer_name", config.computer_name)

        if "schedule" in data:
            s = data["schedule"]
            config.enable_printer_scan = s.get("enabled", True)
            config.scan_interval_seconds = s.get("interval_seconds", 900)

        config.log_level = data.get("log_level", "INFO")

        return config

    def validate(self) -> list[str]:
        """Validate configuration, returning list of errors."""
        errors = []

        if not self.api_url:
            errors.append("No inventory API URL configured")
        elif not self.api_url.startswith(("http://", "https://")):
            errors.append(f"Invalid inventory API URL: {self.api_url}")

        if self.scan_interval_seconds <= 0:
            errors.append(f"Invalid scan interval: {self.scan_interval_seconds}")

        if self.max_retries < 1:
            errors.append(f"Invalid retry count: {self.max_retries}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Invalid log level: {self.log_level}")

        return errors


# Example printer_scanner.yaml:
"""
api:
  url: "https://itsm.example.com"
  api_key: "sk-..."
  timeout: 30
  max_retries: 3

identity:
  computer_name: "frontdesk-01"

schedule:
  enabled: true
  interval_seconds: 900

log_level: "INFO"
"""
