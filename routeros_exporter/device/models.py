"""Device data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# One reply sentence from the device: field name -> string value.
Record = dict[str, str]


class DeviceStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    CONNECTING = "connecting"


@dataclass(frozen=True)
class Device:
    """Identity of a scraped device, used as the label set of every sample."""
    name: str
    address: str


@dataclass
class DeviceInfo:
    name: str
    address: str
    status: DeviceStatus = DeviceStatus.DISCONNECTED
    last_scrape: datetime | None = None
    last_scrape_duration: float | None = None
    error: str = ""
