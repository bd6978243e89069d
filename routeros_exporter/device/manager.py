"""Device manager — per-device client connections and scrape status."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from routeros_exporter.config.settings import DeviceConfig
from routeros_exporter.device.base import ProtocolClient
from routeros_exporter.device.models import Device, DeviceInfo, DeviceStatus
from routeros_exporter.device.routeros_client import RouterOSClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[DeviceConfig], ProtocolClient]


def create_routeros_client(config: DeviceConfig) -> ProtocolClient:
    return RouterOSClient(
        host=config.address, username=config.username or "admin",
        password=config.password, port=config.port,
        timeout=config.timeout or 10.0,
        tls=config.tls, insecure=config.insecure,
    )


class DeviceManager:
    """Owns one client connection per configured device.

    Connections are opened lazily on first use and dropped after a failed
    scrape so the next scrape reconnects.
    """

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._client_factory = client_factory or create_routeros_client
        self._devices: dict[str, DeviceConfig] = {}
        self._clients: dict[str, ProtocolClient] = {}
        self._info: dict[str, DeviceInfo] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def add_device(self, config: DeviceConfig) -> None:
        self._devices[config.name] = config
        self._info[config.name] = DeviceInfo(
            name=config.name, address=config.address,
        )

    def devices(self) -> list[Device]:
        return [config.to_device() for config in self._devices.values()]

    def lock(self, device_name: str) -> asyncio.Lock:
        """Per-device lock; hold it for the whole of one device's scrape."""
        lock = self._locks.get(device_name)
        if lock is None:
            lock = self._locks[device_name] = asyncio.Lock()
        return lock

    async def get_client(self, device_name: str) -> ProtocolClient:
        """Return a connected client, connecting first if needed.

        Raises KeyError for an unknown device and ClientError if the
        connection cannot be established. Callers must hold ``lock()``.
        """
        client = self._clients.get(device_name)
        if client is not None and client.is_connected:
            return client

        config = self._devices[device_name]
        info = self._info[device_name]
        info.status = DeviceStatus.CONNECTING
        try:
            client = self._client_factory(config)
            await client.connect()
        except Exception as exc:
            logger.error("Failed to connect to %s: %s", device_name, exc)
            info.status = DeviceStatus.ERROR
            info.error = str(exc)
            raise

        self._clients[device_name] = client
        info.status = DeviceStatus.CONNECTED
        info.error = ""
        logger.info("Connected to %s via %s", device_name, client.client_name)
        return client

    async def disconnect_all(self) -> None:
        for name in list(self._clients):
            await self.disconnect(name)

    async def disconnect(self, device_name: str) -> None:
        client = self._clients.pop(device_name, None)
        if client:
            await client.disconnect()

        if device_name in self._info:
            self._info[device_name].status = DeviceStatus.DISCONNECTED

    async def mark_failed(self, device_name: str, error: str) -> None:
        """Drop the device's connection after a failed scrape."""
        await self.disconnect(device_name)
        info = self._info.get(device_name)
        if info is not None:
            info.status = DeviceStatus.ERROR
            info.error = error

    def record_scrape(self, device_name: str, duration: float) -> None:
        info = self._info.get(device_name)
        if info is not None:
            info.last_scrape = datetime.now()
            info.last_scrape_duration = duration

    def list_devices(self) -> list[DeviceInfo]:
        return list(self._info.values())

    def get_device_info(self, device_name: str) -> DeviceInfo | None:
        return self._info.get(device_name)

    def get_connected_devices(self) -> list[str]:
        return [name for name, c in self._clients.items() if c.is_connected]
