"""Abstract protocol client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from routeros_exporter.device.models import Record


class ClientError(Exception):
    """A command could not be executed on the device (transport or trap)."""


class ProtocolClient(ABC):
    """Base class for device management protocol clients."""

    def __init__(self, host: str, username: str, password: str | None = None,
                 port: int = 8728, timeout: float = 10.0):
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.timeout = timeout
        self._connected = False

    @abstractmethod
    async def connect(self) -> None:
        """Establish and authenticate the connection."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection."""

    @abstractmethod
    async def run(self, command: str, *args: str) -> list[Record]:
        """Execute a command and return its reply records in order.

        Raises ClientError if the command fails or the connection drops.
        """

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def client_name(self) -> str:
        return self.__class__.__name__
