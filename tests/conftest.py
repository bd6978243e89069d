"""Shared test fixtures."""

from __future__ import annotations

import pytest

from routeros_exporter.collectors.base import CollectorContext, ListSink
from routeros_exporter.config.settings import DeviceConfig, Settings
from routeros_exporter.device.base import ClientError, ProtocolClient
from routeros_exporter.device.manager import DeviceManager
from routeros_exporter.device.models import Device, Record


class FakeClient(ProtocolClient):
    """Protocol client returning canned replies keyed by command."""

    def __init__(self, replies: dict[str, list[Record]] | None = None,
                 error: Exception | None = None,
                 connect_error: Exception | None = None) -> None:
        super().__init__(host="10.0.0.1", username="admin")
        self.replies = replies or {}
        self.error = error
        self.connect_error = connect_error
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self.disconnects = 0

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    async def disconnect(self) -> None:
        self.disconnects += 1
        self._connected = False

    async def run(self, command: str, *args: str) -> list[Record]:
        self.calls.append((command, args))
        if self.error is not None:
            raise self.error
        return [dict(r) for r in self.replies.get(command, [])]


@pytest.fixture
def device() -> Device:
    return Device(name="router1", address="10.0.0.1")


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def make_context(device, sink):
    def _make(client: ProtocolClient) -> CollectorContext:
        return CollectorContext(device=device, client=client, sink=sink)
    return _make


@pytest.fixture
def sample_settings() -> Settings:
    return Settings(
        devices=[
            DeviceConfig(name="router1", address="10.0.0.1",
                         username="prometheus", password="secret"),
        ],
    )


@pytest.fixture
def fake_client_error() -> ClientError:
    return ClientError("/system/health/print failed: connection reset")


def make_manager(clients: dict[str, FakeClient]) -> DeviceManager:
    """DeviceManager whose factory hands out the given fake clients by name."""
    mgr = DeviceManager(client_factory=lambda config: clients[config.name])
    for i, name in enumerate(clients, start=1):
        mgr.add_device(DeviceConfig(name=name, address=f"10.0.0.{i}"))
    return mgr
