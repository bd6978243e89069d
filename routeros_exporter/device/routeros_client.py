"""RouterOS API client backed by librouteros."""

from __future__ import annotations

import asyncio
import logging
import ssl
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

from routeros_exporter.device.base import ClientError, ProtocolClient
from routeros_exporter.device.models import Record

logger = logging.getLogger(__name__)

API_PORT = 8728
API_SSL_PORT = 8729

_executor = ThreadPoolExecutor(max_workers=8)


def _to_str(value: Any) -> str:
    """Normalize a librouteros reply value back to its wire string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_reply(reply: Any) -> list[Record]:
    """Turn librouteros reply dicts into string-valued records."""
    return [
        {str(key): _to_str(value) for key, value in sentence.items()}
        for sentence in reply
    ]


class RouterOSClient(ProtocolClient):
    """RouterOS device client using the binary API (librouteros)."""

    def __init__(self, host: str, username: str, password: str | None = None,
                 port: int | None = None, timeout: float = 10.0,
                 tls: bool = False, insecure: bool = False):
        if port is None:
            port = API_SSL_PORT if tls else API_PORT
        super().__init__(host, username, password, port, timeout)
        self.tls = tls
        self.insecure = insecure
        self._api = None

    def _ssl_context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context()
        if self.insecure:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return ctx

    async def connect(self) -> None:
        from librouteros import connect
        from librouteros.exceptions import LibRouterosError

        kwargs: dict = {
            "host": self.host,
            "username": self.username,
            "password": self.password or "",
            "port": self.port,
            "timeout": self.timeout,
        }
        if self.tls:
            ctx = self._ssl_context()
            kwargs["ssl_wrapper"] = partial(ctx.wrap_socket, server_hostname=self.host)

        loop = asyncio.get_running_loop()
        try:
            self._api = await loop.run_in_executor(
                _executor, partial(connect, **kwargs)
            )
        except (LibRouterosError, OSError) as exc:
            raise ClientError(f"connection to {self.host}:{self.port} failed: {exc}") from exc
        self._connected = True
        logger.info("Connected to %s:%d", self.host, self.port)

    async def disconnect(self) -> None:
        if self._api is not None:
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(_executor, self._api.close)
            except OSError as exc:
                logger.debug("Error closing connection to %s: %s", self.host, exc)
            self._api = None
            self._connected = False
            logger.info("Disconnected from %s", self.host)

    async def run(self, command: str, *args: str) -> list[Record]:
        if not self._connected or self._api is None:
            raise ClientError(f"not connected to {self.host}")

        from librouteros.exceptions import LibRouterosError

        def _call() -> list[Record]:
            return normalize_reply(self._api.rawCmd(command, *args))

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(_executor, _call)
        except (LibRouterosError, OSError) as exc:
            raise ClientError(f"{command} failed: {exc}") from exc
