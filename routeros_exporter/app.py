"""Application orchestrator — wires together all components."""

from __future__ import annotations

import logging
import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from routeros_exporter.collectors.registry import build_default_registry
from routeros_exporter.config.settings import Settings, load_config
from routeros_exporter.device.manager import DeviceManager

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class BufferedLogHandler(logging.Handler):
    """In-memory log handler that stores recent entries for API access."""

    def __init__(self, capacity: int = 500) -> None:
        super().__init__()
        self._entries: deque[dict[str, str]] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        self._entries.append({
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": self.format(record),
        })

    def get_entries(self, lines: int = 50) -> list[dict[str, str]]:
        """Return the most recent *lines* log entries."""
        entries = list(self._entries)
        return entries[-lines:]


class Application:
    """Top-level application orchestrator."""

    def __init__(self, config_path: str | Path | None = None,
                 settings: Settings | None = None) -> None:
        self.settings = settings or load_config(config_path)
        self.device_manager = DeviceManager()
        for dev_config in self.settings.devices:
            self.device_manager.add_device(dev_config)
        self.registry = build_default_registry(self.settings.features.enabled())
        self._api_server = None
        self._log_handler: BufferedLogHandler | None = None

    async def start(self) -> None:
        """Start serving /metrics until the server exits."""
        self._setup_logging()

        from routeros_exporter.api.server import create_api_app
        import uvicorn

        app = create_api_app(self.registry, self.device_manager)
        app.state.log_handler = self._log_handler

        logger.info("Registered %d metric descriptors from %s",
                    len(self.registry.describe()),
                    ", ".join(c.name for c in self.registry.collectors()))
        logger.info("Scraping %d devices", len(self.device_manager.list_devices()))

        config = uvicorn.Config(
            app,
            host=self.settings.server.host,
            port=self.settings.server.port,
            log_level="warning",
        )
        self._api_server = uvicorn.Server(config)
        logger.info("Listening on %s:%d",
                    self.settings.server.host, self.settings.server.port)
        try:
            await self._api_server.serve()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Graceful shutdown."""
        logger.info("Shutting down...")
        await self.device_manager.disconnect_all()
        if self._api_server:
            self._api_server.should_exit = True
        logger.info("Shutdown complete.")

    def _setup_logging(self) -> None:
        level = logging.getLevelName(self.settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        logging.root.setLevel(level)

        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.root.addHandler(console)

        # Install buffered log handler for API /logs endpoint
        self._log_handler = BufferedLogHandler()
        logging.root.addHandler(self._log_handler)

        logging.getLogger("librouteros").setLevel(logging.WARNING)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
