"""FastAPI server exposing the Prometheus scrape endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST

from routeros_exporter.collectors.registry import CollectorRegistry, render_metrics
from routeros_exporter.device.manager import DeviceManager


def create_api_app(registry: CollectorRegistry,
                   device_manager: DeviceManager) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="RouterOS Exporter",
        description="Prometheus exporter for MikroTik RouterOS devices",
        version="0.1.0",
    )

    @app.get("/metrics")
    async def metrics() -> Response:
        result = await registry.scrape(device_manager)
        return Response(content=render_metrics(result), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "devices": len(device_manager.list_devices()),
            "devices_connected": len(device_manager.get_connected_devices()),
            "collectors": [c.name for c in registry.collectors()],
        }

    @app.get("/devices")
    async def list_devices() -> list[dict[str, Any]]:
        return [
            {
                "name": d.name,
                "address": d.address,
                "status": d.status.value,
                "error": d.error,
                "last_scrape": d.last_scrape.isoformat() if d.last_scrape else None,
                "last_scrape_duration": d.last_scrape_duration,
            }
            for d in device_manager.list_devices()
        ]

    @app.get("/logs")
    async def get_logs(lines: int = 50) -> list[dict[str, str]]:
        handler = getattr(app.state, "log_handler", None)
        if handler is None:
            return []
        return handler.get_entries(lines)

    return app
