"""System health collector — board voltage, temperatures and fan speeds."""

from __future__ import annotations

import logging

from routeros_exporter.collectors.base import Collector, CollectorContext
from routeros_exporter.device.models import Record

HEALTH_COMMAND = "/system/health/print"

HEALTH_PROPERTIES: list[tuple[str, str]] = [
    ("voltage", "Input voltage to the RouterOS board, in volts"),
    ("temperature", "Temperature of RouterOS board, in degrees Celsius"),
    ("cpu-temperature", "Temperature of RouterOS CPU, in degrees Celsius"),
    ("sfp-temperature", "Temperature of RouterOS SFP module, in degrees Celsius"),
    ("board-temperature1", "Temperature of RouterOS board - sensor 1, in degrees Celsius"),
    ("board-temperature2", "Temperature of RouterOS board - sensor 2, in degrees Celsius"),
    ("fan1-speed", "Fan 1 speed, in RPM"),
    ("fan2-speed", "Fan 2 speed, in RPM"),
    ("fan3-speed", "Fan 3 speed, in RPM"),
]


class HealthCollector(Collector):
    """Reads ``/system/health`` name/value records.

    Each record names one sensor; sensors the board does not report, or
    reports without a reading, simply produce no series.
    """

    name = "health"
    prefix = "health"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        super().__init__(HEALTH_PROPERTIES, logger=logger)

    async def collect(self, ctx: CollectorContext) -> None:
        records = await self.fetch(ctx, HEALTH_COMMAND, "=.proplist=name,value")
        for record in records:
            self._collect_for_record(ctx, record)

    def _collect_for_record(self, ctx: CollectorContext, record: Record) -> None:
        self.emit_property(ctx, record.get("name"), record.get("value"))
