"""System resource collector — uptime, memory, storage and CPU."""

from __future__ import annotations

import logging
import re

from routeros_exporter.collectors.base import Collector, CollectorContext

RESOURCE_COMMAND = "/system/resource/print"

RESOURCE_PROPERTIES: list[tuple[str, str]] = [
    ("uptime", "Time since the RouterOS device booted, in seconds"),
    ("free-memory", "Unused RAM, in bytes"),
    ("total-memory", "Total RAM, in bytes"),
    ("cpu-load", "CPU load, in percent"),
    ("free-hdd-space", "Free storage space, in bytes"),
    ("total-hdd-space", "Total storage space, in bytes"),
    ("cpu-count", "Number of CPU cores"),
    ("cpu-frequency", "CPU frequency, in MHz"),
]

_DURATION_UNITS = {"w": 604800, "d": 86400, "h": 3600, "m": 60, "s": 1}
_DURATION_RE = re.compile(r"(\d+)([wdhms])")


def parse_duration(text: str) -> float:
    """Convert a RouterOS duration such as ``1w2d3h4m5s`` to seconds."""
    if not re.fullmatch(r"(?:\d+[wdhms])+", text):
        raise ValueError(f"invalid RouterOS duration: {text!r}")
    return float(sum(
        int(amount) * _DURATION_UNITS[unit]
        for amount, unit in _DURATION_RE.findall(text)
    ))


class ResourceCollector(Collector):
    """Reads the single ``/system/resource`` record, one property per key."""

    name = "resource"
    prefix = "system"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        super().__init__(RESOURCE_PROPERTIES, logger=logger)

    async def collect(self, ctx: CollectorContext) -> None:
        proplist = ",".join(self.descriptors)
        records = await self.fetch(ctx, RESOURCE_COMMAND, f"=.proplist={proplist}")
        for record in records:
            for prop, raw in record.items():
                parse = parse_duration if prop == "uptime" else float
                self.emit_property(ctx, prop, raw, parse=parse)
