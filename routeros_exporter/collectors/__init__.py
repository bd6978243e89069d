"""Device telemetry collectors — maps feature names to collector classes."""

from __future__ import annotations

from typing import Callable

from routeros_exporter.collectors.base import Collector
from routeros_exporter.collectors.health import HealthCollector
from routeros_exporter.collectors.resource import ResourceCollector

CollectorFactory = Callable[[], Collector]

COLLECTORS: dict[str, CollectorFactory] = {
    "health": HealthCollector,
    "resource": ResourceCollector,
}
