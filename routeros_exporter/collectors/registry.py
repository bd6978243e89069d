"""Collector registry — runs every collector against every device per scrape."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry as PrometheusRegistry
from prometheus_client import generate_latest
from prometheus_client.core import GaugeMetricFamily

from routeros_exporter.collectors.base import (
    NAMESPACE,
    Collector,
    CollectorContext,
    ListSink,
    MetricDescriptor,
    Sample,
)
from routeros_exporter.device.base import ClientError
from routeros_exporter.device.manager import DeviceManager
from routeros_exporter.device.models import Device

logger = logging.getLogger(__name__)

SCRAPE_DURATION = f"{NAMESPACE}_scrape_collector_duration_seconds"
SCRAPE_SUCCESS = f"{NAMESPACE}_scrape_collector_success"


@dataclass
class CollectorOutcome:
    device: str
    collector: str
    duration: float
    success: bool


@dataclass(eq=False)
class ScrapeResult:
    """Samples and per-collector outcomes of one scrape cycle.

    Doubles as a prometheus_client custom collector for exposition.
    """
    samples: list[Sample] = field(default_factory=list)
    outcomes: list[CollectorOutcome] = field(default_factory=list)

    def collect(self):
        families: dict[str, GaugeMetricFamily] = {}
        for sample in self.samples:
            desc = sample.descriptor
            family = families.get(desc.metric_name)
            if family is None:
                family = GaugeMetricFamily(
                    desc.metric_name, desc.help_text, labels=list(desc.label_names),
                )
                families[desc.metric_name] = family
            family.add_metric(list(sample.label_values), sample.value)
        yield from families.values()

        if not self.outcomes:
            return
        duration = GaugeMetricFamily(
            SCRAPE_DURATION, "Duration of a collector scrape",
            labels=["device", "collector"],
        )
        success = GaugeMetricFamily(
            SCRAPE_SUCCESS, "Whether a collector succeeded",
            labels=["device", "collector"],
        )
        for outcome in self.outcomes:
            labels = [outcome.device, outcome.collector]
            duration.add_metric(labels, outcome.duration)
            success.add_metric(labels, 1.0 if outcome.success else 0.0)
        yield duration
        yield success


def render_metrics(result: ScrapeResult) -> bytes:
    """Render a scrape result in the Prometheus text exposition format."""
    registry = PrometheusRegistry(auto_describe=False)
    registry.register(result)
    return generate_latest(registry)


class CollectorRegistry:
    """Holds the active collectors and drives them across devices."""

    def __init__(self) -> None:
        self._collectors: list[Collector] = []
        self._metric_names: set[str] = set()

    def register(self, collector: Collector) -> None:
        names = {d.metric_name for d in collector.describe()}
        clash = names & self._metric_names
        if clash:
            raise ValueError(
                f"Collector {collector.name} redefines metrics: {', '.join(sorted(clash))}"
            )
        self._metric_names |= names
        self._collectors.append(collector)

    def collectors(self) -> list[Collector]:
        return list(self._collectors)

    def describe(self) -> list[MetricDescriptor]:
        descriptors: list[MetricDescriptor] = []
        for collector in self._collectors:
            descriptors.extend(collector.describe())
        return descriptors

    async def collect_device(self, device_manager: DeviceManager, device: Device,
                             sink: ListSink) -> list[CollectorOutcome]:
        """Run all collectors for one device, sequentially on its connection.

        Overlapping scrapes of the same device queue on the device lock so a
        connection is only ever used by one scrape at a time.
        """
        async with device_manager.lock(device.name):
            return await self._collect_locked(device_manager, device, sink)

    async def _collect_locked(self, device_manager: DeviceManager, device: Device,
                              sink: ListSink) -> list[CollectorOutcome]:
        try:
            client = await device_manager.get_client(device.name)
        except Exception as exc:
            await device_manager.mark_failed(device.name, str(exc))
            return [
                CollectorOutcome(device.name, c.name, 0.0, False)
                for c in self._collectors
            ]

        outcomes: list[CollectorOutcome] = []
        fetch_error: str | None = None
        start = time.perf_counter()
        for collector in self._collectors:
            ctx = CollectorContext(device=device, client=client, sink=sink)
            began = time.perf_counter()
            success = True
            try:
                await collector.collect(ctx)
            except ClientError as exc:
                success = False
                fetch_error = str(exc)
            except Exception as exc:
                success = False
                logger.error("Collector %s failed for %s: %s",
                             collector.name, device.name, exc)
            outcomes.append(CollectorOutcome(
                device.name, collector.name, time.perf_counter() - began, success,
            ))

        if fetch_error is not None:
            await device_manager.mark_failed(device.name, fetch_error)
        device_manager.record_scrape(device.name, time.perf_counter() - start)
        return outcomes

    async def scrape(self, device_manager: DeviceManager) -> ScrapeResult:
        """Collect from every device concurrently."""
        sink = ListSink()
        per_device = await asyncio.gather(*(
            self.collect_device(device_manager, device, sink)
            for device in device_manager.devices()
        ))
        result = ScrapeResult(samples=sink.samples)
        for outcomes in per_device:
            result.outcomes.extend(outcomes)
        return result


def build_default_registry(features: list[str] | None = None) -> CollectorRegistry:
    """Build a registry with the collectors for the enabled features."""
    from routeros_exporter.collectors import COLLECTORS

    registry = CollectorRegistry()
    for feature in features if features is not None else list(COLLECTORS):
        factory = COLLECTORS.get(feature)
        if factory is None:
            raise ValueError(f"Unknown collector feature '{feature}'")
        registry.register(factory())
    return registry
