"""Shared collector types: descriptors, samples, sinks and the Collector base.

A collector declares its metric descriptors once, at construction, and on
every scrape cycle fetches records from a device and emits gauge samples
into the sink carried by the :class:`CollectorContext`.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from routeros_exporter.device.base import ClientError, ProtocolClient
from routeros_exporter.device.models import Device, Record

NAMESPACE = "mikrotik"
LABEL_NAMES = ("name", "address")

ValueParser = Callable[[str], float]


@dataclass(frozen=True)
class MetricDescriptor:
    """Identity and schema of one gauge a collector can produce."""
    property_name: str
    metric_name: str
    help_text: str
    label_names: tuple[str, ...] = LABEL_NAMES


@dataclass(frozen=True)
class Sample:
    descriptor: MetricDescriptor
    value: float
    label_values: tuple[str, ...]


class SampleSink(ABC):
    """Output channel for emitted samples. Must accept concurrent emits."""

    @abstractmethod
    def emit(self, sample: Sample) -> None:
        """Append one sample."""


class ListSink(SampleSink):
    """Thread-safe in-memory sink."""

    def __init__(self) -> None:
        self._samples: list[Sample] = []
        self._lock = threading.Lock()

    def emit(self, sample: Sample) -> None:
        with self._lock:
            self._samples.append(sample)

    @property
    def samples(self) -> list[Sample]:
        with self._lock:
            return list(self._samples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)


@dataclass(frozen=True)
class CollectorContext:
    """Per-scrape bundle handed to Collector.collect()."""
    device: Device
    client: ProtocolClient
    sink: SampleSink


def metric_name(prefix: str, property_name: str) -> str:
    """Build ``mikrotik_<prefix>_<property>`` with dashes turned into underscores."""
    return f"{NAMESPACE}_{prefix}_{property_name}".replace("-", "_")


def build_descriptor_table(
    prefix: str,
    table: Iterable[tuple[str, str]],
    label_names: tuple[str, ...] = LABEL_NAMES,
) -> Mapping[str, MetricDescriptor]:
    """Build a read-only property -> descriptor mapping from (property, help) pairs."""
    descriptors: dict[str, MetricDescriptor] = {}
    for prop, help_text in table:
        if prop in descriptors:
            raise ValueError(f"Duplicate property '{prop}' in {prefix} descriptor table")
        descriptors[prop] = MetricDescriptor(
            property_name=prop,
            metric_name=metric_name(prefix, prop),
            help_text=help_text,
            label_names=label_names,
        )
    return MappingProxyType(descriptors)


class Collector(ABC):
    """Base class for device telemetry collectors.

    Subclasses set ``name`` and ``prefix``, pass their (property, help)
    table to ``__init__`` and implement :meth:`collect`.
    """

    name: str = "unknown"
    prefix: str = "unknown"

    def __init__(self, table: Iterable[tuple[str, str]],
                 logger: logging.Logger | None = None) -> None:
        self._descriptors = build_descriptor_table(self.prefix, table)
        self._logger = logger or logging.getLogger(type(self).__module__)

    @property
    def descriptors(self) -> Mapping[str, MetricDescriptor]:
        return self._descriptors

    def describe(self) -> list[MetricDescriptor]:
        """All descriptors this collector can emit. Never touches the device."""
        return list(self._descriptors.values())

    @abstractmethod
    async def collect(self, ctx: CollectorContext) -> None:
        """Fetch from the device and emit samples into ``ctx.sink``.

        Raises ClientError when the fetch fails; record-level problems are
        logged and skipped.
        """

    async def fetch(self, ctx: CollectorContext, command: str,
                    *args: str) -> list[Record]:
        try:
            return await ctx.client.run(command, *args)
        except ClientError as exc:
            self._logger.error(
                "Error fetching %s metrics from %s: %s",
                self.name, ctx.device.name, exc,
                extra={"device": ctx.device.name, "error": str(exc)},
            )
            raise

    def emit_property(self, ctx: CollectorContext, prop: str | None,
                      raw: str | None, parse: ValueParser = float) -> bool:
        """Validate one property reading and emit it. Returns True if emitted."""
        descriptor = self._descriptors.get(prop) if prop else None
        if descriptor is None:
            return False
        if not raw:
            return False

        try:
            value = parse(raw)
        except ValueError as exc:
            self._logger.warning(
                "Error parsing %s value %r for %s on %s: %s",
                prop, raw, self.name, ctx.device.name, exc,
                extra={
                    "device": ctx.device.name,
                    "property": prop,
                    "value": raw,
                    "error": str(exc),
                },
            )
            return False

        ctx.sink.emit(Sample(
            descriptor=descriptor,
            value=value,
            label_values=(ctx.device.name, ctx.device.address),
        ))
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self._descriptors)} metrics)"
