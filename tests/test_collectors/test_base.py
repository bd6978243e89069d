"""Tests for descriptor tables and the sample sink."""

from __future__ import annotations

import threading

import pytest

from routeros_exporter.collectors.base import (
    Collector,
    ListSink,
    MetricDescriptor,
    Sample,
    build_descriptor_table,
    metric_name,
)


def test_metric_name_replaces_dashes():
    assert metric_name("health", "cpu-temperature") == "mikrotik_health_cpu_temperature"
    assert metric_name("system", "free-hdd-space") == "mikrotik_system_free_hdd_space"


def test_build_descriptor_table():
    table = build_descriptor_table("health", [("voltage", "Volts"), ("fan1-speed", "RPM")])
    assert set(table) == {"voltage", "fan1-speed"}
    desc = table["fan1-speed"]
    assert desc.metric_name == "mikrotik_health_fan1_speed"
    assert desc.help_text == "RPM"
    assert desc.label_names == ("name", "address")


def test_build_descriptor_table_rejects_duplicates():
    with pytest.raises(ValueError, match="Duplicate property"):
        build_descriptor_table("health", [("voltage", "a"), ("voltage", "b")])


def test_list_sink_concurrent_emits():
    sink = ListSink()
    desc = MetricDescriptor("voltage", "mikrotik_health_voltage", "Volts")

    def _emit() -> None:
        for i in range(200):
            sink.emit(Sample(desc, float(i), ("r1", "10.0.0.1")))

    threads = [threading.Thread(target=_emit) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(sink) == 800


def test_collector_with_duplicate_property_fails_at_construction():
    class Doubled(Collector):
        name = "doubled"
        prefix = "doubled"

        def __init__(self) -> None:
            super().__init__([("voltage", "Volts"), ("voltage", "Also volts")])

        async def collect(self, ctx) -> None:
            pass

    with pytest.raises(ValueError, match="Duplicate property 'voltage'"):
        Doubled()
