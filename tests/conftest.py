"""Shared fixtures: in-memory pipeline and a fake wall clock."""

from typing import Any

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from appdemo.config import PipelineConfig
from appdemo.pipeline import TelemetryPipeline, create_pipeline

NS_PER_SECOND = 1_000_000_000


class FakeClock:
    """Wall clock in ns that only moves when sleep() is called."""

    def __init__(self, unix_seconds: int):
        self.now_ns = unix_seconds * NS_PER_SECOND
        self.sleeps: list[float] = []

    def __call__(self) -> int:
        return self.now_ns

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_ns += int(round(seconds * NS_PER_SECOND))


def collect_points(reader: InMemoryMetricReader) -> dict[str, list[Any]]:
    """Metric name -> data points from one collection."""
    points: dict[str, list[Any]] = {}
    data = reader.get_metrics_data()
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                points.setdefault(metric.name, []).extend(metric.data.data_points)
    return points


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def pipeline(span_exporter, metric_reader) -> TelemetryPipeline:
    """Pipeline on in-memory exporter/reader; not installed globally."""
    p = create_pipeline(
        PipelineConfig(shutdown_timeout_ms=5000),
        span_exporter=span_exporter,
        metric_reader=metric_reader,
    )
    yield p
    p.shutdown()


@pytest.fixture
def fake_clock() -> FakeClock:
    # 1_700_000_003 % 5 == 3: the 87ms bucket
    return FakeClock(1_700_000_003)


@pytest.fixture
def make_clock():
    """Factory for fake clocks starting at a chosen unix second."""
    return FakeClock


@pytest.fixture
def metric_points(metric_reader):
    """Collect the in-memory reader into metric name -> data points."""
    return lambda: collect_points(metric_reader)
