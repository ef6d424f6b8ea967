"""Span and metric exporters for the telemetry pipeline."""

from .console_exporter import create_console_exporters
from .otlp_exporter import (
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
    wait_for_collector,
)

__all__ = [
    "create_otlp_trace_exporter",
    "create_otlp_metric_exporter",
    "wait_for_collector",
    "create_console_exporters",
]
