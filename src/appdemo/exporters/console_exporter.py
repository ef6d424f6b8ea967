"""
Console exporters for debugging without a collector.

Prints spans and metric batches to stdout alongside the measurement lines.
"""

from opentelemetry.sdk.metrics.export import ConsoleMetricExporter
from opentelemetry.sdk.trace.export import ConsoleSpanExporter


def create_console_exporters():
    """
    Create console exporters for traces and metrics.

    Returns:
        Tuple of (span_exporter, metric_exporter)
    """
    return ConsoleSpanExporter(), ConsoleMetricExporter()
