"""
Metric instruments for the simulated workload.

Two value recorders (request latency, line lengths), each paired with a counter
of recordings. All recordings carry the ambient label set of the WorkContext.
"""

from opentelemetry import metrics

from .context import WorkContext

REQUEST_LATENCY = "appdemo/request_latency"
REQUEST_COUNTS = "appdemo/request_counts"
LINE_LENGTHS = "appdemo/line_lengths"
LINE_COUNTS = "appdemo/line_counts"

REQUEST_LATENCY_BOUNDARIES_MS = (
    0.0, 5.0, 10.0, 25.0, 50.0, 75.0, 100.0, 250.0, 500.0, 750.0, 1000.0,
    1500.0, 2500.0, 5000.0, 7500.0, 10000.0, 15000.0, 20000.0, 30000.0, 40000.0,
)
LINE_LENGTH_BOUNDARIES = tuple(float(b) for b in range(0, 1001, 50))


class WorkloadInstruments:
    """Record latency and line-length measurements against a Meter."""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self._setup_instruments()

    def _setup_instruments(self):
        self.request_latency = self.meter.create_histogram(
            REQUEST_LATENCY,
            description="The latency of requests processed",
            unit="ms",
        )

        self.request_count = self.meter.create_counter(
            REQUEST_COUNTS,
            description="The number of requests processed",
            unit="1",
        )

        self.line_lengths = self.meter.create_histogram(
            LINE_LENGTHS,
            description="The lengths of the various lines in",
            unit="By",
        )

        self.line_count = self.meter.create_counter(
            LINE_COUNTS,
            description="The counts of the lines in",
            unit="1",
        )

    def record_line_length(self, context: WorkContext, length: int) -> None:
        attrs = context.attributes
        self.line_lengths.record(length, attrs)
        self.line_count.add(1, attrs)

    def record_latency(self, context: WorkContext, latency_ms: float) -> None:
        attrs = context.attributes
        self.request_latency.record(latency_ms, attrs)
        self.request_count.add(1, attrs)
