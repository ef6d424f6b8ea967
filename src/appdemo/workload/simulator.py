"""
Simulated two-level workload.

Each iteration runs one outer unit of work that synchronously invokes one inner
unit. Every unit goes through the same states:

    Started   span "ExecuteRequest" opened under the caller's active span
    Working   blocking sleep for a clock-bucketed random delay
              (outer unit only: the inner unit runs to completion here)
    Ended     span closed; latency = monotonic end - start
    Reported  0-6 line lengths and the latency printed and recorded as metrics

Output lines:
  #<index>: LineLength: <value>By
  Latency: <ms with 3 decimals>ms
"""

import logging
import random
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TextIO

from opentelemetry.trace import Tracer

from ..config import COMMON_LABELS, SPAN_NAME
from ..statistics import ClockBucketedLatency, draw_line_lengths
from .context import Labels, WorkContext
from .instruments import WorkloadInstruments

logger = logging.getLogger(__name__)

_NS_PER_SECOND = 1_000_000_000
_NS_PER_MS = 1_000_000


@dataclass(frozen=True)
class UnitReport:
    """What one unit of work did; child is the nested unit, if any."""

    depth: int
    trace_id: str
    span_id: str
    bucket: int
    delay_ms: int
    start_ns: int
    end_ns: int
    elapsed_ns: int
    line_lengths: tuple[int, ...]
    child: "UnitReport | None" = None

    @property
    def latency_ms(self) -> float:
        return self.elapsed_ns / _NS_PER_MS

    def walk(self) -> list["UnitReport"]:
        """This report followed by its nested reports, outermost first."""
        reports = [self]
        if self.child is not None:
            reports.extend(self.child.walk())
        return reports


class WorkloadSimulator:
    """Drive nested traced units of work against a tracer and metric instruments."""

    def __init__(
        self,
        tracer: Tracer,
        instruments: WorkloadInstruments,
        *,
        rng: random.Random | None = None,
        seed: int | None = None,
        clock: Callable[[], int] = time.time_ns,
        timer: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], Any] | None = None,
        latency: ClockBucketedLatency | None = None,
        labels: Labels = COMMON_LABELS,
        depth: int = 2,
        span_name: str = SPAN_NAME,
        out: TextIO | None = None,
    ):
        """
        Initialize the simulator.

        Args:
            tracer: Tracer used to open a span per unit of work
            instruments: Metric instruments for latency and line lengths
            rng: Random generator owned by this simulator (not shared)
            seed: Seed for a new generator when rng is not given (default: clock)
            clock: Wall clock in nanoseconds since the epoch (latency bucket, span times)
            timer: Monotonic nanosecond counter the latency is measured with
            sleep: Blocking sleep taking seconds (default: time.sleep)
            latency: Delay model (default: 5-bucket clock table)
            labels: Ambient labels for the root context
            depth: Number of nested units per iteration
            span_name: Name of every span
            out: Stream for measurement lines (default: stdout)
        """
        if depth < 1:
            raise ValueError(f"depth must be at least 1, got {depth}")
        if rng is None:
            rng = random.Random(seed if seed is not None else time.time_ns())
        self.tracer = tracer
        self.instruments = instruments
        self.rng = rng
        self.clock = clock
        self.timer = timer
        self.sleep = sleep or time.sleep
        self.latency = latency or ClockBucketedLatency()
        self.depth = depth
        self.span_name = span_name
        self.out = out
        self.root_context = WorkContext.root(labels)

    @classmethod
    def from_pipeline(cls, pipeline: Any, **kwargs: Any) -> "WorkloadSimulator":
        """Build a simulator on a TelemetryPipeline's tracer and meter."""
        kwargs.setdefault("labels", pipeline.config.labels)
        return cls(pipeline.tracer, WorkloadInstruments(pipeline.meter), **kwargs)

    def _emit(self, line: str) -> None:
        print(line, file=self.out)

    def run_unit(self, context: WorkContext, level: int = 0) -> UnitReport:
        """Run one unit of work (and any nested units) under context's active span."""
        start_ns = self.clock()
        started = self.timer()
        span = self.tracer.start_span(
            self.span_name,
            context=context.otel_context,
            start_time=start_ns,
        )
        child_context = context.with_span(span)
        child_report = None
        try:
            bucket, delay_ms = self.latency.sample(self.rng, start_ns // _NS_PER_SECOND)
            span.set_attribute("appdemo.depth", level)
            span.set_attribute("appdemo.latency.bucket", bucket)
            span.set_attribute("appdemo.delay_ms", delay_ms)
            self.sleep(delay_ms / 1000.0)
            if level + 1 < self.depth:
                child_report = self.run_unit(child_context, level + 1)
        finally:
            end_ns = self.clock()
            elapsed_ns = self.timer() - started
            span.end(end_time=end_ns)

        line_lengths = draw_line_lengths(self.rng)
        for i, length in enumerate(line_lengths):
            self.instruments.record_line_length(child_context, length)
            self._emit(f"#{i}: LineLength: {length}By")

        span_context = span.get_span_context()
        report = UnitReport(
            depth=level,
            trace_id=format(span_context.trace_id, "032x"),
            span_id=format(span_context.span_id, "016x"),
            bucket=bucket,
            delay_ms=delay_ms,
            start_ns=start_ns,
            end_ns=end_ns,
            elapsed_ns=elapsed_ns,
            line_lengths=tuple(line_lengths),
            child=child_report,
        )
        self.instruments.record_latency(child_context, report.latency_ms)
        self._emit(f"Latency: {report.latency_ms:.3f}ms")
        return report

    def run_iteration(self) -> UnitReport:
        """One outer unit of work with its nested units, rooted at a fresh trace."""
        return self.run_unit(self.root_context)

    def run(
        self,
        iterations: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> int:
        """
        Run iterations back to back.

        Loops forever when iterations is None. A set stop_event is only noticed
        between iterations; a unit of work in progress always completes.

        Returns:
            Number of completed iterations
        """
        completed = 0
        while iterations is None or completed < iterations:
            if stop_event is not None and stop_event.is_set():
                logger.info("Stop requested after %d iterations", completed)
                break
            report = self.run_iteration()
            completed += 1
            logger.debug(
                "Iteration %d trace_id=%s buckets=%s latency=%.3fms",
                completed,
                report.trace_id,
                ",".join(str(r.bucket) for r in report.walk()),
                report.latency_ms,
            )
        return completed
