"""
Build and tear down the OpenTelemetry pipeline.

    span exporter  -> BatchSpanProcessor -> TracerProvider (ALWAYS_ON sampler)
    metric exporter -> PeriodicExportingMetricReader -> MeterProvider

Both providers share one Resource carrying service.name. The resulting
TelemetryPipeline is handed to the simulator explicitly; the CLI additionally
installs it (and the W3C trace-context propagator) as the process-wide default.
"""

import logging
from dataclasses import dataclass, field

from opentelemetry import metrics, propagate, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    MetricExporter,
    MetricReader,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.metrics.view import ExplicitBucketHistogramAggregation, View
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from . import __version__
from .config import PipelineConfig
from .errors import PipelineInitError, PipelineShutdownError
from .exporters.otlp_exporter import (
    create_otlp_metric_exporter,
    create_otlp_trace_exporter,
    wait_for_collector,
)
from .workload.instruments import (
    LINE_LENGTHS,
    LINE_LENGTH_BOUNDARIES,
    REQUEST_LATENCY,
    REQUEST_LATENCY_BOUNDARIES_MS,
)

logger = logging.getLogger(__name__)


def _histogram_views() -> list[View]:
    """Fine-grained buckets so the value recorders keep close to the raw distribution."""
    return [
        View(
            instrument_name=REQUEST_LATENCY,
            aggregation=ExplicitBucketHistogramAggregation(REQUEST_LATENCY_BOUNDARIES_MS),
        ),
        View(
            instrument_name=LINE_LENGTHS,
            aggregation=ExplicitBucketHistogramAggregation(LINE_LENGTH_BOUNDARIES),
        ),
    ]


@dataclass
class TelemetryPipeline:
    """Tracer and meter providers plus the teardown that flushes them."""

    config: PipelineConfig
    tracer_provider: TracerProvider
    meter_provider: MeterProvider
    propagator: TraceContextTextMapPropagator = field(
        default_factory=TraceContextTextMapPropagator
    )
    _is_shutdown: bool = field(default=False, init=False, repr=False)

    @property
    def tracer(self) -> trace.Tracer:
        return self.tracer_provider.get_tracer(self.config.tracer_name, __version__)

    @property
    def meter(self) -> metrics.Meter:
        return self.meter_provider.get_meter(self.config.meter_name, __version__)

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def install_globals(self) -> None:
        """Make this pipeline the process-wide default tracer/meter provider and propagator."""
        propagate.set_global_textmap(self.propagator)
        trace.set_tracer_provider(self.tracer_provider)
        metrics.set_meter_provider(self.meter_provider)

    def force_flush(self) -> bool:
        """Export everything buffered so far without stopping the pipeline."""
        timeout = self.config.shutdown_timeout_ms
        spans_ok = self.tracer_provider.force_flush(timeout_millis=timeout)
        metrics_ok = self.meter_provider.force_flush(timeout_millis=timeout)
        return bool(spans_ok and metrics_ok)

    def shutdown(self) -> None:
        """
        Flush and stop the tracer provider (and with it the span exporter), then
        stop the meter provider, which pushes a final metric export first.

        Safe to call more than once; only the first call does anything.

        Raises:
            PipelineShutdownError: a provider failed to shut down
        """
        if self._is_shutdown:
            return
        self._is_shutdown = True
        logger.info("Shutting down telemetry pipeline")
        errors: list[PipelineShutdownError] = []
        try:
            self.tracer_provider.shutdown()
        except Exception as e:
            errors.append(PipelineShutdownError("failed to shutdown provider", e))
        # Stopped even when the tracer provider failed, so the final metric push still happens.
        try:
            self.meter_provider.shutdown(timeout_millis=self.config.shutdown_timeout_ms)
        except Exception as e:
            errors.append(PipelineShutdownError("failed to stop metrics pusher", e))
        if errors:
            for later in errors[1:]:
                logger.error("%s", later)
            raise errors[0] from errors[0].cause


def create_resource(config: PipelineConfig) -> Resource:
    """Resource tagging all emitted data with the configured service name."""
    try:
        return Resource.create(
            {
                SERVICE_NAME: config.service_name,
                "service.version": __version__,
            }
        )
    except Exception as e:
        raise PipelineInitError("failed to create resource", e) from e


def create_pipeline(
    config: PipelineConfig | None = None,
    *,
    span_exporter: SpanExporter | None = None,
    metric_exporter: MetricExporter | None = None,
    metric_reader: MetricReader | None = None,
    install_globals: bool = False,
) -> TelemetryPipeline:
    """
    Build the tracer and meter providers.

    Args:
        config: Pipeline settings (defaults to the built-in constants)
        span_exporter: Use this exporter instead of an OTLP one
        metric_exporter: Use this exporter instead of an OTLP one
        metric_reader: Use this reader instead of a periodic one around metric_exporter
        install_globals: Also register the pipeline as the process-wide default

    Raises:
        PipelineInitError: the exporter or resource could not be created
    """
    config = config or PipelineConfig()

    needs_otlp = span_exporter is None or (metric_reader is None and metric_exporter is None)
    if needs_otlp:
        try:
            if config.wait_for_collector:
                logger.info(
                    "Waiting up to %gs for collector at %s",
                    config.connect_timeout_s,
                    config.endpoint,
                )
                wait_for_collector(
                    config.endpoint,
                    protocol=config.protocol,
                    insecure=config.insecure,
                    timeout_s=config.connect_timeout_s,
                )
            if span_exporter is None:
                span_exporter = create_otlp_trace_exporter(
                    config.endpoint, protocol=config.protocol, insecure=config.insecure
                )
            if metric_reader is None and metric_exporter is None:
                metric_exporter = create_otlp_metric_exporter(
                    config.endpoint, protocol=config.protocol, insecure=config.insecure
                )
        except Exception as e:
            raise PipelineInitError("failed to create exporter", e) from e

    resource = create_resource(config)

    tracer_provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))

    if metric_reader is None:
        metric_reader = PeriodicExportingMetricReader(
            metric_exporter,
            export_interval_millis=config.export_interval_ms,
        )
    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[metric_reader],
        views=_histogram_views(),
    )

    pipeline = TelemetryPipeline(
        config=config,
        tracer_provider=tracer_provider,
        meter_provider=meter_provider,
    )
    if install_globals:
        pipeline.install_globals()
    logger.info(
        "Telemetry pipeline ready (service=%s, endpoint=%s, protocol=%s, metric period=%dms)",
        config.service_name,
        config.endpoint,
        config.protocol,
        config.export_interval_ms,
    )
    return pipeline
