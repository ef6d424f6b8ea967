"""
Immutable trace context threaded through the simulated call chain.

A WorkContext wraps an OpenTelemetry Context (active span plus baggage) and the
label set that every metric recording carries. Attaching a span returns a new
WorkContext; existing ones are never modified.
"""

from dataclasses import dataclass, field

from opentelemetry import baggage, trace
from opentelemetry.context import Context
from opentelemetry.trace import Span

from ..config import COMMON_LABELS

Labels = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class WorkContext:
    """Active span and ambient labels for one point in the call chain."""

    otel_context: Context = field(default_factory=Context)
    labels: Labels = ()

    @classmethod
    def root(cls, labels: Labels = COMMON_LABELS) -> "WorkContext":
        """Root context with no active span; labels are also stored as baggage."""
        ctx = Context()
        for key, value in labels:
            ctx = baggage.set_baggage(key, value, context=ctx)
        return cls(otel_context=ctx, labels=tuple(labels))

    def with_span(self, span: Span) -> "WorkContext":
        """Derive a context in which span is the active (parent) span."""
        return WorkContext(
            otel_context=trace.set_span_in_context(span, self.otel_context),
            labels=self.labels,
        )

    @property
    def span(self) -> Span:
        """The active span, or INVALID_SPAN for a root context."""
        return trace.get_current_span(self.otel_context)

    @property
    def attributes(self) -> dict[str, str]:
        """Labels as a metric attribute mapping."""
        return dict(self.labels)

    def baggage_items(self) -> dict[str, object]:
        return dict(baggage.get_all(self.otel_context))
