"""
appdemo - synthetic OTEL workload generator.

Simulates a two-level call chain (an outer request invoking an inner
sub-operation) with randomized latency and synthetic measurements, and
exports the resulting traces and metrics to an OTLP collector.
"""

__version__ = "1.0.0"
