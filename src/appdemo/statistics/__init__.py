"""
Random draws for the simulated workload.

Latency follows a clock-driven bucket table so that the latency class shifts
in a repeating 5-second cycle; measurement counts and sizes are uniform.
"""

from .distributions import (
    LATENCY_BOUNDS_MS,
    LINE_LENGTH_BOUND,
    MEASUREMENT_COUNT_BOUND,
    ClockBucketedLatency,
    Distribution,
    UniformIntDistribution,
    draw_line_lengths,
)

__all__ = [
    "LATENCY_BOUNDS_MS",
    "LINE_LENGTH_BOUND",
    "MEASUREMENT_COUNT_BOUND",
    "ClockBucketedLatency",
    "Distribution",
    "UniformIntDistribution",
    "draw_line_lengths",
]
