"""Simulated nested workload: trace context, metric instruments and the loop."""

from .context import WorkContext
from .instruments import WorkloadInstruments
from .simulator import UnitReport, WorkloadSimulator

__all__ = [
    "WorkContext",
    "WorkloadInstruments",
    "UnitReport",
    "WorkloadSimulator",
]
