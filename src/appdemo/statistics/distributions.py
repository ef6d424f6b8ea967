"""
Distributions used by the workload simulator.

Every draw takes the caller's random.Random so a simulator owns its generator
and a fixed seed reproduces the whole sequence.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

# Exclusive upper bound (ms) of the simulated delay, indexed by unix_seconds % 5.
LATENCY_BOUNDS_MS: tuple[int, ...] = (17001, 8007, 917, 87, 1173)

# Line lengths are drawn from [0, LINE_LENGTH_BOUND).
LINE_LENGTH_BOUND = 999

# Measurements per unit of work are drawn from [0, MEASUREMENT_COUNT_BOUND).
MEASUREMENT_COUNT_BOUND = 7


class Distribution(ABC):
    """Base class for distributions drawing from a caller-owned generator."""

    @abstractmethod
    def sample(self, rng: random.Random) -> int:
        """Draw a single sample."""
        pass


@dataclass(frozen=True)
class UniformIntDistribution(Distribution):
    """Uniform integer in [0, upper)."""

    upper: int

    def __post_init__(self) -> None:
        if self.upper <= 0:
            raise ValueError(f"upper must be positive, got {self.upper}")

    def sample(self, rng: random.Random) -> int:
        return rng.randrange(self.upper)


@dataclass(frozen=True)
class ClockBucketedLatency:
    """
    Delay whose upper bound depends on the wall clock.

    The bucket is unix_seconds modulo the number of bounds, so with the default
    table the latency class cycles every 5 seconds:

        bucket 0 -> [0, 17001) ms
        bucket 1 -> [0, 8007) ms
        bucket 2 -> [0, 917) ms
        bucket 3 -> [0, 87) ms
        bucket 4 -> [0, 1173) ms
    """

    bounds_ms: tuple[int, ...] = LATENCY_BOUNDS_MS

    def __post_init__(self) -> None:
        if not self.bounds_ms or any(b <= 0 for b in self.bounds_ms):
            raise ValueError("bounds_ms must be a non-empty sequence of positive integers")

    def bucket(self, unix_seconds: int) -> int:
        """Bucket index for the given unix time in whole seconds."""
        return unix_seconds % len(self.bounds_ms)

    def bound_ms(self, bucket: int) -> int:
        return self.bounds_ms[bucket]

    def sample(self, rng: random.Random, unix_seconds: int) -> tuple[int, int]:
        """Return (bucket, delay_ms) with delay_ms uniform in [0, bound)."""
        bucket = self.bucket(unix_seconds)
        delay_ms = UniformIntDistribution(self.bounds_ms[bucket]).sample(rng)
        return bucket, delay_ms


_COUNT = UniformIntDistribution(MEASUREMENT_COUNT_BOUND)
_LINE_LENGTH = UniformIntDistribution(LINE_LENGTH_BOUND)


def draw_line_lengths(rng: random.Random) -> list[int]:
    """Draw a batch of 0-6 synthetic line lengths, each in [0, 999)."""
    count = _COUNT.sample(rng)
    return [_LINE_LENGTH.sample(rng) for _ in range(count)]
