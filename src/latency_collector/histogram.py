"""
Thread-safe latency histogram backed by a uniform reservoir sample.

Every fetch job records into one shared Histogram. Once all jobs have been
joined the orchestrator takes a single Snapshot for the report.

Sampling:
    A bounded reservoir keeps at most ``size`` values using Vitter's
    algorithm R, so after n >= size updates every value is retained with
    probability size / n. An unbounded reservoir keeps every value.

Percentiles:
    Computed from the sorted retained values by linear interpolation between
    order statistics at position ``quantile * (n + 1)``.
"""

import math
import random
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

__all__ = [
    "UniformReservoir",
    "Histogram",
    "Snapshot",
    "create_histogram",
]


@dataclass(frozen=True)
class Snapshot:
    """Immutable statistical view of the retained values.

    Attributes:
        values: Retained values in ascending order
        count: Total number of values recorded, including those sampled out
    """

    values: tuple
    count: int

    @classmethod
    def of(cls, values: Iterable[float], count: Optional[int] = None) -> "Snapshot":
        ordered = tuple(sorted(values))
        return cls(values=ordered, count=len(ordered) if count is None else count)

    @property
    def size(self) -> int:
        return len(self.values)

    def get_value(self, quantile: float) -> float:
        if math.isnan(quantile) or not 0.0 <= quantile <= 1.0:
            raise ValueError(f"{quantile} is not in [0..1]")

        if not self.values:
            return 0.0

        pos = quantile * (len(self.values) + 1)
        index = int(pos)

        if index < 1:
            return float(self.values[0])
        if index >= len(self.values):
            return float(self.values[-1])

        lower = self.values[index - 1]
        upper = self.values[index]
        return lower + (pos - math.floor(pos)) * (upper - lower)

    @property
    def min(self) -> float:
        return float(self.values[0]) if self.values else 0.0

    @property
    def max(self) -> float:
        return float(self.values[-1]) if self.values else 0.0

    @property
    def mean(self) -> float:
        if not self.values:
            return 0.0
        return math.fsum(self.values) / len(self.values)

    @property
    def stddev(self) -> float:
        # Sample standard deviation (n - 1)
        if len(self.values) <= 1:
            return 0.0
        mean = self.mean
        variance = math.fsum((v - mean) ** 2 for v in self.values) / (len(self.values) - 1)
        return math.sqrt(variance)

    @property
    def median(self) -> float:
        return self.get_value(0.5)

    @property
    def p75(self) -> float:
        return self.get_value(0.75)

    @property
    def p95(self) -> float:
        return self.get_value(0.95)

    @property
    def p98(self) -> float:
        return self.get_value(0.98)

    @property
    def p99(self) -> float:
        return self.get_value(0.99)

    @property
    def p999(self) -> float:
        return self.get_value(0.999)


class UniformReservoir:
    """Reservoir with uniform random replacement, safe for concurrent updates.

    Args:
        size: Maximum number of retained values; None or <= 0 keeps every value
        rng: Random source (seedable for tests)
    """

    def __init__(self, size: Optional[int] = None, rng: Optional[random.Random] = None):
        self.size = size if size is not None and size > 0 else None
        self._values: list = []
        self._count = 0
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @property
    def bounded(self) -> bool:
        return self.size is not None

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def update(self, value: float) -> None:
        with self._lock:
            self._count += 1
            if self.size is None or len(self._values) < self.size:
                self._values.append(value)
                return

            r = self._rng.randrange(self._count)
            if r < self.size:
                self._values[r] = value

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot.of(self._values, count=self._count)


class Histogram:
    """Latency histogram shared by every fetch job of a run.

    update() may be called from any number of threads. snapshot() must only be
    called after every writer has been joined.
    """

    def __init__(self, reservoir: UniformReservoir):
        self.reservoir = reservoir

    def update(self, value: float) -> None:
        self.reservoir.update(value)

    @property
    def count(self) -> int:
        return self.reservoir.count

    def snapshot(self) -> Snapshot:
        return self.reservoir.snapshot()


def create_histogram(reservoir_size: int, rng: Optional[random.Random] = None) -> Histogram:
    """Build the run's histogram; reservoir_size <= 0 means unbounded."""
    return Histogram(UniformReservoir(reservoir_size, rng=rng))
