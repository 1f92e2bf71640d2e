"""Value types shared by the fetch jobs, the orchestrator and the report writer."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

if TYPE_CHECKING:
    from config.config import CollectorConfig
    from latency_collector.histogram import Histogram

__all__ = [
    "UNLIMITED",
    "FetchJobResult",
    "GlobalResult",
    "FetchJob",
    "FetchJobFactory",
]

# Fetch budget meaning "read the partition until it is exhausted"
UNLIMITED = -1


@dataclass(frozen=True)
class FetchJobResult:
    """Summary of the marker records one fetch job consumed.

    min_time_ms/max_time_ms bound the wall-clock window (epoch milliseconds) in
    which the observed records were received. They are absolute timestamps
    used for throughput, not latencies.

    A result with count == 0 has no window; combine() treats it as neutral so
    the reduction stays associative and commutative.
    """

    min_time_ms: int
    max_time_ms: int
    count: int

    @classmethod
    def empty(cls) -> "FetchJobResult":
        return cls(min_time_ms=0, max_time_ms=0, count=0)

    def combine(self, other: "FetchJobResult") -> "FetchJobResult":
        if other.count == 0:
            return self
        if self.count == 0:
            return other
        return FetchJobResult(
            min_time_ms=min(self.min_time_ms, other.min_time_ms),
            max_time_ms=max(self.max_time_ms, other.max_time_ms),
            count=self.count + other.count,
        )


# Reduction of every partition's FetchJobResult
GlobalResult = FetchJobResult


class FetchJob(Protocol):
    """Unit of work that consumes one partition and feeds the shared histogram."""

    partition: int

    def __call__(self) -> FetchJobResult:
        ...


FetchJobFactory = Callable[
    ["CollectorConfig", str, int, int, int, "Histogram"], FetchJob
]
