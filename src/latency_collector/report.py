"""
CSV report writer.

Appends one row per run to ``<output_dir>/<topic>.csv``. The header is
written only when the file is created, so the file accumulates rows across
runs against the same topic.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from core.errors.exceptions import ReportIOError, ThroughputUndefinedError
from core.logging import get_logger, log_with_context
from latency_collector.histogram import Snapshot
from latency_collector.types import GlobalResult

logger = get_logger(__name__)

HEADER = [
    "time",
    "count",
    "throughput(msgs/s)",
    "max_latency(ms)",
    "mean_latency(ms)",
    "min_latency(ms)",
    "stddev_latency(ms)",
    "p50_latency(ms)",
    "p75_latency(ms)",
    "p95_latency(ms)",
    "p98_latency(ms)",
    "p99_latency(ms)",
    "p999_latency(ms)",
]


def compute_throughput(result: GlobalResult) -> int:
    """
    Records per second over the observed window, truncated to an integer.

    Raises:
        ThroughputUndefinedError: The window is empty (max_time_ms == min_time_ms)
    """
    window_ms = result.max_time_ms - result.min_time_ms
    if window_ms == 0:
        raise ThroughputUndefinedError(
            "Cannot compute throughput over an empty time window",
            context={
                "record_count": result.count,
                "min_time_ms": result.min_time_ms,
                "max_time_ms": result.max_time_ms,
            },
        )
    return result.count * 1000 // window_ms


def format_stat(value: float) -> str:
    return "%.3f" % value


def format_report_time(moment: datetime) -> str:
    """Render like 'Sat Oct 17 13:08:00 UTC 2026' in the local timezone."""
    return moment.astimezone().strftime("%a %b %d %H:%M:%S %Z %Y")


class CsvReportWriter:
    """
    Write the run summary for one topic.

    Usage:
        >>> writer = CsvReportWriter("metrics", "pipeline.metrics")
        >>> writer.report(global_result, histogram.snapshot())
        PosixPath('metrics/pipeline.metrics.csv')
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        topic: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.output_dir = Path(output_dir)
        self.topic = topic
        self._clock = clock or datetime.now

    @property
    def output_path(self) -> Path:
        return self.output_dir / f"{self.topic}.csv"

    def build_row(self, result: GlobalResult, snapshot: Snapshot) -> List[str]:
        throughput = compute_throughput(result)
        return [
            format_report_time(self._clock()),
            str(result.count),
            str(throughput),
            format_stat(snapshot.max),
            format_stat(snapshot.mean),
            format_stat(snapshot.min),
            format_stat(snapshot.stddev),
            format_stat(snapshot.median),
            format_stat(snapshot.p75),
            format_stat(snapshot.p95),
            format_stat(snapshot.p98),
            format_stat(snapshot.p99),
            format_stat(snapshot.p999),
        ]

    def report(self, result: GlobalResult, snapshot: Snapshot) -> Path:
        """
        Append one row for this run.

        The row is built before the file is touched, so a failed throughput
        computation leaves the output untouched.

        Raises:
            ThroughputUndefinedError: Empty observation window
            ReportIOError: Output directory or file could not be created/written
        """
        row = self.build_row(result, snapshot)
        path = self.output_path

        try:
            is_new = not path.exists()
            if is_new:
                path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8", newline="") as f:
                writer = csv.writer(f, lineterminator="\n")
                if is_new:
                    writer.writerow(HEADER)
                writer.writerow(row)
        except OSError as e:
            raise ReportIOError(
                f"Failed to write report to {path}",
                cause=e,
                context={"destination_path": str(path)},
            ) from e

        log_with_context(
            logger,
            logging.INFO,
            f"written out metrics to {path.resolve()}",
            destination_path=str(path.resolve()),
            record_count=result.count,
            throughput=row[2],
        )
        return path
