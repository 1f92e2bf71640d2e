"""
Kafka latency collector.

Reads the timestamped marker records that downstream consumers wrote into a
metrics topic, estimates end-to-end latency percentiles with a shared
reservoir histogram, computes throughput, and appends one CSV row per run.

Components:
    histogram     - Thread-safe uniform reservoir histogram and snapshots
    partitions    - Partition discovery through a metadata-only producer
    fetch_job     - Per-partition aiokafka fetch job
    orchestrator  - Budget split, bounded thread pool, result reduction
    report        - CSV report writer and throughput computation
    collector     - LatencyCollector wiring one measurement pass
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
