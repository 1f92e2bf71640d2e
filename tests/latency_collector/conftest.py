"""Shared fixtures for latency collector tests."""

import threading

import pytest

from config.config import CollectorConfig
from latency_collector.histogram import create_histogram
from latency_collector.types import FetchJobResult


@pytest.fixture
def collector_config(tmp_path):
    return CollectorConfig(
        bootstrap_servers="broker:9092",
        metrics_topic="pipeline.metrics",
        output_dir=str(tmp_path / "metrics"),
        thread_num=4,
        fetch_timeout_ms=100,
        max_poll_records=500,
    )


@pytest.fixture
def histogram():
    return create_histogram(0)


class FakeFetchJob:
    """Fetch job double that records its latencies and returns a fixed result."""

    def __init__(self, config, topic, partition, starting_offset, budget, histogram,
                 result=None, latencies=(), error=None, gate=None):
        self.config = config
        self.topic = topic
        self.partition = partition
        self.starting_offset = starting_offset
        self.budget = budget
        self.histogram = histogram
        self.result = result or FetchJobResult.empty()
        self.latencies = latencies
        self.error = error
        self.gate = gate
        self.called = False

    def __call__(self):
        self.called = True
        if self.gate is not None:
            self.gate.wait()
        if self.error is not None:
            raise self.error
        for latency in self.latencies:
            self.histogram.update(latency)
        return self.result


class FakeJobFactory:
    """Build FakeFetchJobs from per-partition settings and remember them."""

    def __init__(self, per_partition=None, default=None):
        self.per_partition = per_partition or {}
        self.default = default or {}
        self.jobs = []
        self.lock = threading.Lock()

    def __call__(self, config, topic, partition, starting_offset, budget, histogram):
        settings = self.per_partition.get(partition, self.default)
        job = FakeFetchJob(config, topic, partition, starting_offset, budget, histogram, **settings)
        with self.lock:
            self.jobs.append(job)
        return job


@pytest.fixture
def job_factory_cls():
    return FakeJobFactory
