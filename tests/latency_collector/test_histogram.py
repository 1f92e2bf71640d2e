"""Tests for the reservoir histogram and its snapshots."""

import random
import threading

import pytest

from latency_collector.histogram import Histogram, Snapshot, UniformReservoir, create_histogram


class TestSnapshot:

    def test_values_sorted(self):
        snapshot = Snapshot.of([5, 1, 3])
        assert snapshot.values == (1, 3, 5)
        assert snapshot.count == 3
        assert snapshot.size == 3

    def test_count_can_exceed_size(self):
        snapshot = Snapshot.of([1, 2], count=10)
        assert snapshot.count == 10
        assert snapshot.size == 2

    def test_empty_snapshot_reports_zeros(self):
        snapshot = Snapshot.of([])
        assert snapshot.min == 0.0
        assert snapshot.max == 0.0
        assert snapshot.mean == 0.0
        assert snapshot.stddev == 0.0
        assert snapshot.median == 0.0
        assert snapshot.p999 == 0.0

    def test_basic_statistics(self):
        snapshot = Snapshot.of([1, 2, 3, 4, 5])
        assert snapshot.min == 1.0
        assert snapshot.max == 5.0
        assert snapshot.mean == 3.0
        assert snapshot.median == 3.0
        # Sample standard deviation: sqrt(10 / 4)
        assert snapshot.stddev == pytest.approx(1.5811388, rel=1e-6)

    def test_single_value_has_zero_stddev(self):
        snapshot = Snapshot.of([42])
        assert snapshot.stddev == 0.0
        assert snapshot.median == 42.0
        assert snapshot.p99 == 42.0

    def test_interpolates_between_order_statistics(self):
        snapshot = Snapshot.of([1, 2, 3, 4, 5])
        # pos = 0.75 * 6 = 4.5 -> halfway between 4 and 5
        assert snapshot.p75 == pytest.approx(4.5)
        # pos = 0.25 * 6 = 1.5 -> halfway between 1 and 2
        assert snapshot.get_value(0.25) == pytest.approx(1.5)

    def test_extremes_clamp(self):
        snapshot = Snapshot.of([10, 20, 30])
        assert snapshot.get_value(0.0) == 10.0
        assert snapshot.get_value(1.0) == 30.0
        assert snapshot.p999 == 30.0

    def test_percentiles_monotonic(self):
        rng = random.Random(7)
        snapshot = Snapshot.of(rng.randint(0, 10_000) for _ in range(1_000))
        values = [
            snapshot.min,
            snapshot.median,
            snapshot.p75,
            snapshot.p95,
            snapshot.p98,
            snapshot.p99,
            snapshot.p999,
            snapshot.max,
        ]
        assert values == sorted(values)

    @pytest.mark.parametrize("quantile", [-0.1, 1.1, float("nan")])
    def test_invalid_quantile(self, quantile):
        with pytest.raises(ValueError):
            Snapshot.of([1, 2, 3]).get_value(quantile)

    def test_invalid_quantile_rejected_even_when_empty(self):
        with pytest.raises(ValueError):
            Snapshot.of([]).get_value(2.0)


class TestUniformReservoir:

    @pytest.mark.parametrize("size", [None, 0, -5])
    def test_unbounded_keeps_everything(self, size):
        reservoir = UniformReservoir(size)
        for value in range(1_000):
            reservoir.update(value)

        assert not reservoir.bounded
        assert reservoir.count == 1_000
        assert reservoir.snapshot().size == 1_000

    def test_bounded_keeps_at_most_size(self):
        reservoir = UniformReservoir(100, rng=random.Random(1))
        for value in range(10_000):
            reservoir.update(value)

        snapshot = reservoir.snapshot()
        assert reservoir.bounded
        assert snapshot.size == 100
        assert snapshot.count == 10_000
        assert set(snapshot.values) <= set(range(10_000))

    def test_bounded_below_capacity_keeps_everything(self):
        reservoir = UniformReservoir(100)
        for value in range(10):
            reservoir.update(value)
        assert reservoir.snapshot().values == tuple(range(10))

    def test_sample_is_uniform(self):
        # Each of 10 equal-width buckets should hold ~10% of retained values
        trials = 200
        size = 50
        stream = 1_000
        buckets = [0] * 10
        rng = random.Random(12345)
        for _ in range(trials):
            reservoir = UniformReservoir(size, rng=rng)
            for value in range(stream):
                reservoir.update(value)
            for value in reservoir.snapshot().values:
                buckets[value * 10 // stream] += 1

        expected = trials * size / 10
        for bucket in buckets:
            assert abs(bucket - expected) < expected * 0.15

    def test_concurrent_updates_lose_nothing(self):
        reservoir = UniformReservoir(None)

        def writer(offset):
            for value in range(2_000):
                reservoir.update(offset + value)

        threads = [threading.Thread(target=writer, args=(i * 10_000,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert reservoir.count == 16_000
        assert reservoir.snapshot().size == 16_000


class TestHistogram:

    def test_delegates_to_reservoir(self):
        histogram = Histogram(UniformReservoir(None))
        for value in (3, 1, 2):
            histogram.update(value)

        assert histogram.count == 3
        assert histogram.snapshot().values == (1, 2, 3)

    def test_create_histogram_bounded(self):
        histogram = create_histogram(10, rng=random.Random(3))
        for value in range(100):
            histogram.update(value)
        assert histogram.snapshot().size == 10
        assert histogram.count == 100

    def test_create_histogram_unbounded(self):
        assert not create_histogram(0).reservoir.bounded
