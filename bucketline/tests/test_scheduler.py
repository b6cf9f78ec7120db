"""
Unit Tests: BoundedScheduler

Tests:
    - Window never exceeds the limit
    - Every item runs exactly once
    - Outcomes come back in completion order
    - Escaping exceptions cancel the remaining workers
"""

import asyncio

import pytest

from bucketline.storage.scheduler import BoundedScheduler


class _Probe:
    """Worker that records concurrency."""

    def __init__(self, delays=None):
        self.delays = delays or {}
        self.in_flight = 0
        self.peak = 0
        self.seen = []

    async def __call__(self, item):
        self.seen.append(item)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(item, 0.001))
        finally:
            self.in_flight -= 1
        return item


class TestBoundedScheduler:

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            BoundedScheduler(0)

    def test_empty_input(self):
        scheduler = BoundedScheduler(3)
        assert asyncio.run(scheduler.run([], _Probe())) == []
        assert scheduler.stats.started == 0

    @pytest.mark.parametrize("count,limit", [(12, 5), (3, 5), (5, 5), (7, 1)])
    def test_window_bounded(self, count, limit):
        probe = _Probe()
        scheduler = BoundedScheduler(limit)
        outcomes = asyncio.run(scheduler.run(list(range(count)), probe))

        assert sorted(outcomes) == list(range(count))
        assert sorted(probe.seen) == list(range(count))
        assert probe.peak <= limit
        assert scheduler.stats.peak_in_flight == min(limit, count)
        assert scheduler.stats.started == count
        assert scheduler.stats.completed == count
        assert scheduler.stats.in_flight == 0

    def test_starts_in_input_order(self):
        probe = _Probe()
        asyncio.run(BoundedScheduler(2).run(["a", "b", "c", "d"], probe))
        assert probe.seen == ["a", "b", "c", "d"]

    def test_completion_order(self):
        probe = _Probe(delays={"slow": 0.05, "fast": 0.001})
        outcomes = asyncio.run(BoundedScheduler(2).run(["slow", "fast"], probe))
        assert outcomes == ["fast", "slow"]

    def test_freed_slot_is_refilled(self):
        # "a" holds one slot for the whole run; b, c, d share the other
        probe = _Probe(delays={"a": 0.1, "b": 0.001, "c": 0.001, "d": 0.001})
        outcomes = asyncio.run(BoundedScheduler(2).run(["a", "b", "c", "d"], probe))
        assert outcomes == ["b", "c", "d", "a"]
        assert probe.peak == 2

    def test_worker_exception_cancels_rest(self):
        cancelled = []

        async def worker(item):
            if item == "boom":
                raise RuntimeError("worker bug")
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                cancelled.append(item)
                raise
            return item

        with pytest.raises(RuntimeError, match="worker bug"):
            asyncio.run(BoundedScheduler(3).run(["x", "boom", "y"], worker))
        assert sorted(cancelled) == ["x", "y"]
