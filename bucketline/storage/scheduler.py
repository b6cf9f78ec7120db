"""
Bounded Scheduler: Sliding-Window Fan-Out / Fan-In

Runs one async worker per item while keeping at most ``limit`` workers in
flight:

1. Start the first ``min(limit, len(items))`` workers
2. Whenever a worker finishes, record its outcome and start the next
   unstarted item (input order)
3. Stop when nothing is pending and nothing is in flight

Outcomes are returned in completion order. The scheduler never drops or
duplicates an item: each item is handed to the worker exactly once.

Workers are expected to report failures as values. An exception escaping a
worker is a programming error; it cancels the remaining workers and
propagates.

Complexity:
- Time: O(n) scheduling steps for n items
- Space: O(limit) in-flight tasks + O(n) outcomes
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from itertools import islice
from typing import Awaitable, Callable, Generic, Iterator, List, Sequence, Set, TypeVar

logger = logging.getLogger(__name__)

I = TypeVar("I")  # Item type
R = TypeVar("R")  # Outcome type

_EXHAUSTED = object()


@dataclass(slots=True)
class SchedulerStats:
    """Counters for the most recent run."""
    started: int = 0
    completed: int = 0
    in_flight: int = 0
    peak_in_flight: int = 0


class BoundedScheduler(Generic[I, R]):
    """
    Replace-on-completion worker window.

    Example:
        scheduler = BoundedScheduler(limit=5)
        outcomes = await scheduler.run(items, upload_one)
    """

    __slots__ = ("_limit", "_stats")

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")
        self._limit = limit
        self._stats = SchedulerStats()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def stats(self) -> SchedulerStats:
        return self._stats

    async def run(
        self,
        items: Sequence[I],
        worker: Callable[[I], Awaitable[R]],
    ) -> List[R]:
        """
        Process every item with ``worker``, at most ``limit`` at a time.

        Args:
            items: Items to process, started in this order.
            worker: Coroutine function producing one outcome per item.

        Returns:
            One outcome per item, in completion order.
        """
        stats = self._stats = SchedulerStats()
        outcomes: List[R] = []
        pending: Iterator[I] = iter(items)
        in_flight: Set[asyncio.Future[None]] = set()

        async def _run_one(item: I) -> None:
            outcome = await worker(item)
            # Appended at completion time so ties within one wait() keep
            # their real finishing order
            outcomes.append(outcome)
            stats.completed += 1

        def _start(item: I) -> None:
            in_flight.add(asyncio.ensure_future(_run_one(item)))
            stats.started += 1
            stats.in_flight = len(in_flight)
            stats.peak_in_flight = max(stats.peak_in_flight, stats.in_flight)

        for item in islice(pending, self._limit):
            _start(item)

        try:
            while in_flight:
                done, in_flight = await asyncio.wait(
                    in_flight, return_when=asyncio.FIRST_COMPLETED
                )
                stats.in_flight = len(in_flight)
                for task in done:
                    task.result()
                    nxt = next(pending, _EXHAUSTED)
                    if nxt is not _EXHAUSTED:
                        _start(nxt)
        finally:
            for task in in_flight:
                task.cancel()
            if in_flight:
                await asyncio.wait(in_flight)
                logger.debug("Cancelled %d in-flight workers", len(in_flight))

        return outcomes
