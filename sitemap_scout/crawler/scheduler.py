# sitemap_scout/crawler/scheduler.py
"""
Bounded-concurrency execution of independent async work units.

A fixed number of workers drain a shared queue ("pop, run, repeat"), so one
slow item never stalls the rest the way fixed-size batches would.
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Deque, Iterable, Optional, Tuple, TypeVar

from sitemap_scout.logger import get_logger

__all__ = ("BoundedScheduler", "SchedulerStats")

T = TypeVar("T")

Worker = Callable[[T, int], Awaitable[object]]
ProgressCallback = Callable[[int, int], None]
StopPredicate = Callable[[], bool]

logger = get_logger("scheduler")


@dataclass(slots=True)
class SchedulerStats:
    """Outcome counters of one :meth:`BoundedScheduler.run` call."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed


class BoundedScheduler:
    """Runs work units with at most ``concurrency`` of them in flight."""

    def __init__(self, concurrency: int, name: str = "scheduler") -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self.name = name

    async def run(
        self,
        items: Iterable[T],
        worker: Worker,
        on_progress: Optional[ProgressCallback] = None,
        should_stop: Optional[StopPredicate] = None,
    ) -> SchedulerStats:
        """
        Execute ``worker(item, index)`` for every item.

        A failing unit is logged and counted, never propagated. ``on_progress``
        receives ``(completed, total)`` once per finished unit in completion order.
        When ``should_stop`` returns True the queue is cleared and only
        in-flight units finish.
        """
        queue: Deque[Tuple[int, T]] = deque(enumerate(items))
        stats = SchedulerStats(total=len(queue))
        if not queue:
            return stats

        async def _loop() -> None:
            while queue:
                if should_stop is not None and should_stop():
                    if queue:
                        logger.info("%s: stop requested, dropping %d queued item(s)", self.name, len(queue))
                    queue.clear()
                    stats.cancelled = True
                    break
                index, item = queue.popleft()
                try:
                    await worker(item, index)
                except Exception as exc:
                    stats.failed += 1
                    logger.warning("%s: item %d failed: %s", self.name, index, exc)
                else:
                    stats.succeeded += 1
                if on_progress is not None:
                    on_progress(stats.completed, stats.total)

        workers = [asyncio.create_task(_loop()) for _ in range(min(self.concurrency, stats.total))]
        try:
            await asyncio.gather(*workers)
        except asyncio.CancelledError:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise
        return stats
