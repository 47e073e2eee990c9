"""Bounded-concurrency batch execution."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BatchScheduler:
    """Runs work in consecutive fixed-size batches.

    Items of one batch run concurrently, gated by a semaphore of
    ``batch_size`` slots; a batch starts only when the previous one has
    completely finished. Results come back in input order.
    """

    def __init__(self, batch_size: int = 4):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self._slots = asyncio.Semaphore(batch_size)

    def batches(self, items: Sequence[T]) -> List[Sequence[T]]:
        return [
            items[i : i + self.batch_size]
            for i in range(0, len(items), self.batch_size)
        ]

    async def _run_one(self, fn: Callable[[T], Awaitable[R]], item: T) -> R:
        async with self._slots:
            return await fn(item)

    async def run(
        self, items: Sequence[T], fn: Callable[[T], Awaitable[R]]
    ) -> List[R]:
        results: List[R] = []
        for index, batch in enumerate(self.batches(items)):
            logger.debug(f"Running batch {index + 1} with {len(batch)} items")
            results.extend(
                await asyncio.gather(*(self._run_one(fn, item) for item in batch))
            )
        return results


async def run_in_batches(
    items: Sequence[T], batch_size: int, fn: Callable[[T], Awaitable[R]]
) -> List[R]:
    """Convenience wrapper around ``BatchScheduler.run``."""
    return await BatchScheduler(batch_size).run(items, fn)
