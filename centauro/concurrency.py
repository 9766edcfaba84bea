"""
Bounded fan-out/fan-in for slow or unreliable coroutines.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

module_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Handler = Callable[[T, int], Awaitable[R]]


class BoundedConcurrencyExecutor:
    """
    Run an async handler over a sequence with at most `max_concurrency`
    handlers in flight.

    The result list has one slot per input item, in input order. A handler
    that raises leaves its slot as None; the other items keep running.
    """

    def __init__(
        self,
        max_concurrency: int = 4,
        *,
        label: str = "item",
        logger: Optional[logging.Logger] = None,
    ):
        self.max_concurrency = max(1, int(max_concurrency))
        self.label = label
        self.logger = logger or module_logger

    async def run(self, items: Sequence[T], handler: Handler) -> List[Optional[R]]:
        results: List[Optional[R]] = [None] * len(items)
        if not items:
            return results
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(index: int) -> None:
            async with semaphore:
                try:
                    results[index] = await handler(items[index], index)
                except Exception as exc:
                    self.logger.warning("%s %d failed: %s", self.label.capitalize(), index, exc)

        await asyncio.gather(*(run_one(index) for index in range(len(items))))
        return results


async def run_with_concurrency(
    items: Sequence[T],
    handler: Handler,
    max_concurrency: int,
) -> List[Optional[R]]:
    """Functional shortcut for BoundedConcurrencyExecutor(max_concurrency).run(...)."""
    return await BoundedConcurrencyExecutor(max_concurrency).run(items, handler)


__all__ = ["BoundedConcurrencyExecutor", "run_with_concurrency"]
