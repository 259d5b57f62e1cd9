"""Concurrency control utilities for async batch generation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from mdxai.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ConcurrencyLimiter:
    """Counting admission gate for concurrent requests."""

    max_concurrent: int
    _semaphore: asyncio.Semaphore = field(init=False)
    _running: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

    async def acquire(self) -> None:
        """Wait for a free slot."""
        await self._semaphore.acquire()
        self._running += 1

    def release(self) -> None:
        """Release a slot."""
        self._semaphore.release()
        self._running -= 1

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()

    @property
    def running(self) -> int:
        """Get number of running tasks."""
        return self._running

    @property
    def available(self) -> int:
        """Get number of available slots."""
        return self.max_concurrent - self._running


async def gather_limited(
    factories: Iterable[Callable[[], Awaitable[T]]],
    *,
    max_concurrent: int,
) -> list[T | BaseException]:
    """Run coroutine factories behind one admission gate.

    Results (or the exception each one raised) are returned in input order, so one failing
    request never aborts the rest of the batch.

    Args:
        factories: Zero-argument callables returning awaitables.
        max_concurrent: Maximum number admitted at once.
    """

    limiter = ConcurrencyLimiter(max_concurrent)

    async def _wrapped(factory: Callable[[], Awaitable[T]]) -> T:
        async with limiter:
            return await factory()

    tasks = [asyncio.create_task(_wrapped(factory)) for factory in factories]
    return list(await asyncio.gather(*tasks, return_exceptions=True))
