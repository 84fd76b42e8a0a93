"""Bounded concurrent evaluation for one guard pass."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from prodguard.settings import MAX_CONCURRENCY


T = TypeVar("T")


async def run_async_batch(coroutines: Sequence[Awaitable[T]], *, concurrency_limit: int) -> list[T]:
    """Await every coroutine, at most ``concurrency_limit`` at a time.

    Results keep input order. Nothing is cancelled early: a pass reports every
    finding, so aggregation waits for the slowest check.
    """

    semaphore = asyncio.Semaphore(max(1, min(concurrency_limit, MAX_CONCURRENCY)))

    async def _bounded(coro: Awaitable[T]) -> T:
        async with semaphore:
            return await coro

    return list(await asyncio.gather(*(_bounded(coro) for coro in coroutines)))
