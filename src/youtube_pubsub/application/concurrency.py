"""Bounded-concurrency helpers shared by the sync pipelines."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_limited(
    limit: int,
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
) -> list[R | BaseException]:
    """
    Run ``func`` over ``items`` with at most ``limit`` calls in flight.

    Failures are returned in place of results, so one failing item never
    cancels or fails its siblings.
    """
    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    return await asyncio.gather(*(run(item) for item in items), return_exceptions=True)


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split ``items`` into consecutive pages of ``size``."""
    for i in range(0, len(items), size):
        yield list(items[i:i + size])
