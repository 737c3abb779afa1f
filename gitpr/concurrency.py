"""
Bounded fan-out for the per-PR and per-commit enrichment calls.

Runs a blocking callable over an ordered sequence with at most `limit` calls
in flight. Results come back in input order regardless of completion order.
Failures of the isolated exception types are reported through `on_error` and
the item is dropped; anything else propagates.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence, TypeVar


T = TypeVar("T")
R = TypeVar("R")


def map_isolated(
    func: Callable[[T], R],
    items: Sequence[T],
    limit: int = 1,
    isolate: tuple[type[Exception], ...] = (Exception,),
    on_error: Callable[[T, Exception], None] | None = None,
) -> list[R]:
    """Apply func to every item, keeping input order and skipping isolated failures."""
    results: list[R] = []

    if limit <= 1 or len(items) <= 1:
        for item in items:
            try:
                results.append(func(item))
            except isolate as e:
                if on_error is not None:
                    on_error(item, e)
        return results

    outcomes = asyncio.run(_gather(func, items, limit))
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, isolate):
                raise outcome
            if on_error is not None:
                on_error(item, outcome)
            continue
        results.append(outcome)
    return results


async def _gather(
    func: Callable[[T], R],
    items: Sequence[T],
    limit: int,
) -> list[R | BaseException]:
    semaphore = asyncio.Semaphore(limit)

    async def run_one(item: T) -> R:
        async with semaphore:
            return await asyncio.to_thread(func, item)

    return await asyncio.gather(*(run_one(item) for item in items), return_exceptions=True)
