"""Async helpers for running blocking HTTP and file I/O off the event loop."""

import asyncio
from typing import Any, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY = 5


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = ScriptClient(config)
        files = await run_sync(client.fetch_content, script_id)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def map_limited(
    func: Callable[[T], R],
    items: Iterable[T],
    limit: int = DEFAULT_CONCURRENCY,
) -> list[R]:
    """Apply a blocking *func* to every item with at most *limit* in flight.

    Completion order is unspecified; the returned list matches the input
    order and is only returned once every call has finished.  The first
    exception propagates after the batch settles.

    Args:
        func: Synchronous function taking one item.
        items: Items to process.
        limit: Maximum concurrent calls (at least 1).

    Returns:
        Results in the same order as *items*.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _worker(item: T) -> R:
        async with semaphore:
            return await asyncio.to_thread(func, item)

    results = await asyncio.gather(
        *(_worker(item) for item in items), return_exceptions=True
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)  # type: ignore[arg-type]
