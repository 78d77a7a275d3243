"""Async utilities for running blocking HTTP fetches off the event loop."""

import asyncio
from typing import Any, Callable, Coroutine, TypeVar

T = TypeVar("T")


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
        snapshot = await run_sync(source.fetch_full_snapshot)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def join(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Run coroutines concurrently and wait for all of them.

    Returns results in argument order.  The first exception propagates
    and the remaining tasks are cancelled.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
