"""Bridge between the blocking HTTP clients and the asynchronous sync engine."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Await ``func(*args, **kwargs)`` on a worker thread.

    The engine awaits each call before issuing the next one, so wiki and
    diagram requests never overlap.

    Example:
        page = await run_sync(client.find_page, "Acme Handbook")
    """
    return await asyncio.to_thread(func, *args, **kwargs)
