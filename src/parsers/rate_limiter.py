"""Request pacing for the Moralis, Pyth and RPC clients, plus the bounded
fan-out the risk engine uses for every leaf gateway call."""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import Any

from config.settings import settings


class RateLimiter:
    """Minimum-interval limiter shared by all requests of one upstream client.

    Requests are serialized through a lock and spaced at least
    ``1 / max_rps`` seconds apart, so a burst of holder enrichments
    cannot exceed the provider's per-second quota.
    """

    def __init__(self, max_rps: float) -> None:
        self._min_interval = 1.0 / max_rps
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            now = loop.time()
            wait = self._min_interval - (now - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = loop.time()


async def bounded_gather(
    semaphore: asyncio.Semaphore,
    coros: Iterable[Awaitable[Any]],
    *,
    timeout: float | None = None,
) -> list[Any]:
    """Run leaf gateway calls concurrently, at most semaphore-many at a time.

    Each call is cut off after ``timeout`` seconds (default
    ``settings.subanalysis_timeout_sec``) once it holds a slot. Exceptions,
    timeouts included, are returned in place of results, as with
    ``asyncio.gather(..., return_exceptions=True)``. Callers must not
    acquire the same semaphore inside the awaited coroutines.
    """
    limit = timeout or settings.subanalysis_timeout_sec

    async def _run(coro: Awaitable[Any]) -> Any:
        async with semaphore:
            return await asyncio.wait_for(coro, limit)

    return await asyncio.gather(*(_run(c) for c in coros), return_exceptions=True)
