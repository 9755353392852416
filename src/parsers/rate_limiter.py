import asyncio


class RateLimiter:
    """Token bucket rate limiter for async HTTP clients.

    ``burst`` requests may go out back to back; after that callers are
    spaced to ``max_rps``. One instance is shared by every coroutine that
    hits the same upstream.
    """

    def __init__(self, max_rps: float, burst: int = 1) -> None:
        if max_rps <= 0:
            raise ValueError("max_rps must be positive")
        self._rate = max_rps
        self._capacity = float(max(1, burst))
        self._tokens = self._capacity
        self._updated: float | None = None
        self._lock = asyncio.Lock()

    @property
    def max_rps(self) -> float:
        return self._rate

    def _refill(self, now: float) -> None:
        if self._updated is not None:
            self._tokens = min(self._capacity, self._tokens + (now - self._updated) * self._rate)
        self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            loop = asyncio.get_running_loop()
            self._refill(loop.time())
            if self._tokens < 1.0:
                await asyncio.sleep((1.0 - self._tokens) / self._rate)
                self._refill(loop.time())
            self._tokens = max(0.0, self._tokens - 1.0)
