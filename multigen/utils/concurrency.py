"""Bounded fan-out for in-flight provider calls."""

from __future__ import annotations

import asyncio
from types import TracebackType


class ConcurrencyLimiter:
    """Async context manager admitting at most ``max_in_flight`` holders.

    Waiters queue on an :class:`asyncio.Semaphore` and are admitted in arrival
    order as slots free up. Queued callers are never failed or timed out here.
    The semaphore belongs to the running event loop; a limiter reused under a
    new loop (e.g. a second ``asyncio.run``) starts from an empty one.
    """

    def __init__(self, max_in_flight: int) -> None:
        if max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")
        self.max_in_flight = max_in_flight
        self._semaphore: asyncio.Semaphore | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._in_flight = 0
        self._peak = 0
        self._admitted = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak(self) -> int:
        """Highest simultaneous occupancy observed."""
        return self._peak

    @property
    def admitted(self) -> int:
        return self._admitted

    def _bound_semaphore(self) -> asyncio.Semaphore:
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_in_flight)
            self._loop = loop
            self._in_flight = 0
        return self._semaphore

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self._bound_semaphore().acquire()
        self._in_flight += 1
        self._admitted += 1
        self._peak = max(self._peak, self._in_flight)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._in_flight -= 1
        assert self._semaphore is not None
        self._semaphore.release()
