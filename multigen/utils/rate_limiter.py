"""Async per-provider RPM limiting and retry helpers."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import AbstractAsyncContextManager, nullcontext
import random
import time
from typing import Awaitable, Callable, TypeVar


T = TypeVar("T")

GLOBAL_RPM_KEY = "__global__"
DEFAULT_GLOBAL_RPM = 600
RPM_WINDOW_SECONDS = 60.0


class AsyncRateLimiter:
    """Requests-per-minute gate over a rolling window, per provider and global.

    Call timestamps come from ``time.monotonic`` and survive across event
    loops; the per-key locks are rebuilt whenever the running loop changes.
    """

    def __init__(self, global_rpm: int = DEFAULT_GLOBAL_RPM, window_seconds: float = RPM_WINDOW_SECONDS) -> None:
        self.global_rpm = global_rpm
        self.window_seconds = window_seconds
        self._calls: dict[str, deque[float]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def _lock_for(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            self._locks.clear()
            self._loop = loop
        return self._locks.setdefault(key, asyncio.Lock())

    def _wait_seconds(self, key: str, rpm: int, now: float) -> float:
        """Seconds until ``key`` may issue a call; 0.0 records the call."""
        calls = self._calls.setdefault(key, deque())
        while calls and now - calls[0] > self.window_seconds:
            calls.popleft()
        if len(calls) < rpm:
            calls.append(now)
            return 0.0
        return max(0.01, self.window_seconds - (now - calls[0]))

    async def _take(self, key: str, rpm: int) -> None:
        if rpm <= 0:
            return
        async with self._lock_for(key):
            while True:
                delay = self._wait_seconds(key, rpm, time.monotonic())
                if delay <= 0:
                    return
                await asyncio.sleep(delay)

    async def acquire(self, key: str, rpm: int) -> None:
        """Wait until both the global cap and ``key``'s own RPM allow a call."""
        await self._take(GLOBAL_RPM_KEY, self.global_rpm)
        await self._take(key, rpm)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Capped exponential delay ``min(base * 2**attempt, cap)`` for a 0-based attempt."""
    return min(base_delay * (2 ** attempt), max_delay)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    jitter: float = 0.0,
    timeout: float | None = None,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
    non_retryable_exceptions: tuple[type[BaseException], ...] = (),
    on_timeout: Callable[[], BaseException] | None = None,
    on_failure: Callable[[int, BaseException], None] | None = None,
    gate: Callable[[], AbstractAsyncContextManager[object]] | None = None,
) -> T:
    """Retry an awaitable factory with capped exponential backoff.

    Runs at most ``max_retries + 1`` attempts. Each attempt enters ``gate()``
    (e.g. a concurrency slot) and is bounded by ``timeout``; an expired attempt
    raises ``on_timeout()`` when given, else :class:`asyncio.TimeoutError`.
    ``on_failure(attempt, exc)`` is called for every failed attempt. Errors
    raised while entering the gate are not attempts: they propagate unretried
    and skip ``on_failure``. Backoff sleeps happen outside the gate. The last
    error is re-raised.
    """
    attempt = 0
    while True:
        async with gate() if gate is not None else nullcontext():
            try:
                if timeout is None:
                    return await fn()
                try:
                    return await asyncio.wait_for(fn(), timeout=timeout)
                except asyncio.TimeoutError:
                    if on_timeout is None:
                        raise
                    raise on_timeout() from None
            except non_retryable_exceptions as exc:
                if on_failure is not None:
                    on_failure(attempt, exc)
                raise
            except retryable_exceptions as exc:
                if on_failure is not None:
                    on_failure(attempt, exc)
                if attempt >= max_retries:
                    raise
        sleep_seconds = backoff_delay(attempt, base_delay, max_delay)
        if jitter:
            sleep_seconds += random.uniform(0.0, jitter * sleep_seconds)
        attempt += 1
        await asyncio.sleep(sleep_seconds)
