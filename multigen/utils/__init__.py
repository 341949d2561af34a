"""Concurrency, rate limiting and logging helpers."""

from .concurrency import ConcurrencyLimiter
from .logging_config import setup_logging
from .rate_limiter import AsyncRateLimiter, backoff_delay, retry_with_backoff

__all__ = [
    "ConcurrencyLimiter",
    "setup_logging",
    "AsyncRateLimiter",
    "backoff_delay",
    "retry_with_backoff",
]
