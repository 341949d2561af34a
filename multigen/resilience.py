"""Timeout + bounded retry decorator around any provider adapter."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
import logging
from typing import AsyncIterator

from .adapters.base import BaseProviderAdapter
from .errors import ConfigurationMissing, ProviderError, ProviderTimeout
from .registry import ProviderRegistry
from .settings import OrchestratorSettings
from .types import GenerationInput, GenResult
from .utils.concurrency import ConcurrencyLimiter
from .utils.rate_limiter import AsyncRateLimiter, retry_with_backoff


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResiliencePolicy:
    """Per-call timeout and retry schedule.

    ``max_retries`` counts retries after the first attempt, so the default
    allows three attempts in total.
    """

    timeout_seconds: float = 30.0
    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.0

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays must be non-negative")

    @classmethod
    def from_settings(cls, settings: OrchestratorSettings) -> "ResiliencePolicy":
        return cls(
            timeout_seconds=settings.provider_timeout_seconds,
            max_retries=settings.max_retries,
            base_delay=settings.backoff_base_ms / 1000,
            max_delay=settings.backoff_max_ms / 1000,
        )


class ResilientAdapter(BaseProviderAdapter):
    """Adapter decorator applying timeout, retry, RPM limiting and slot gating.

    Every failed attempt increments the provider's error counter right away,
    so registry stats reflect raw failure frequency rather than final outcome.
    """

    def __init__(
        self,
        adapter: BaseProviderAdapter,
        policy: ResiliencePolicy,
        *,
        registry: ProviderRegistry | None = None,
        limiter: ConcurrencyLimiter | None = None,
        rate_limiter: AsyncRateLimiter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(provider_id=adapter.provider_id, model=adapter.model, dry_run=adapter.dry_run)
        self.inner = adapter
        self.policy = policy
        self.registry = registry
        self.limiter = limiter
        self.rate_limiter = rate_limiter
        self.logger = logger or LOGGER
        self.attempts = 0

    @property
    def is_configured(self) -> bool:
        return self.inner.is_configured

    def _rpm(self) -> int:
        if self.registry is None:
            return 0
        config = self.registry.get_config(self.provider_id)
        return config.rpm if config is not None else 0

    def _bounded(self, generation_input: GenerationInput) -> GenerationInput:
        """Clamp ``max_tokens`` to the provider's configured ceiling."""
        if self.registry is None:
            return generation_input
        config = self.registry.get_config(self.provider_id)
        if config is None or generation_input.max_tokens <= config.max_tokens:
            return generation_input
        self.logger.debug(
            "Provider %s: max_tokens %d clamped to %d",
            self.provider_id,
            generation_input.max_tokens,
            config.max_tokens,
        )
        return replace(generation_input, max_tokens=config.max_tokens)

    def _on_failure(self, attempt: int, exc: BaseException) -> None:
        if self.registry is not None and self.provider_id in self.registry:
            self.registry.record_error(self.provider_id)
        self.logger.warning(
            "Provider %s attempt %d/%d failed: %s",
            self.provider_id,
            attempt + 1,
            self.policy.max_retries + 1,
            exc,
        )

    @asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        # RPM wait happens before a concurrency slot is taken.
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire(key=self.provider_id, rpm=self._rpm())
        if self.limiter is None:
            yield
            return
        async with self.limiter:
            yield

    async def _attempt(self, generation_input: GenerationInput) -> GenResult:
        self.attempts += 1
        result = await self.inner.generate(generation_input)
        if result.status != "ok":
            raise ProviderError(self.provider_id, result.error or "adapter returned an error result")
        return result

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        generation_input = self._bounded(generation_input)
        return await retry_with_backoff(
            lambda: self._attempt(generation_input),
            max_retries=self.policy.max_retries,
            base_delay=self.policy.base_delay,
            max_delay=self.policy.max_delay,
            jitter=self.policy.jitter,
            timeout=self.policy.timeout_seconds,
            retryable_exceptions=(Exception,),
            non_retryable_exceptions=(ConfigurationMissing,),
            on_timeout=lambda: ProviderTimeout(self.provider_id, self.policy.timeout_seconds),
            on_failure=self._on_failure,
            gate=self._slot,
        )

    async def close(self) -> None:
        await self.inner.close()
