"""Shared fakes: scripted adapters and a small in-memory registry."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from multigen.adapters.base import BaseProviderAdapter, estimate_tokens
from multigen.errors import UpstreamHTTPError
from multigen.registry import ProviderRegistry, load_provider_registry
from multigen.resilience import ResiliencePolicy
from multigen.settings import OrchestratorSettings
from multigen.types import GenerationInput, GenResult


RAW_REGISTRY: dict[str, Any] = {
    "providers": {
        "openai": {
            "model": "gpt-test",
            "cost_per_1k": 0.005,
            "capabilities": ["code", "reasoning"],
            "reliability": 0.95,
            "speed": "fast",
        },
        "anthropic": {
            "model": "claude-test",
            "cost_per_1k": 0.006,
            "capabilities": ["code", "reasoning", "vision"],
            "reliability": 0.95,
            "speed": "medium",
        },
        "gemini": {
            "model": "gemini-test",
            "cost_per_1k": 0.0004,
            "capabilities": ["vision"],
            "reliability": 0.9,
            "speed": "very-fast",
        },
        "deepseek": {
            "model": "deepseek-test",
            "cost_per_1k": 0.0007,
            "capabilities": ["code"],
            "reliability": 0.85,
            "speed": "very-fast",
        },
        "ollama": {
            "model": "llama-test",
            "cost_per_1k": 0.0,
            "capabilities": ["local"],
            "reliability": 0.75,
            "speed": "medium",
        },
    }
}

FAST_POLICY = ResiliencePolicy(timeout_seconds=1.0, max_retries=2, base_delay=0.0, max_delay=0.0)


class FakeAdapter(BaseProviderAdapter):
    """Adapter whose behaviour is scripted per attempt.

    ``script`` items are either a text to return or an exception to raise;
    the last item repeats once the script runs out.
    """

    def __init__(
        self,
        provider_id: str,
        script: list[Any] | None = None,
        *,
        configured: bool = True,
        delay: float = 0.0,
        tokens: int | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=f"{provider_id}-model")
        self.script = list(script) if script else [f"{provider_id} answer"]
        self.configured = configured
        self.delay = delay
        self.tokens = tokens
        self.calls = 0
        self.closed = False

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(step, BaseException):
            raise step
        text = str(step)
        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=self.delay * 1000,
            tokens_used=self.tokens if self.tokens is not None else estimate_tokens(generation_input.full_prompt, text),
        )

    async def close(self) -> None:
        self.closed = True


class CountingAdapter(FakeAdapter):
    """Records how many calls are inside ``generate`` at the same time."""

    def __init__(self, provider_id: str, probe: dict[str, int], delay: float = 0.02) -> None:
        super().__init__(provider_id, delay=delay)
        self.probe = probe

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        self.probe["current"] += 1
        self.probe["peak"] = max(self.probe["peak"], self.probe["current"])
        try:
            return await super().generate(generation_input)
        finally:
            self.probe["current"] -= 1


def always_failing(provider_id: str) -> FakeAdapter:
    return FakeAdapter(provider_id, [UpstreamHTTPError(provider_id, 503, "unavailable")])


@pytest.fixture
def registry() -> ProviderRegistry:
    return load_provider_registry(raw_config=RAW_REGISTRY)


@pytest.fixture
def settings() -> OrchestratorSettings:
    return OrchestratorSettings(max_parallel=3, max_retries=2, backoff_base_ms=0, backoff_max_ms=0)


@pytest.fixture
def make_orchestrator(registry: ProviderRegistry, settings: OrchestratorSettings) -> Callable[..., Any]:
    from multigen.orchestrator import Orchestrator

    def _make(adapters: dict[str, BaseProviderAdapter], **kwargs: Any) -> Orchestrator:
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("policy", FAST_POLICY)
        return Orchestrator(registry, adapters, **kwargs)

    return _make
