"""Abstract async provider adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
import math
import random
import time

from ..types import GenerationInput, GenResult


def estimate_tokens(*texts: str) -> int:
    """Rough token estimate (~4 characters per token)."""
    return math.ceil(sum(len(t) for t in texts) / 4)


class BaseProviderAdapter(ABC):
    """Translates a generic GenerationInput into one provider call.

    Adapters never retry and never apply their own timeout; the resilience
    wrapper owns both. They must not touch registry state.
    """

    def __init__(self, provider_id: str, model: str, *, dry_run: bool = False) -> None:
        self.provider_id = provider_id
        self.model = model
        self.dry_run = dry_run

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials (or a local endpoint) are available."""

    @abstractmethod
    async def generate(self, generation_input: GenerationInput) -> GenResult:
        """Generate output asynchronously or raise a ProviderError."""

    async def close(self) -> None:
        """Optional resource cleanup hook."""
        return None

    def _mock_response(self, generation_input: GenerationInput) -> GenResult:
        started = time.perf_counter()
        prompt = generation_input.full_prompt
        seed = sum(ord(ch) for ch in f"{self.provider_id}:{prompt[:80]}") % 1_000_000
        rnd = random.Random(seed)
        sample = prompt.split()[:40]
        text = "[DRY-RUN:{}] {}".format(self.provider_id, " ".join(sample) or "empty prompt")
        elapsed_ms = (time.perf_counter() - started) * 1000
        input_tokens = max(32, len(prompt) // 4)
        output_tokens = max(64, len(text) // 3 + rnd.randint(0, 8))
        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=elapsed_ms,
            tokens_used=input_tokens + output_tokens,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            raw={"dry_run": True},
        )
