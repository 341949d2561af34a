"""Anthropic adapter."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import anthropic

from ..errors import ConfigurationMissing, MalformedResponse, ProviderTimeout, UpstreamHTTPError
from ..types import GenerationInput, GenResult
from .base import BaseProviderAdapter, estimate_tokens


class AnthropicAdapter(BaseProviderAdapter):
    """Async wrapper around official anthropic SDK."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        api_key: str | None = None,
        *,
        dry_run: bool = False,
        client: Any | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=model, dry_run=dry_run)
        self.api_key = api_key
        self._client: Any | None = client

    @property
    def is_configured(self) -> bool:
        return self.dry_run or self._client is not None or bool(self.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationMissing(self.provider_id)
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key, max_retries=0)
        return self._client

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        if self.dry_run:
            return self._mock_response(generation_input)

        client = self._get_client()
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": generation_input.max_tokens,
            "temperature": generation_input.temperature,
            "messages": [{"role": "user", "content": generation_input.full_prompt}],
        }
        if generation_input.system:
            kwargs["system"] = generation_input.system

        started = time.perf_counter()
        try:
            response = await client.messages.create(**kwargs)
        except anthropic.APITimeoutError as exc:
            raise ProviderTimeout(self.provider_id) from exc
        except anthropic.APIStatusError as exc:
            raise UpstreamHTTPError(self.provider_id, exc.status_code, str(exc.message)) from exc
        except anthropic.APIConnectionError as exc:
            raise UpstreamHTTPError(self.provider_id, None, str(exc)) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000

        content = getattr(response, "content", None)
        if content is None:
            raise MalformedResponse(self.provider_id, "response has no content blocks")

        text_chunks = []
        for chunk in content:
            if getattr(chunk, "type", None) == "text":
                text_chunks.append(chunk.text)
        text = "\n".join(text_chunks).strip()

        usage = getattr(response, "usage", None)
        input_tokens = int(getattr(usage, "input_tokens", 0) or 0)
        output_tokens = int(getattr(usage, "output_tokens", 0) or 0)
        tokens_used = input_tokens + output_tokens or estimate_tokens(generation_input.full_prompt, text)

        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=elapsed_ms,
            tokens_used=tokens_used,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            raw={"id": getattr(response, "id", None)},
        )

    async def close(self) -> None:
        if self._client is None:
            await asyncio.sleep(0)
            return
        close_fn = getattr(self._client, "close", None)
        if close_fn is not None:
            maybe_coro = close_fn()
            if asyncio.iscoroutine(maybe_coro):
                await maybe_coro
