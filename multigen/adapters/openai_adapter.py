"""OpenAI adapter, also used for OpenAI-compatible endpoints (Gemini, xAI, DeepSeek)."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import openai

from ..errors import ConfigurationMissing, MalformedResponse, ProviderTimeout, UpstreamHTTPError
from ..types import GenerationInput, GenResult
from .base import BaseProviderAdapter, estimate_tokens


class OpenAIAdapter(BaseProviderAdapter):
    """Async wrapper around the OpenAI Python SDK using Chat Completions API."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        extra_headers: dict[str, str] | None = None,
        dry_run: bool = False,
        client: Any | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=model, dry_run=dry_run)
        self.api_key = api_key
        self.base_url = base_url
        self.extra_headers = extra_headers or {}
        self._client: Any | None = client

    @property
    def is_configured(self) -> bool:
        return self.dry_run or self._client is not None or bool(self.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationMissing(self.provider_id)
            kwargs: dict[str, Any] = {
                "api_key": self.api_key,
                # Retries belong to the resilience wrapper.
                "max_retries": 0,
            }
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if self.extra_headers:
                kwargs["default_headers"] = self.extra_headers
            self._client = openai.AsyncOpenAI(**kwargs)
        return self._client

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        if self.dry_run:
            return self._mock_response(generation_input)

        client = self._get_client()
        messages: list[dict[str, str]] = []
        if generation_input.system:
            messages.append({"role": "system", "content": generation_input.system})
        messages.append({"role": "user", "content": generation_input.full_prompt})

        started = time.perf_counter()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=generation_input.temperature,
                max_tokens=generation_input.max_tokens,
            )
        except openai.APITimeoutError as exc:
            raise ProviderTimeout(self.provider_id) from exc
        except openai.APIStatusError as exc:
            raise UpstreamHTTPError(self.provider_id, exc.status_code, str(exc.message)) from exc
        except openai.APIConnectionError as exc:
            raise UpstreamHTTPError(self.provider_id, None, str(exc)) from exc
        elapsed_ms = (time.perf_counter() - started) * 1000

        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponse(self.provider_id, "response contained no choices")
        message = getattr(choices[0], "message", None)
        if message is None:
            raise MalformedResponse(self.provider_id, "first choice has no message")
        text = (getattr(message, "content", None) or "").strip()

        usage = getattr(response, "usage", None)
        input_tokens = int(getattr(usage, "prompt_tokens", 0) or 0)
        output_tokens = int(getattr(usage, "completion_tokens", 0) or 0)
        total_tokens = int(getattr(usage, "total_tokens", 0) or 0) or input_tokens + output_tokens
        if total_tokens <= 0:
            total_tokens = estimate_tokens(generation_input.full_prompt, text)

        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=elapsed_ms,
            tokens_used=total_tokens,
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
            return

        await asyncio.sleep(0)
