"""Plain-HTTP adapters (Ollama, Hugging Face Inference API) built on httpx."""

from __future__ import annotations

import time
from typing import Any

import httpx

from ..errors import ConfigurationMissing, MalformedResponse, ProviderTimeout, UpstreamHTTPError
from ..types import GenerationInput, GenResult
from .base import BaseProviderAdapter, estimate_tokens


DEFAULT_HF_BASE_URL = "https://api-inference.huggingface.co/models"


class HTTPProviderAdapter(BaseProviderAdapter):
    """Shared POST/JSON plumbing and httpx error mapping."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        *,
        dry_run: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=model, dry_run=dry_run)
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def _post_json(self, url: str, payload: dict[str, Any]) -> Any:
        if self._client is None:
            # No client-side timeout: the resilience wrapper bounds each call.
            self._client = httpx.AsyncClient(timeout=None)
        try:
            response = await self._client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(self.provider_id) from exc
        except httpx.HTTPError as exc:
            raise UpstreamHTTPError(self.provider_id, None, str(exc)) from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamHTTPError(self.provider_id, response.status_code, response.text[:500])
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(self.provider_id, "response body is not valid JSON") from exc

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class OllamaAdapter(HTTPProviderAdapter):
    """Local Ollama server; needs no credentials."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        *,
        host: str = "http://localhost:11434",
        dry_run: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=model, dry_run=dry_run, client=client)
        self.base_url = host.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return True

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        if self.dry_run:
            return self._mock_response(generation_input)

        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": generation_input.full_prompt,
            "stream": False,
            "options": {
                "temperature": generation_input.temperature,
                "num_predict": generation_input.max_tokens,
            },
        }
        if generation_input.system:
            payload["system"] = generation_input.system

        started = time.perf_counter()
        data = await self._post_json(f"{self.base_url}/api/generate", payload)
        elapsed_ms = (time.perf_counter() - started) * 1000

        if not isinstance(data, dict) or "response" not in data:
            raise MalformedResponse(self.provider_id, "missing 'response' field")
        text = str(data.get("response") or "").strip()
        input_tokens = int(data.get("prompt_eval_count") or 0)
        output_tokens = int(data.get("eval_count") or 0)
        tokens_used = input_tokens + output_tokens or estimate_tokens(generation_input.full_prompt, text)

        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=elapsed_ms,
            tokens_used=tokens_used,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            raw={"total_duration": data.get("total_duration")},
        )


class HuggingFaceAdapter(HTTPProviderAdapter):
    """Hugging Face text-generation Inference API."""

    def __init__(
        self,
        provider_id: str,
        model: str,
        api_key: str | None = None,
        *,
        base_url: str = DEFAULT_HF_BASE_URL,
        dry_run: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(provider_id=provider_id, model=model, dry_run=dry_run, client=client)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return self.dry_run or bool(self.api_key)

    def _headers(self) -> dict[str, str]:
        return {**super()._headers(), "Authorization": f"Bearer {self.api_key}"}

    async def generate(self, generation_input: GenerationInput) -> GenResult:
        if self.dry_run:
            return self._mock_response(generation_input)
        if not self.api_key:
            raise ConfigurationMissing(self.provider_id)

        prompt = generation_input.full_prompt
        if generation_input.system:
            prompt = f"{generation_input.system}\n\n{prompt}"
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": generation_input.max_tokens,
                "temperature": generation_input.temperature,
                "return_full_text": False,
            },
        }

        started = time.perf_counter()
        data = await self._post_json(f"{self.base_url}/{self.model}", payload)
        elapsed_ms = (time.perf_counter() - started) * 1000

        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = str(data[0].get("generated_text") or "")
        elif isinstance(data, dict) and "generated_text" in data:
            text = str(data.get("generated_text") or "")
        else:
            raise MalformedResponse(self.provider_id, "no generated_text in response")
        text = text.strip()

        return GenResult.ok(
            provider=self.provider_id,
            model=self.model,
            text=text,
            latency_ms=elapsed_ms,
            tokens_used=estimate_tokens(prompt, text),
        )
