"""Provider id -> adapter construction.

Each provider is one entry in ``_BUILDERS``; the orchestrator only ever sees the
resulting ``{provider_id: adapter}`` mapping.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..registry import ProviderConfig, ProviderRegistry
from ..settings import OrchestratorSettings
from .anthropic_adapter import AnthropicAdapter
from .base import BaseProviderAdapter
from .http_adapters import HuggingFaceAdapter, OllamaAdapter
from .openai_adapter import OpenAIAdapter


LOGGER = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
XAI_BASE_URL = "https://api.x.ai/v1"
DEEPSEEK_BASE_URL = "https://api.deepseek.com"

AdapterBuilder = Callable[[ProviderConfig, OrchestratorSettings, str, bool], BaseProviderAdapter]


def _openai_compatible(base_url: str | None) -> AdapterBuilder:
    def build(config: ProviderConfig, settings: OrchestratorSettings, model: str, dry_run: bool) -> BaseProviderAdapter:
        return OpenAIAdapter(
            provider_id=config.provider_id,
            model=model,
            api_key=settings.credential(config.credential_env),
            base_url=base_url,
            dry_run=dry_run,
        )

    return build


def _anthropic(config: ProviderConfig, settings: OrchestratorSettings, model: str, dry_run: bool) -> BaseProviderAdapter:
    return AnthropicAdapter(
        provider_id=config.provider_id,
        model=model,
        api_key=settings.credential(config.credential_env),
        dry_run=dry_run,
    )


def _huggingface(config: ProviderConfig, settings: OrchestratorSettings, model: str, dry_run: bool) -> BaseProviderAdapter:
    return HuggingFaceAdapter(
        provider_id=config.provider_id,
        model=model,
        api_key=settings.credential(config.credential_env),
        dry_run=dry_run,
    )


def _ollama(config: ProviderConfig, settings: OrchestratorSettings, model: str, dry_run: bool) -> BaseProviderAdapter:
    return OllamaAdapter(
        provider_id=config.provider_id,
        model=model,
        host=settings.ollama_host,
        dry_run=dry_run,
    )


_BUILDERS: dict[str, AdapterBuilder] = {
    "openai": _openai_compatible(None),
    "gemini": _openai_compatible(GEMINI_BASE_URL),
    "xai": _openai_compatible(XAI_BASE_URL),
    "deepseek": _openai_compatible(DEEPSEEK_BASE_URL),
    "anthropic": _anthropic,
    "huggingface": _huggingface,
    "ollama": _ollama,
}


def supported_providers() -> set[str]:
    return set(_BUILDERS)


def build_adapters(
    settings: OrchestratorSettings,
    registry: ProviderRegistry,
    *,
    dry_run: bool = False,
) -> dict[str, BaseProviderAdapter]:
    """Build one adapter per registered provider that has a known builder.

    Registered providers without a builder are skipped with a warning; the
    registry may describe providers served by adapters injected elsewhere.
    """
    adapters: dict[str, BaseProviderAdapter] = {}
    for provider_id in registry.ordered_providers():
        builder = _BUILDERS.get(provider_id)
        if builder is None:
            LOGGER.warning("No adapter builder for registered provider '%s'; skipping", provider_id)
            continue
        config = registry.get_config(provider_id)
        assert config is not None
        model = settings.model_override(provider_id) or config.model
        adapters[provider_id] = builder(config, settings, model, dry_run)
    return adapters
