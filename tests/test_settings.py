from __future__ import annotations

from pathlib import Path

import pytest

from multigen.resilience import ResiliencePolicy
from multigen.settings import OrchestratorSettings


def test_defaults_from_empty_environment() -> None:
    settings = OrchestratorSettings.from_env({})
    assert settings.provider_timeout_ms == 30_000
    assert settings.max_parallel == 3
    assert settings.max_retries == 2
    assert settings.providers_config is None
    assert settings.ollama_host == "http://localhost:11434"


def test_environment_overrides() -> None:
    settings = OrchestratorSettings.from_env(
        {
            "PROVIDER_TIMEOUT_MS": "5000",
            "LLM_MAX_PARALLEL": "4",
            "LLM_MAX_RETRIES": "0",
            "LLM_BACKOFF_BASE_MS": "100",
            "LLM_BACKOFF_MAX_MS": "400",
            "MULTIGEN_PROVIDERS_CONFIG": "/tmp/providers.yaml",
            "GEMINI_API_KEY": "g-key",
            "OPENAI_MODEL": "gpt-mini",
        }
    )
    assert settings.provider_timeout_seconds == 5.0
    assert settings.max_parallel == 4
    assert settings.max_retries == 0
    assert settings.providers_config == Path("/tmp/providers.yaml")
    assert settings.credential(("GOOGLE_API_KEY", "GEMINI_API_KEY")) == "g-key"
    assert settings.credential(("XAI_API_KEY",)) is None
    assert settings.model_override("openai") == "gpt-mini"
    assert settings.model_override("anthropic") is None

    policy = ResiliencePolicy.from_settings(settings)
    assert policy.timeout_seconds == 5.0
    assert policy.max_retries == 0
    assert policy.base_delay == pytest.approx(0.1)
    assert policy.max_delay == pytest.approx(0.4)


@pytest.mark.parametrize(
    "env",
    [
        {"LLM_MAX_PARALLEL": "0"},
        {"LLM_MAX_PARALLEL": "three"},
        {"PROVIDER_TIMEOUT_MS": "-1"},
        {"LLM_MAX_RETRIES": "-2"},
    ],
)
def test_invalid_values_rejected(env) -> None:
    with pytest.raises(ValueError):
        OrchestratorSettings.from_env(env)
