"""Provider registry loading and statistics."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from multigen.registry import DEFAULT_CONFIG_PATH, load_provider_registry


def test_packaged_config_loads() -> None:
    registry = load_provider_registry()
    assert {"openai", "anthropic", "gemini", "xai", "deepseek", "huggingface", "ollama"} <= registry.list_providers()
    ollama = registry.get_config("ollama")
    assert ollama is not None
    assert ollama.cost_per_1k == 0.0
    assert ollama.credential_env == ()
    assert DEFAULT_CONFIG_PATH.exists()


def test_yaml_file_is_read(tmp_path: Path) -> None:
    path = tmp_path / "providers.yaml"
    path.write_text(
        "providers:\n"
        "  local:\n"
        "    model: tiny\n"
        "    cost_per_1k: 0\n"
        "    reliability: 0.5\n"
        "    speed: slow\n"
        "    capabilities: [local]\n",
        encoding="utf-8",
    )
    registry = load_provider_registry(config_path=path)
    config = registry.get_config("local")
    assert config is not None
    assert config.has_capability("local")
    assert registry.get_config("missing") is None


@pytest.mark.parametrize(
    "entry",
    [
        {"model": "m", "cost_per_1k": 0.1, "speed": "fast"},
        {"model": "m", "cost_per_1k": 0.1, "reliability": 1.5, "speed": "fast"},
        {"model": "m", "cost_per_1k": 0.1, "reliability": 0.5, "speed": "warp"},
        {"model": "m", "cost_per_1k": -1, "reliability": 0.5, "speed": "fast"},
        {"model": "m", "cost_per_1k": 0.1, "reliability": 0.5, "speed": "fast", "capabilities": ["telepathy"]},
    ],
)
def test_invalid_entries_rejected(entry) -> None:
    with pytest.raises(ValueError):
        load_provider_registry(raw_config={"providers": {"bad": entry}})


def test_empty_config_rejected() -> None:
    with pytest.raises(ValueError):
        load_provider_registry(raw_config={"providers": {}})


def test_stats_record_and_reset(registry) -> None:
    registry.record_call("openai")
    registry.record_error("openai")
    registry.record_tokens("openai", 1500)
    registry.record_cost("openai", registry.cost_for_tokens("openai", 1500))

    stats = registry.get_stats("openai")
    assert (stats.calls, stats.errors, stats.total_tokens) == (1, 1, 1500)
    assert stats.total_cost_usd == pytest.approx(1.5 * 0.005)

    # get_stats hands out a copy
    stats.calls = 99
    assert registry.get_stats("openai").calls == 1

    snapshot = registry.snapshot()
    assert snapshot["openai"]["calls"] == 1
    assert snapshot["gemini"]["calls"] == 0

    registry.reset_stats()
    assert registry.get_stats("openai").calls == 0
    assert registry.get_stats("openai").total_cost_usd == 0.0


def test_invalid_recordings(registry) -> None:
    with pytest.raises(ValueError):
        registry.record_cost("openai", -0.01)
    with pytest.raises(ValueError):
        registry.record_tokens("openai", -1)
    with pytest.raises(KeyError):
        registry.record_call("unknown")
    assert registry.cost_for_tokens("unknown", 1000) == 0.0


def test_concurrent_increments_are_not_lost(registry) -> None:
    def _hammer() -> None:
        for _ in range(1000):
            registry.record_call("gemini")
            registry.record_cost("gemini", 0.001)

    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(8):
            pool.submit(_hammer)

    stats = registry.get_stats("gemini")
    assert stats.calls == 8000
    assert stats.total_cost_usd == pytest.approx(8.0)
