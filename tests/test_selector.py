"""Provider selection ranking rules."""

from __future__ import annotations

import pytest

from multigen.errors import NoValidProviders
from multigen.registry import load_provider_registry
from multigen.selector import ProviderSelector


def test_select_orders_by_score_and_truncates(registry) -> None:
    selector = ProviderSelector(registry, max_parallel=2)
    selected = selector.select(["gemini", "ollama", "openai", "anthropic"], task_type="code")

    assert len(selected) == 2
    # openai and anthropic both get the code bonus and 0.95 reliability; request order breaks the tie.
    assert selected == ["openai", "anthropic"]
    scores = selector.score_candidates(["gemini", "ollama", "openai", "anthropic"], task_type="code")
    ranked = [scores[pid] for pid in selected]
    assert ranked == sorted(ranked, reverse=True)


def test_select_rejects_empty_and_unregistered(registry) -> None:
    selector = ProviderSelector(registry)
    with pytest.raises(NoValidProviders):
        selector.select([])
    with pytest.raises(NoValidProviders) as excinfo:
        selector.select(["nope", "also-nope"])
    assert excinfo.value.requested == ["nope", "also-nope"]


def test_available_filter_applies(registry) -> None:
    selector = ProviderSelector(registry)
    assert selector.select(["openai", "anthropic"], available=["anthropic"]) == ["anthropic"]
    with pytest.raises(NoValidProviders):
        selector.select(["openai"], available=[])


def test_duplicates_are_collapsed(registry) -> None:
    selector = ProviderSelector(registry, max_parallel=5)
    assert selector.select(["openai", "openai", "gemini"]) == ["openai", "gemini"]


def test_capability_bonus_only_for_code_and_vision(registry) -> None:
    selector = ProviderSelector(registry)
    text_scores = selector.score_candidates(["anthropic"], task_type="text")
    vision_scores = selector.score_candidates(["anthropic"], task_type="vision")
    assert text_scores["anthropic"] == pytest.approx(1.9)
    assert vision_scores["anthropic"] == pytest.approx(4.9)


def test_priority_modes(registry) -> None:
    selector = ProviderSelector(registry, max_parallel=5)
    requested = ["anthropic", "gemini", "ollama"]

    cost = selector.score_candidates(requested, priority="cost")
    assert cost["ollama"] == pytest.approx(0.75 * 2 + 2.0)
    assert cost["gemini"] == pytest.approx(0.9 * 2 + (1 - 0.0004) * 2)

    speed = selector.score_candidates(requested, priority="speed")
    assert speed["gemini"] == pytest.approx(1.8 + 2.0)
    assert speed["anthropic"] == pytest.approx(1.9)
    assert selector.select(requested, priority="speed")[0] == "gemini"

    balanced = selector.score_candidates(requested, priority="balanced")
    assert balanced["gemini"] == pytest.approx(1.8 + 0.5 * (1 - 0.0004) * 2 + 0.5 * 2.0)


def test_ties_keep_request_order() -> None:
    entry = {"model": "m", "cost_per_1k": 0.001, "reliability": 0.5, "speed": "medium"}
    registry = load_provider_registry(raw_config={"providers": {"a": entry, "b": entry, "c": entry}})
    selector = ProviderSelector(registry, max_parallel=3)
    assert selector.select(["c", "a", "b"]) == ["c", "a", "b"]
    assert selector.select(["b", "c", "a"]) == ["b", "c", "a"]


def test_invalid_priority_or_task_type(registry) -> None:
    selector = ProviderSelector(registry)
    with pytest.raises(ValueError):
        selector.select(["openai"], priority="fastest")
    with pytest.raises(ValueError):
        selector.select(["openai"], task_type="audio")
