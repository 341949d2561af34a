"""Heuristic scorer properties."""

from __future__ import annotations

import pytest

from multigen.evaluation.scoring import (
    code_complexity,
    extract_code_blocks,
    has_valid_json,
    score_result,
    score_results,
)
from multigen.types import GenResult


def _ok(text: str, *, provider: str = "openai", tokens: int = 500, latency_ms: float = 1200.0) -> GenResult:
    return GenResult.ok(provider=provider, model="m", text=text, latency_ms=latency_ms, tokens_used=tokens)


def _err(provider: str = "openai") -> GenResult:
    return GenResult.failed(provider=provider, model="m", error="HTTP 500: boom")


@pytest.mark.parametrize("task_type", ["text", "code", "vision"])
def test_errors_never_outscore_valid_outputs(task_type: str) -> None:
    failed = score_result(_err(), task_type)
    empty = score_result(_ok(""), task_type)
    short = score_result(_ok("ok"), task_type)

    assert failed.score == 0.0
    assert failed.confidence == 0.0
    assert failed.reasoning == "HTTP 500: boom"
    assert empty.score == 0.0
    assert short.score > empty.score
    assert short.score > failed.score


def test_text_scoring_rewards_substance_and_structure() -> None:
    plain = score_result(_ok("Short answer."))
    rich_text = "# Heading\n\n" + " ".join(f"Sentence number {i} has several words." for i in range(30))
    rich = score_result(_ok(rich_text, tokens=2500))

    assert plain.score == pytest.approx(0.5)
    assert rich.score > plain.score
    assert rich.score <= 1.0
    assert rich.confidence == 1.0
    assert "headings" in rich.reasoning


def test_code_scoring_components() -> None:
    code = (
        "Here is the function:\n"
        "```python\n"
        "import json\n"
        "\n"
        "def load(path):\n"
        "    # read config\n"
        "    try:\n"
        "        return json.load(open(path))\n"
        "    except ValueError:\n"
        "        return {}\n"
        "```\n"
    )
    scored = score_result(_ok(code, tokens=300), "code")
    bare = score_result(_ok("use a dictionary"), "code")

    assert bare.score == pytest.approx(0.3)
    assert scored.score > bare.score
    assert "code block" in scored.reasoning
    assert scored.confidence == pytest.approx(0.3)


def test_code_confidence_is_capped_for_slow_responses() -> None:
    fast = score_result(_ok("x = 1", tokens=5000, latency_ms=500), "code")
    slow = score_result(_ok("x = 1", tokens=5000, latency_ms=15_000), "code")
    assert fast.confidence == pytest.approx(0.9)
    assert slow.confidence == pytest.approx(0.5)


def test_helpers() -> None:
    assert extract_code_blocks("a ```js\nconst x = 1;\n``` b") == ["const x = 1;"]
    assert has_valid_json('result: {"a": 1}')
    assert not has_valid_json("{not json}")
    assert 0.0 <= code_complexity("class A:\n    pass") <= 1.0


def test_cost_fields_filled_from_registry(registry) -> None:
    scored = score_results([_ok("hello there", provider="openai", tokens=2000), _err("gemini")], registry=registry)
    assert scored[0].cost_usd == pytest.approx(0.01)
    assert scored[0].cost_efficiency == pytest.approx(scored[0].score / 0.01)
    assert scored[1].cost_usd == 0.0
    assert scored[1].cost_efficiency is None

    free = score_result(_ok("local answer", provider="ollama"), registry=registry)
    assert free.cost_usd == 0.0
    assert free.cost_efficiency is None
