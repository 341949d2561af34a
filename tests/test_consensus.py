"""Tests for consensus strategies and validation."""

from __future__ import annotations

import pytest

from multigen.consensus import (
    SINGLE_SOURCE_DAMPING,
    ClusterConsensus,
    HybridConsensus,
    WeightedConsensus,
    build_consensus,
    validate_consensus_quality,
)
from multigen.types import ConsensusResult, GenResult, ScoredResult


def _scored(provider: str, text: str, score: float, *, status: str = "ok") -> ScoredResult:
    if status == "ok":
        result = GenResult.ok(provider=provider, model="m", text=text, latency_ms=10.0, tokens_used=100)
    else:
        result = GenResult.failed(provider=provider, model="m", error="boom")
    return ScoredResult(result=result, score=score if status == "ok" else 0.0, confidence=0.5)


def _agreeing_majority() -> list[ScoredResult]:
    return [
        _scored("openai", "paris is the capital of france", 0.7),
        _scored("anthropic", "the capital of france is paris", 0.8),
        _scored("gemini", "paris is the capital city of france", 0.6),
        _scored("deepseek", "bananas grow on large herbaceous plants", 0.95),
    ]


def test_empty_input_raises() -> None:
    with pytest.raises(ValueError):
        build_consensus([])


def test_no_valid_results() -> None:
    consensus = build_consensus([_scored("openai", "", 0.0, status="error"), _scored("gemini", "   ", 0.0)])
    assert consensus.method == "none"
    assert consensus.confidence == 0.0
    assert consensus.agreement == 0.0
    assert consensus.winner is None


def test_single_source_is_damped() -> None:
    consensus = build_consensus([_scored("openai", "only answer", 0.5), _scored("gemini", "", 0.0, status="error")])
    assert consensus.method == "single"
    assert consensus.winner == "openai"
    assert consensus.agreement == 1.0
    assert consensus.confidence == pytest.approx((0.6 + 0.4 * 0.5) * SINGLE_SOURCE_DAMPING)

    pair = build_consensus([_scored("openai", "only answer", 0.5), _scored("gemini", "only answer", 0.5)])
    assert pair.agreement == 1.0
    assert pair.confidence > consensus.confidence


def test_hybrid_uses_majority_cluster_over_best_outlier() -> None:
    consensus = build_consensus(_agreeing_majority())
    assert consensus.method == "cluster"
    assert consensus.winner == "anthropic"
    assert consensus.agreement == pytest.approx(0.75)
    assert set(consensus.contributors) == {"openai", "anthropic", "gemini"}
    assert consensus.content == "the capital of france is paris"
    assert consensus.confidence == pytest.approx(0.6 * 0.75 + 0.4 * 0.7)
    assert "score_std" in consensus.metadata
    assert consensus.metadata["disagreement"]["cluster_count"] == 2.0


def test_hybrid_falls_back_to_weighted_without_majority() -> None:
    scored = [
        _scored("openai", "alpha beta gamma", 0.6),
        _scored("anthropic", "delta epsilon zeta", 0.9),
        _scored("gemini", "eta theta iota", 0.7),
    ]
    consensus = HybridConsensus().build(scored)
    assert consensus.method == "weighted"
    assert consensus.winner == "anthropic"
    assert consensus.agreement == pytest.approx(1 / 3)
    assert consensus.contributors == ("anthropic",)


def test_two_results_use_weighted() -> None:
    consensus = build_consensus([_scored("openai", "one two three", 0.4), _scored("gemini", "four five six", 0.9)])
    assert consensus.method == "weighted"
    assert consensus.winner == "gemini"
    assert consensus.agreement == pytest.approx(0.5)


def test_strategies_differ_on_outlier() -> None:
    scored = _agreeing_majority()
    assert ClusterConsensus().build(scored).winner == "anthropic"
    weighted = WeightedConsensus().build(scored)
    assert weighted.winner == "deepseek"
    assert weighted.agreement == pytest.approx(0.25)


def test_built_consensus_validates() -> None:
    scored = _agreeing_majority()
    validation = validate_consensus_quality(build_consensus(scored), scored)
    assert validation.valid
    assert validation.errors == []


def test_validation_flags_every_problem() -> None:
    scored = _agreeing_majority()
    broken = ConsensusResult(
        content="",
        confidence=1.4,
        agreement=0.6,
        winner="mistral",
        method="cluster",
        contributors=("mistral",),
    )
    validation = validate_consensus_quality(broken, scored)
    assert not validation.valid
    joined = " | ".join(validation.errors)
    assert "confidence" in joined
    assert "inconsistent" in joined
    assert "contributors not among results" in joined
    assert "winner 'mistral'" in joined
    assert "content is empty" in joined


def test_validation_requires_contributors() -> None:
    scored = [_scored("openai", "", 0.0, status="error")]
    validation = validate_consensus_quality(build_consensus(scored), scored)
    assert not validation.valid
    assert "no contributing results" in validation.errors
