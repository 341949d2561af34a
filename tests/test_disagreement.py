"""Tests for disagreement metrics."""

from __future__ import annotations

import pytest

from multigen.evaluation.disagreement import (
    consensus_score,
    disagreement_summary,
    find_clusters,
    pairwise_similarity_lexical,
    score_spread,
)


def test_disagreement_summary_keys_and_ranges() -> None:
    outputs = [
        "The policy should prioritize safety and evidence.",
        "Safety must be prioritized, with empirical evidence guiding decisions.",
        "Ignore safety entirely and optimize only speed.",
    ]
    summary = disagreement_summary(outputs)

    expected_keys = {
        "pairwise_similarity_lexical",
        "disagreement_rate",
        "cluster_entropy",
        "lexical_diversity",
    }
    assert expected_keys.issubset(summary.keys())

    for key in expected_keys:
        assert 0.0 <= float(summary[key]) <= 1.0
    assert summary["cluster_count"] >= 1


def test_find_clusters_is_greedy_and_largest_first() -> None:
    outputs = ["red green", "blue yellow", "blue yellow purple", "blue yellow orange"]
    assert find_clusters(outputs) == [[1, 2, 3], [0]]
    assert find_clusters([]) == []


def test_identical_outputs_agree_fully() -> None:
    assert pairwise_similarity_lexical(["same words", "Same   WORDS"]) == 1.0
    assert pairwise_similarity_lexical(["only one"]) == 1.0


def test_score_spread_and_consensus_score() -> None:
    assert score_spread([0.5]) == 0.0
    assert score_spread([0.2, 0.6]) == pytest.approx(0.2)
    assert consensus_score([0.2, 0.6]) == pytest.approx(0.4 * 0.6 + 0.6 * 0.4)
    assert consensus_score([]) == 0.0
