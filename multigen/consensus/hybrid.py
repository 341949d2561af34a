"""Hybrid consensus: cluster vote when a majority agrees, score-weighted otherwise."""

from __future__ import annotations

from typing import Sequence

from .base import BaseConsensus, Selection
from .cluster import ClusterConsensus
from .weighted import WeightedConsensus
from ..evaluation.disagreement import DEFAULT_CLUSTER_THRESHOLD
from ..types import ConsensusResult, ScoredResult


MIN_RESULTS_FOR_CLUSTERING = 3
MAJORITY_FRACTION = 0.5


class HybridConsensus(BaseConsensus):
    name = "hybrid"

    def __init__(self, threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> None:
        super().__init__(threshold)
        self._cluster = ClusterConsensus(threshold)
        self._weighted = WeightedConsensus(threshold)

    def select(self, valid: list[ScoredResult], clusters: list[list[int]]) -> Selection:
        if len(valid) < MIN_RESULTS_FOR_CLUSTERING:
            return self._weighted.select(valid, clusters)
        if len(clusters[0]) >= len(valid) * MAJORITY_FRACTION:
            return self._cluster.select(valid, clusters)
        return self._weighted.select(valid, clusters)


def build_consensus(scored: Sequence[ScoredResult], threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> ConsensusResult:
    """Default consensus entry point (hybrid strategy)."""
    return HybridConsensus(threshold).build(scored)
