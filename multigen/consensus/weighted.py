"""Score-weighted consensus."""

from __future__ import annotations

from .base import BaseConsensus, Selection, best_by_score
from ..types import ScoredResult


class WeightedConsensus(BaseConsensus):
    """Pick the best-scoring output overall.

    Agreement still counts only the outputs clustering with that winner, so a
    high-scoring outlier does not read as a unanimous verdict.
    """

    name = "weighted"

    def select(self, valid: list[ScoredResult], clusters: list[list[int]]) -> Selection:
        winner = best_by_score(valid, list(range(len(valid))))
        return Selection(winner=winner, cluster=self.cluster_of(clusters, winner), method="weighted")
