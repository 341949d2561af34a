"""Largest-cluster consensus."""

from __future__ import annotations

from .base import BaseConsensus, Selection, best_by_score
from ..types import ScoredResult


class ClusterConsensus(BaseConsensus):
    """Pick the best-scoring output inside the largest lexical cluster."""

    name = "cluster"

    def select(self, valid: list[ScoredResult], clusters: list[list[int]]) -> Selection:
        largest = clusters[0]
        return Selection(winner=best_by_score(valid, largest), cluster=largest, method="cluster")
