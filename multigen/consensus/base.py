"""Consensus mechanism abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from ..evaluation.disagreement import (
    DEFAULT_CLUSTER_THRESHOLD,
    consensus_score,
    disagreement_summary,
    find_clusters,
    score_spread,
)
from ..evaluation.metrics import mean
from ..types import ConsensusResult, ScoredResult


SINGLE_SOURCE_DAMPING = 0.6
AGREEMENT_WEIGHT = 0.6
SCORE_WEIGHT = 0.4


@dataclass(slots=True)
class Selection:
    """Winner index plus the cluster it belongs to, both into the valid list."""

    winner: int
    cluster: list[int]
    method: str


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def best_by_score(valid: Sequence[ScoredResult], indices: Sequence[int]) -> int:
    """Highest-scoring index; the earliest wins ties."""
    best = indices[0]
    for idx in indices[1:]:
        if valid[idx].score > valid[best].score:
            best = idx
    return best


class BaseConsensus(ABC):
    """Shared degenerate-case handling; subclasses pick the winner."""

    name: str

    def __init__(self, threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> None:
        self.threshold = threshold

    @abstractmethod
    def select(self, valid: list[ScoredResult], clusters: list[list[int]]) -> Selection:
        """Choose the winner among at least two valid results."""

    def build(self, scored: Sequence[ScoredResult]) -> ConsensusResult:
        """Combine scored results into one verdict.

        Raises:
            ValueError: ``scored`` is empty.
        """
        if not scored:
            raise ValueError("No results to build consensus from")

        valid = [item for item in scored if item.is_valid]
        if not valid:
            fallback = scored[0]
            return ConsensusResult(
                content=fallback.text,
                confidence=0.0,
                agreement=0.0,
                winner=None,
                method="none",
                reasoning="No valid results available",
                metadata={"n_results": len(scored), "n_valid": 0},
            )

        if len(valid) == 1:
            only = valid[0]
            confidence = _clamp(AGREEMENT_WEIGHT + SCORE_WEIGHT * only.score) * SINGLE_SOURCE_DAMPING
            return ConsensusResult(
                content=only.text,
                confidence=confidence,
                agreement=1.0,
                winner=only.provider,
                method="single",
                contributors=(only.provider,),
                reasoning=f"Single source: {only.provider} ({only.score * 100:.0f}%)",
                metadata=self._metadata(scored, valid, [0]),
            )

        clusters = find_clusters([item.text for item in valid], self.threshold)
        selection = self.select(valid, clusters)
        return self._assemble(scored, valid, selection)

    def cluster_of(self, clusters: list[list[int]], index: int) -> list[int]:
        for cluster in clusters:
            if index in cluster:
                return cluster
        return [index]

    def _assemble(
        self,
        scored: Sequence[ScoredResult],
        valid: list[ScoredResult],
        selection: Selection,
    ) -> ConsensusResult:
        winner = valid[selection.winner]
        members = [valid[idx] for idx in selection.cluster]
        agreement = len(selection.cluster) / len(valid)
        cluster_mean = mean(item.score for item in members)
        confidence = _clamp(AGREEMENT_WEIGHT * agreement + SCORE_WEIGHT * cluster_mean)

        contributors: list[str] = []
        for item in members:
            if item.provider not in contributors:
                contributors.append(item.provider)

        reasoning = "; ".join(
            [
                f"Consensus from {len(members)}/{len(valid)} models",
                f"Average score: {cluster_mean * 100:.0f}%",
                f"Agreement: {agreement * 100:.0f}%",
                f"Winner: {winner.provider} ({winner.score * 100:.0f}%)",
                f"Providers: {', '.join(contributors)}",
            ]
        )
        return ConsensusResult(
            content=winner.text,
            confidence=confidence,
            agreement=agreement,
            winner=winner.provider,
            method=selection.method,
            contributors=tuple(contributors),
            reasoning=reasoning,
            metadata=self._metadata(scored, valid, selection.cluster),
        )

    def _metadata(
        self,
        scored: Sequence[ScoredResult],
        valid: list[ScoredResult],
        cluster: list[int],
    ) -> dict[str, Any]:
        scores = [item.score for item in valid]
        return {
            "strategy": self.name,
            "n_results": len(scored),
            "n_valid": len(valid),
            "cluster_size": len(cluster),
            "score_std": score_spread(scores),
            "consensus_score": consensus_score(scores),
            "disagreement": disagreement_summary([item.text for item in valid], self.threshold),
        }
