"""Scoring and disagreement diagnostics."""

from .disagreement import (
    consensus_score,
    disagreement_summary,
    find_clusters,
    pairwise_similarity_lexical,
    score_spread,
)
from .metrics import jaccard_similarity, mean, normalize_text
from .scoring import score_result, score_results

__all__ = [
    "consensus_score",
    "disagreement_summary",
    "find_clusters",
    "pairwise_similarity_lexical",
    "score_spread",
    "jaccard_similarity",
    "mean",
    "normalize_text",
    "score_result",
    "score_results",
]
