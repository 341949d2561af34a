"""Lexical disagreement diagnostics for multi-provider outputs.

Primary agreement structure is a greedy Jaccard clustering of outputs:
    cluster membership: jaccard(seed, other) >= threshold

Secondary diagnostics attached to consensus metadata:
- pairwise_similarity_lexical: mean pairwise Jaccard similarity
- disagreement_rate: 1 - pairwise_similarity_lexical
- cluster_entropy: normalized entropy over cluster sizes
- lexical_diversity: mean type-token ratio over outputs
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .metrics import entropy_from_probs, jaccard_similarity, lexical_diversity as text_lexical_diversity, mean


DEFAULT_CLUSTER_THRESHOLD = 0.3


def similarity_matrix(outputs: Sequence[str]) -> np.ndarray:
    """Symmetric matrix of pairwise Jaccard similarities (diagonal = 1)."""
    n = len(outputs)
    matrix = np.eye(n, dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            sim = jaccard_similarity(outputs[i], outputs[j])
            matrix[i, j] = sim
            matrix[j, i] = sim
    return matrix


def pairwise_similarity_lexical(outputs: Sequence[str]) -> float:
    """Average pairwise Jaccard similarity across outputs."""
    n = len(outputs)
    if n < 2:
        return 1.0
    matrix = similarity_matrix(outputs)
    upper = matrix[np.triu_indices(n, k=1)]
    return float(upper.mean())


def find_clusters(outputs: Sequence[str], threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> list[list[int]]:
    """Greedy single-pass clustering; returns index groups, largest first.

    Each unassigned output seeds a cluster and absorbs every later unassigned
    output whose similarity to the seed reaches ``threshold``. Equal-size
    clusters keep seed order.
    """
    if not outputs:
        return []
    matrix = similarity_matrix(outputs)
    used: set[int] = set()
    clusters: list[list[int]] = []
    for i in range(len(outputs)):
        if i in used:
            continue
        cluster = [i]
        used.add(i)
        for j in range(i + 1, len(outputs)):
            if j not in used and matrix[i, j] >= threshold:
                cluster.append(j)
                used.add(j)
        clusters.append(cluster)
    return sorted(clusters, key=len, reverse=True)


def cluster_entropy(outputs: Sequence[str], threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> float:
    """Entropy over cluster sizes; high values mean diffuse support."""
    if len(outputs) < 2:
        return 0.0
    clusters = find_clusters(outputs, threshold)
    total = sum(len(c) for c in clusters)
    return entropy_from_probs([len(c) / total for c in clusters])


def mean_lexical_diversity(outputs: Sequence[str]) -> float:
    """Average type-token ratio across outputs."""
    if not outputs:
        return 0.0
    return mean(text_lexical_diversity(out) for out in outputs)


def score_spread(scores: Sequence[float]) -> float:
    """Population standard deviation of scores (0 for fewer than two)."""
    if len(scores) < 2:
        return 0.0
    return float(np.std(np.asarray(scores, dtype=float)))


def consensus_score(scores: Sequence[float]) -> float:
    """Blend of score level and score agreement: 0.4*max(0, 1-2*std) + 0.6*mean."""
    if not scores:
        return 0.0
    spread = score_spread(scores)
    return float(0.4 * max(0.0, 1.0 - 2.0 * spread) + 0.6 * float(np.mean(scores)))


def disagreement_summary(outputs: Sequence[str], threshold: float = DEFAULT_CLUSTER_THRESHOLD) -> dict[str, float]:
    """Bundle of lexical disagreement metrics.

    Keys:
      - pairwise_similarity_lexical
      - disagreement_rate
      - cluster_entropy
      - cluster_count
      - lexical_diversity
    """
    similarity = pairwise_similarity_lexical(outputs)
    return {
        "pairwise_similarity_lexical": similarity,
        "disagreement_rate": float(max(0.0, min(1.0, 1.0 - similarity))),
        "cluster_entropy": cluster_entropy(outputs, threshold),
        "cluster_count": float(len(find_clusters(outputs, threshold))),
        "lexical_diversity": mean_lexical_diversity(outputs),
    }
