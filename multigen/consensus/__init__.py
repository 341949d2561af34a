"""Consensus implementations."""

from .base import SINGLE_SOURCE_DAMPING, BaseConsensus, Selection
from .cluster import ClusterConsensus
from .hybrid import HybridConsensus, build_consensus
from .validation import validate_consensus_quality
from .weighted import WeightedConsensus

__all__ = [
    "SINGLE_SOURCE_DAMPING",
    "BaseConsensus",
    "Selection",
    "ClusterConsensus",
    "WeightedConsensus",
    "HybridConsensus",
    "build_consensus",
    "validate_consensus_quality",
]
