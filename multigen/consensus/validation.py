"""Sanity checks on a built consensus."""

from __future__ import annotations

from typing import Sequence

from ..types import ConsensusResult, ConsensusValidation, ScoredResult


AGREEMENT_TOLERANCE = 1e-6


def validate_consensus_quality(consensus: ConsensusResult, scored: Sequence[ScoredResult]) -> ConsensusValidation:
    """Collect every violated rule; ``valid`` is True only when none apply."""
    errors: list[str] = []

    if not 0.0 <= consensus.confidence <= 1.0:
        errors.append(f"confidence {consensus.confidence} outside [0, 1]")
    if not 0.0 <= consensus.agreement <= 1.0:
        errors.append(f"agreement {consensus.agreement} outside [0, 1]")

    if not consensus.contributors:
        errors.append("no contributing results")

    n_valid = sum(1 for item in scored if item.is_valid)
    if n_valid:
        supporters = consensus.agreement * n_valid
        nearest = round(supporters)
        if abs(supporters - nearest) > AGREEMENT_TOLERANCE or not 1 <= nearest <= n_valid:
            errors.append(f"agreement {consensus.agreement:.4f} inconsistent with {n_valid} valid result(s)")

    providers = {item.provider for item in scored}
    unknown = [pid for pid in consensus.contributors if pid not in providers]
    if unknown:
        errors.append(f"contributors not among results: {unknown}")
    if consensus.winner is not None:
        if consensus.winner not in providers:
            errors.append(f"winner '{consensus.winner}' not among results")
        if not consensus.content.strip():
            errors.append("winner selected but content is empty")

    return ConsensusValidation(valid=not errors, errors=errors)
