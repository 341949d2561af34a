"""Provider selection: which requested providers actually get called."""

from __future__ import annotations

from typing import Iterable, Sequence

from .errors import NoValidProviders
from .registry import ProviderConfig, ProviderRegistry
from .types import PRIORITIES, TASK_TYPES


TASK_CAPABILITY = {"code": "code", "vision": "vision"}
SPEED_BONUS = {"very-fast": 2.0, "fast": 1.0}
CAPABILITY_BONUS = 3.0
RELIABILITY_WEIGHT = 2.0
COST_WEIGHT = 2.0


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def candidate_score(config: ProviderConfig, task_type: str, priority: str) -> float:
    score = 0.0
    capability = TASK_CAPABILITY.get(task_type)
    if capability is not None and config.has_capability(capability):
        score += CAPABILITY_BONUS
    score += config.reliability * RELIABILITY_WEIGHT

    cost_term = (1.0 - config.cost_per_1k) * COST_WEIGHT
    speed_term = SPEED_BONUS.get(config.speed, 0.0)
    if priority == "cost":
        score += cost_term
    elif priority == "speed":
        score += speed_term
    elif priority == "balanced":
        score += 0.5 * cost_term + 0.5 * speed_term
    return score


class ProviderSelector:
    """Ranks requested providers by capability, reliability and priority mode."""

    def __init__(self, registry: ProviderRegistry, max_parallel: int = 3) -> None:
        if max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        self.registry = registry
        self.max_parallel = max_parallel

    def candidates(self, requested: Sequence[str], available: Iterable[str] | None = None) -> list[str]:
        """Requested ids that are registered (and available, when given), first-seen order."""
        allowed = set(available) if available is not None else None
        return [
            pid
            for pid in _dedupe(requested)
            if pid in self.registry and (allowed is None or pid in allowed)
        ]

    def score_candidates(
        self,
        requested: Sequence[str],
        task_type: str = "text",
        priority: str = "quality",
        available: Iterable[str] | None = None,
    ) -> dict[str, float]:
        if task_type not in TASK_TYPES:
            raise ValueError(f"Unsupported task type '{task_type}'")
        if priority not in PRIORITIES:
            raise ValueError(f"Unsupported priority '{priority}'")
        scores: dict[str, float] = {}
        for pid in self.candidates(requested, available):
            config = self.registry.get_config(pid)
            assert config is not None
            scores[pid] = candidate_score(config, task_type, priority)
        return scores

    def select(
        self,
        requested: Sequence[str],
        task_type: str = "text",
        priority: str = "quality",
        available: Iterable[str] | None = None,
        max_parallel: int | None = None,
    ) -> list[str]:
        """Return provider ids sorted by descending score, truncated to max parallelism.

        Raises:
            NoValidProviders: nothing requested is registered (and available).
        """
        pool = list(available) if available is not None else None
        scores = self.score_candidates(requested, task_type, priority, pool)
        if not scores:
            raise NoValidProviders(requested, available=pool if pool is not None else self.registry.list_providers())

        limit = max_parallel if max_parallel is not None else self.max_parallel
        if limit < 1:
            raise ValueError("max_parallel must be >= 1")
        # sorted() is stable: equal scores keep request order.
        ranked = sorted(scores, key=lambda pid: scores[pid], reverse=True)
        return ranked[: min(len(ranked), limit)]
