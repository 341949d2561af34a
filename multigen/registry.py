"""Provider registry: static metadata plus mutable per-provider statistics.

Static configuration is loaded from YAML and normalized into
:class:`ProviderConfig` values. Runtime counters (calls, errors, tokens, cost)
live beside it and are guarded by a lock, so increments stay atomic whether
callers are asyncio tasks or threads.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from threading import Lock
from typing import Any, Iterable, Mapping

import yaml


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config" / "providers.yaml"

SPEED_CLASSES = ("very-fast", "fast", "medium", "slow", "variable")
KNOWN_CAPABILITIES = frozenset({"code", "reasoning", "vision", "long-context", "json", "local"})


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Static, read-only metadata for one provider."""

    provider_id: str
    model: str
    cost_per_1k: float
    max_tokens: int
    capabilities: frozenset[str] = frozenset()
    reliability: float = 0.5
    speed: str = "medium"
    rpm: int = 0
    credential_env: tuple[str, ...] = ()

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities


@dataclass(slots=True)
class ProviderStats:
    """Runtime counters for one provider."""

    calls: int = 0
    errors: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0


class ProviderRegistry:
    """Owned registry of provider configs and their runtime stats."""

    def __init__(self, configs: Iterable[ProviderConfig]) -> None:
        self._configs: dict[str, ProviderConfig] = {}
        for config in configs:
            if config.provider_id in self._configs:
                raise ValueError(f"Duplicate provider id '{config.provider_id}'")
            self._configs[config.provider_id] = config
        self._stats: dict[str, ProviderStats] = {pid: ProviderStats() for pid in self._configs}
        self._lock = Lock()

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)

    def get_config(self, provider_id: str) -> ProviderConfig | None:
        return self._configs.get(provider_id)

    def list_providers(self) -> set[str]:
        return set(self._configs)

    def ordered_providers(self) -> list[str]:
        """Provider ids in configuration order."""
        return list(self._configs)

    def _require(self, provider_id: str) -> ProviderStats:
        try:
            return self._stats[provider_id]
        except KeyError as exc:
            raise KeyError(f"Unknown provider '{provider_id}'") from exc

    def record_call(self, provider_id: str) -> None:
        with self._lock:
            self._require(provider_id).calls += 1

    def record_error(self, provider_id: str) -> None:
        with self._lock:
            self._require(provider_id).errors += 1

    def record_tokens(self, provider_id: str, tokens: int) -> None:
        if tokens < 0:
            raise ValueError(f"Token count must be non-negative, got {tokens}")
        with self._lock:
            self._require(provider_id).total_tokens += int(tokens)

    def record_cost(self, provider_id: str, amount: float) -> None:
        if amount < 0:
            raise ValueError(f"Cost amount must be non-negative, got {amount}")
        with self._lock:
            self._require(provider_id).total_cost_usd += float(amount)

    def cost_for_tokens(self, provider_id: str, tokens: int) -> float:
        """USD cost of ``tokens`` at the provider's per-1K price."""
        config = self._configs.get(provider_id)
        if config is None:
            return 0.0
        return (max(0, tokens) / 1000) * config.cost_per_1k

    def get_stats(self, provider_id: str) -> ProviderStats:
        """Return a copy of the provider's counters."""
        with self._lock:
            stats = self._require(provider_id)
            return ProviderStats(
                calls=stats.calls,
                errors=stats.errors,
                total_tokens=stats.total_tokens,
                total_cost_usd=stats.total_cost_usd,
            )

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = {pid: ProviderStats() for pid in self._configs}

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """All counters as plain dictionaries."""
        with self._lock:
            return {
                pid: {**asdict(stats), "total_cost_usd": round(stats.total_cost_usd, 8)}
                for pid, stats in self._stats.items()
            }


def _normalize_provider_entry(provider_id: str, entry: Mapping[str, Any]) -> ProviderConfig:
    missing = [key for key in ("model", "cost_per_1k", "reliability", "speed") if key not in entry]
    if missing:
        raise ValueError(f"Provider '{provider_id}' is missing keys: {missing}")

    reliability = float(entry["reliability"])
    if not 0.0 <= reliability <= 1.0:
        raise ValueError(f"Provider '{provider_id}' reliability must be within [0, 1], got {reliability}")

    speed = str(entry["speed"])
    if speed not in SPEED_CLASSES:
        raise ValueError(f"Provider '{provider_id}' has unknown speed class '{speed}'")

    cost = float(entry["cost_per_1k"])
    if cost < 0:
        raise ValueError(f"Provider '{provider_id}' cost_per_1k must be non-negative")

    capabilities = frozenset(str(c) for c in entry.get("capabilities", []) or [])
    unknown = capabilities - KNOWN_CAPABILITIES
    if unknown:
        raise ValueError(f"Provider '{provider_id}' declares unknown capabilities: {sorted(unknown)}")

    credential_env = entry.get("credential_env", []) or []
    if isinstance(credential_env, str):
        credential_env = [credential_env]

    return ProviderConfig(
        provider_id=provider_id,
        model=str(entry["model"]),
        cost_per_1k=cost,
        max_tokens=int(entry.get("max_tokens", 2048)),
        capabilities=capabilities,
        reliability=reliability,
        speed=speed,
        rpm=int(entry.get("rpm", 0)),
        credential_env=tuple(str(name) for name in credential_env),
    )


def load_provider_registry(
    *,
    config_path: Path | None = None,
    raw_config: Mapping[str, Any] | None = None,
) -> ProviderRegistry:
    """Load provider metadata from YAML (or an already-parsed mapping)."""
    if raw_config is None:
        path = config_path or DEFAULT_CONFIG_PATH
        raw_config = yaml.safe_load(Path(path).read_text(encoding="utf-8"))

    if not isinstance(raw_config, Mapping):
        raise ValueError("Provider config must be a mapping")

    providers = raw_config.get("providers")
    if not isinstance(providers, Mapping) or not providers:
        raise ValueError("Provider config requires a non-empty 'providers' mapping")

    return ProviderRegistry(
        _normalize_provider_entry(str(pid), entry or {}) for pid, entry in providers.items()
    )
