"""Environment-driven orchestrator settings.

Read once at startup; nothing here is hot-reloaded. Scripts call
``load_dotenv()`` before :meth:`OrchestratorSettings.from_env` so a local
``.env`` file can supply credentials.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Mapping


DEFAULT_PROVIDER_TIMEOUT_MS = 30_000
DEFAULT_MAX_PARALLEL = 3
DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_BASE_MS = 500
DEFAULT_BACKOFF_MAX_MS = 8_000
DEFAULT_OLLAMA_HOST = "http://localhost:11434"


def _read_int(env: Mapping[str, str], name: str, default: int, *, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(slots=True)
class OrchestratorSettings:
    """Timeouts, limits and credentials consumed by the orchestrator."""

    provider_timeout_ms: int = DEFAULT_PROVIDER_TIMEOUT_MS
    max_parallel: int = DEFAULT_MAX_PARALLEL
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base_ms: int = DEFAULT_BACKOFF_BASE_MS
    backoff_max_ms: int = DEFAULT_BACKOFF_MAX_MS
    providers_config: Path | None = None
    ollama_host: str = DEFAULT_OLLAMA_HOST
    env: dict[str, str] = field(default_factory=dict, repr=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OrchestratorSettings":
        env = dict(os.environ if environ is None else environ)
        config_path = env.get("MULTIGEN_PROVIDERS_CONFIG")
        return cls(
            provider_timeout_ms=_read_int(env, "PROVIDER_TIMEOUT_MS", DEFAULT_PROVIDER_TIMEOUT_MS, minimum=1),
            max_parallel=_read_int(env, "LLM_MAX_PARALLEL", DEFAULT_MAX_PARALLEL, minimum=1),
            max_retries=_read_int(env, "LLM_MAX_RETRIES", DEFAULT_MAX_RETRIES, minimum=0),
            backoff_base_ms=_read_int(env, "LLM_BACKOFF_BASE_MS", DEFAULT_BACKOFF_BASE_MS, minimum=0),
            backoff_max_ms=_read_int(env, "LLM_BACKOFF_MAX_MS", DEFAULT_BACKOFF_MAX_MS, minimum=0),
            providers_config=Path(config_path) if config_path else None,
            ollama_host=env.get("OLLAMA_HOST") or DEFAULT_OLLAMA_HOST,
            env=env,
        )

    @property
    def provider_timeout_seconds(self) -> float:
        return self.provider_timeout_ms / 1000

    def credential(self, names: tuple[str, ...] | list[str]) -> str | None:
        """First non-empty value among the given environment variable names."""
        for name in names:
            value = self.env.get(name)
            if value:
                return value
        return None

    def model_override(self, provider_id: str) -> str | None:
        """``<PROVIDER>_MODEL`` override, e.g. ``OPENAI_MODEL``."""
        return self.env.get(f"{provider_id.upper()}_MODEL") or None
