"""Core records exchanged between adapters, scorer, consensus and orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping


TaskType = Literal["code", "text", "vision"]
Priority = Literal["quality", "cost", "speed", "balanced"]
FallbackStrategy = Literal["none", "conservative", "aggressive"]

TASK_TYPES: tuple[str, ...] = ("code", "text", "vision")
PRIORITIES: tuple[str, ...] = ("quality", "cost", "speed", "balanced")
FALLBACK_STRATEGIES: tuple[str, ...] = ("none", "conservative", "aggressive")

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 2000


def _check_task_type(task_type: str) -> None:
    if task_type not in TASK_TYPES:
        raise ValueError(f"Unsupported task type '{task_type}'; expected one of {TASK_TYPES}")


@dataclass(frozen=True, slots=True)
class GenerationInput:
    """Provider-agnostic generation input, fixed for the whole run."""

    prompt: str
    system: str | None = None
    context: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    task_type: TaskType = "text"

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise ValueError("prompt must be a non-empty string")
        if not 0.0 <= float(self.temperature) <= 2.0:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")
        if int(self.max_tokens) <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")
        _check_task_type(self.task_type)

    @property
    def full_prompt(self) -> str:
        """Prompt with the optional context block prepended."""
        if self.context:
            return f"{self.context}\n\n{self.prompt}"
        return self.prompt


@dataclass(slots=True)
class GenerationRequest:
    """Caller-facing request: one prompt fanned out to several providers."""

    prompt: str
    models: list[str]
    context: str | None = None
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    task_type: TaskType = "text"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GenerationRequest":
        """Build from a wire payload using either camelCase or snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if payload.get(key) is not None:
                    return payload[key]
            return None

        models = pick("models", "providers") or []
        if isinstance(models, str):
            models = [models]
        temperature = pick("temperature")
        max_tokens = pick("maxTokens", "max_tokens")
        return cls(
            prompt=str(pick("prompt") or ""),
            models=[str(m) for m in models],
            context=pick("context"),
            system_prompt=pick("systemPrompt", "system_prompt", "system"),
            temperature=float(temperature) if temperature is not None else None,
            max_tokens=int(max_tokens) if max_tokens is not None else None,
            task_type=str(pick("taskType", "task_type") or "text"),  # type: ignore[arg-type]
        )

    def to_input(self) -> GenerationInput:
        return GenerationInput(
            prompt=self.prompt,
            system=self.system_prompt,
            context=self.context,
            temperature=DEFAULT_TEMPERATURE if self.temperature is None else self.temperature,
            max_tokens=DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens,
            task_type=self.task_type,
        )


@dataclass(frozen=True, slots=True)
class GenResult:
    """Outcome of one adapter invocation."""

    provider: str
    model: str
    status: Literal["ok", "error"]
    text: str = ""
    error: str | None = None
    latency_ms: float = 0.0
    tokens_used: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        *,
        provider: str,
        model: str,
        text: str,
        latency_ms: float,
        tokens_used: int,
        input_tokens: int = 0,
        output_tokens: int = 0,
        raw: dict[str, Any] | None = None,
    ) -> "GenResult":
        return cls(
            provider=provider,
            model=model,
            status="ok",
            text=text,
            latency_ms=latency_ms,
            tokens_used=tokens_used,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            raw=raw or {},
        )

    @classmethod
    def failed(cls, *, provider: str, model: str, error: str, latency_ms: float = 0.0) -> "GenResult":
        return cls(provider=provider, model=model, status="error", error=error, latency_ms=latency_ms)

    @property
    def is_valid(self) -> bool:
        """True when the call succeeded and produced non-blank text."""
        return self.status == "ok" and bool(self.text.strip())


@dataclass(frozen=True, slots=True)
class ScoredResult:
    """A GenResult with its quality score and cost figures."""

    result: GenResult
    score: float
    confidence: float = 0.0
    reasoning: str = ""
    cost_usd: float = 0.0
    cost_efficiency: float | None = None

    @property
    def provider(self) -> str:
        return self.result.provider

    @property
    def model(self) -> str:
        return self.result.model

    @property
    def text(self) -> str:
        return self.result.text

    @property
    def status(self) -> str:
        return self.result.status

    @property
    def is_valid(self) -> bool:
        return self.result.is_valid

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "status": self.status,
            "content": self.text,
            "error": self.result.error,
            "score": self.score,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "latency_ms": self.result.latency_ms,
            "tokens_used": self.result.tokens_used,
            "cost_usd": self.cost_usd,
            "cost_efficiency": self.cost_efficiency,
        }


@dataclass(frozen=True, slots=True)
class ConsensusResult:
    """Synthesized verdict for one orchestration run."""

    content: str
    confidence: float
    agreement: float
    winner: str | None
    method: str
    contributors: tuple[str, ...] = ()
    reasoning: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["contributors"] = list(self.contributors)
        return payload


@dataclass(slots=True)
class ConsensusValidation:
    """Outcome of the consensus sanity pass."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(slots=True)
class OrchestrationMetrics:
    """Aggregate record of one run; persistence is the caller's concern."""

    run_id: str
    total_time_ms: float = 0.0
    providers_requested: list[str] = field(default_factory=list)
    providers_used: list[str] = field(default_factory=list)
    successful_providers: list[str] = field(default_factory=list)
    failed_providers: list[str] = field(default_factory=list)
    recruited_providers: list[str] = field(default_factory=list)
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    consensus_confidence: float = 0.0
    consensus_agreement: float = 0.0
    quality_score: float = 0.0
    states: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class OrchestrationOutcome:
    """Results, consensus and metrics returned by a successful run."""

    results: list[ScoredResult]
    consensus: ConsensusResult
    metrics: OrchestrationMetrics

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "consensus": self.consensus.to_dict(),
            "metrics": self.metrics.to_dict(),
        }
