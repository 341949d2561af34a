"""Multi-provider generation orchestrator package."""

from .consensus import build_consensus, validate_consensus_quality
from .errors import (
    AllProvidersFailed,
    ConfigurationMissing,
    MalformedResponse,
    MultigenError,
    NoValidProviders,
    OrchestrationError,
    ProviderError,
    ProviderTimeout,
    UpstreamHTTPError,
)
from .evaluation.scoring import score_result, score_results
from .orchestrator import OrchestrationOptions, Orchestrator
from .registry import ProviderConfig, ProviderRegistry, ProviderStats, load_provider_registry
from .resilience import ResilientAdapter, ResiliencePolicy
from .selector import ProviderSelector
from .settings import OrchestratorSettings
from .types import (
    ConsensusResult,
    GenerationInput,
    GenerationRequest,
    GenResult,
    OrchestrationMetrics,
    OrchestrationOutcome,
    ScoredResult,
)

__all__ = [
    "Orchestrator",
    "OrchestrationOptions",
    "OrchestratorSettings",
    "ProviderSelector",
    "ResilientAdapter",
    "ResiliencePolicy",
    "ProviderConfig",
    "ProviderRegistry",
    "ProviderStats",
    "load_provider_registry",
    "score_result",
    "score_results",
    "build_consensus",
    "validate_consensus_quality",
    "GenerationInput",
    "GenerationRequest",
    "GenResult",
    "ScoredResult",
    "ConsensusResult",
    "OrchestrationMetrics",
    "OrchestrationOutcome",
    "MultigenError",
    "ProviderError",
    "ConfigurationMissing",
    "UpstreamHTTPError",
    "ProviderTimeout",
    "MalformedResponse",
    "OrchestrationError",
    "NoValidProviders",
    "AllProvidersFailed",
]
