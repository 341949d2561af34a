"""Asynchronous multi-provider fan-out with scoring and consensus."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time
from typing import Any, Mapping
import uuid

from .adapters.base import BaseProviderAdapter
from .consensus import BaseConsensus, HybridConsensus, validate_consensus_quality
from .errors import AllProvidersFailed, NoValidProviders
from .evaluation.metrics import mean
from .evaluation.scoring import score_result, score_results
from .registry import ProviderRegistry, ProviderStats, load_provider_registry
from .resilience import ResilientAdapter, ResiliencePolicy
from .selector import ProviderSelector
from .settings import OrchestratorSettings
from .types import (
    FALLBACK_STRATEGIES,
    PRIORITIES,
    FallbackStrategy,
    GenerationInput,
    GenerationRequest,
    GenResult,
    OrchestrationMetrics,
    OrchestrationOutcome,
    Priority,
    ScoredResult,
)
from .utils.concurrency import ConcurrencyLimiter
from .utils.rate_limiter import AsyncRateLimiter


LOGGER = logging.getLogger(__name__)

RUN_TIMEOUT_ERROR = "cancelled: run timeout reached"


@dataclass(slots=True)
class OrchestrationOptions:
    """Per-run policy knobs."""

    priority: Priority = "quality"
    max_parallel: int | None = None
    require_consensus: bool = False
    fallback_strategy: FallbackStrategy = "conservative"
    run_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.priority not in PRIORITIES:
            raise ValueError(f"Unsupported priority '{self.priority}'")
        if self.fallback_strategy not in FALLBACK_STRATEGIES:
            raise ValueError(f"Unsupported fallback strategy '{self.fallback_strategy}'")
        if self.max_parallel is not None and self.max_parallel < 1:
            raise ValueError("max_parallel must be >= 1")
        if self.run_timeout_seconds is not None and self.run_timeout_seconds <= 0:
            raise ValueError("run_timeout_seconds must be positive")


@dataclass(slots=True)
class _UnitOutcome:
    provider: str
    result: GenResult | None = None
    error: BaseException | None = None


class Orchestrator:
    """Selects providers, calls them concurrently, then scores and reconciles the outputs.

    One :class:`ConcurrencyLimiter` and one :class:`AsyncRateLimiter` belong to
    each orchestrator and are shared by every run it executes.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: Mapping[str, BaseProviderAdapter],
        *,
        settings: OrchestratorSettings | None = None,
        policy: ResiliencePolicy | None = None,
        limiter: ConcurrencyLimiter | None = None,
        rate_limiter: AsyncRateLimiter | None = None,
        consensus: BaseConsensus | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or OrchestratorSettings()
        self.policy = policy or ResiliencePolicy.from_settings(self.settings)
        self.limiter = limiter or ConcurrencyLimiter(self.settings.max_parallel)
        self.rate_limiter = rate_limiter or AsyncRateLimiter()
        self.consensus = consensus or HybridConsensus()
        self.logger = logger or LOGGER
        self.selector = ProviderSelector(registry, max_parallel=self.settings.max_parallel)

        self.adapters: dict[str, BaseProviderAdapter] = {}
        self._resilient: dict[str, ResilientAdapter] = {}
        for provider_id, adapter in adapters.items():
            if provider_id not in registry:
                self.logger.warning("Ignoring adapter for unregistered provider '%s'", provider_id)
                continue
            self.adapters[provider_id] = adapter
            self._resilient[provider_id] = ResilientAdapter(
                adapter,
                self.policy,
                registry=registry,
                limiter=self.limiter,
                rate_limiter=self.rate_limiter,
                logger=self.logger,
            )

    @classmethod
    def from_settings(
        cls,
        settings: OrchestratorSettings | None = None,
        *,
        dry_run: bool = False,
        logger: logging.Logger | None = None,
    ) -> "Orchestrator":
        """Build registry and adapters from environment settings."""
        from .adapters.factory import build_adapters

        settings = settings or OrchestratorSettings.from_env()
        registry = load_provider_registry(config_path=settings.providers_config)
        adapters = build_adapters(settings, registry, dry_run=dry_run)
        return cls(registry, adapters, settings=settings, logger=logger)

    def available_providers(self) -> list[str]:
        """Registered providers whose adapter has credentials, in registry order."""
        return [
            pid
            for pid in self.registry.ordered_providers()
            if pid in self.adapters and self.adapters[pid].is_configured
        ]

    def get_provider_stats(self) -> dict[str, ProviderStats]:
        return {pid: self.registry.get_stats(pid) for pid in self.registry.ordered_providers()}

    def reset_provider_stats(self) -> None:
        self.registry.reset_stats()

    def _transition(self, metrics: OrchestrationMetrics, state: str) -> None:
        metrics.states.append(state)
        self.logger.debug("Run %s -> %s", metrics.run_id, state)

    async def run(
        self,
        request: GenerationRequest | Mapping[str, Any],
        options: OrchestrationOptions | None = None,
    ) -> OrchestrationOutcome:
        """Execute one fan-out run.

        Raises:
            NoValidProviders: no requested provider is registered and configured.
            AllProvidersFailed: every dispatched call exhausted its retries.
            ValueError: malformed request.
        """
        if not isinstance(request, GenerationRequest):
            request = GenerationRequest.from_dict(request)
        options = options or OrchestrationOptions()
        generation_input = request.to_input()

        started = time.perf_counter()
        metrics = OrchestrationMetrics(run_id=uuid.uuid4().hex[:12], providers_requested=list(request.models))

        self._transition(metrics, "selecting")
        try:
            selected = self.selector.select(
                request.models,
                task_type=generation_input.task_type,
                priority=options.priority,
                available=self.available_providers(),
                max_parallel=options.max_parallel,
            )
        except NoValidProviders:
            self._transition(metrics, "failed")
            self.logger.error("Run %s: no valid providers in %s", metrics.run_id, request.models)
            raise
        metrics.providers_used = list(selected)
        self.logger.info(
            "Run %s started: task=%s priority=%s providers=%s",
            metrics.run_id,
            generation_input.task_type,
            options.priority,
            selected,
        )

        loop = asyncio.get_running_loop()
        deadline = None if options.run_timeout_seconds is None else loop.time() + options.run_timeout_seconds

        self._transition(metrics, "dispatching")
        tasks = self._dispatch(selected, generation_input)
        self._transition(metrics, "collecting")
        results, errors, timed_out = await self._collect(tasks, deadline)

        failed = [pid for pid in selected if pid in errors]
        if failed and not timed_out:
            recruits = self._apply_fallback(failed, selected, generation_input, options, metrics)
            if recruits:
                more_results, more_errors, timed_out = await self._collect(
                    self._dispatch(recruits, generation_input), deadline
                )
                results.extend(more_results)
                errors.update(more_errors)
        if timed_out:
            metrics.warnings.append(
                f"Run timeout of {options.run_timeout_seconds:g}s reached; outstanding providers cancelled"
            )

        metrics.successful_providers = [r.provider for r in results]
        metrics.failed_providers = [pid for pid in metrics.providers_used if pid in errors]
        if not results:
            self._transition(metrics, "failed")
            metrics.total_time_ms = (time.perf_counter() - started) * 1000
            self.logger.error("Run %s: all providers failed %s", metrics.run_id, metrics.providers_used)
            raise AllProvidersFailed(metrics.providers_used, {pid: str(exc) for pid, exc in errors.items()})

        self._transition(metrics, "scoring")
        scored = score_results(results, generation_input.task_type, registry=self.registry)

        self._transition(metrics, "consensus")
        consensus = self.consensus.build(scored)
        validation = validate_consensus_quality(consensus, scored)
        if not validation.valid:
            if options.require_consensus:
                metrics.warnings.append("Consensus validation failed: " + "; ".join(validation.errors))
                self.logger.warning("Run %s: consensus validation failed: %s", metrics.run_id, validation.errors)
            else:
                self.logger.debug("Run %s: consensus validation issues: %s", metrics.run_id, validation.errors)

        metrics.total_tokens = sum(r.tokens_used for r in results)
        metrics.total_cost_usd = sum(s.cost_usd for s in scored)
        metrics.quality_score = mean(s.score for s in scored)
        metrics.consensus_confidence = consensus.confidence
        metrics.consensus_agreement = consensus.agreement
        metrics.total_time_ms = (time.perf_counter() - started) * 1000
        self._transition(metrics, "done")

        self.logger.info(
            "Run %s done in %.0fms: %d/%d succeeded | method=%s winner=%s confidence=%.2f agreement=%.2f | cost=$%.6f",
            metrics.run_id,
            metrics.total_time_ms,
            len(metrics.successful_providers),
            len(metrics.providers_used),
            consensus.method,
            consensus.winner,
            consensus.confidence,
            consensus.agreement,
            metrics.total_cost_usd,
        )
        return OrchestrationOutcome(results=scored, consensus=consensus, metrics=metrics)

    def _dispatch(
        self,
        providers: list[str],
        generation_input: GenerationInput,
    ) -> dict[asyncio.Task[_UnitOutcome], str]:
        return {asyncio.create_task(self._run_unit(pid, generation_input)): pid for pid in providers}

    async def _run_unit(self, provider_id: str, generation_input: GenerationInput) -> _UnitOutcome:
        self.registry.record_call(provider_id)
        try:
            result = await self._resilient[provider_id].generate(generation_input)
        except Exception as exc:
            self.logger.warning("Provider %s failed after retries: %s", provider_id, exc)
            return _UnitOutcome(provider=provider_id, error=exc)

        tokens = max(0, result.tokens_used)
        self.registry.record_tokens(provider_id, tokens)
        self.registry.record_cost(provider_id, self.registry.cost_for_tokens(provider_id, tokens))
        self.logger.info(
            "Provider %s completed: latency=%.0fms tokens=%d",
            provider_id,
            result.latency_ms,
            tokens,
        )
        return _UnitOutcome(provider=provider_id, result=result)

    async def _collect(
        self,
        tasks: dict[asyncio.Task[_UnitOutcome], str],
        deadline: float | None,
    ) -> tuple[list[GenResult], dict[str, BaseException], bool]:
        """Wait for units in completion order; cancel the rest at ``deadline``."""
        loop = asyncio.get_running_loop()
        order = {task: idx for idx, task in enumerate(tasks)}
        results: list[GenResult] = []
        errors: dict[str, BaseException] = {}
        pending = set(tasks)
        timed_out = False

        try:
            while pending:
                remaining = None if deadline is None else deadline - loop.time()
                if remaining is not None and remaining <= 0:
                    timed_out = True
                    break
                done, pending = await asyncio.wait(pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
                # Ties within one wakeup keep dispatch order.
                for task in sorted(done, key=order.__getitem__):
                    outcome = task.result()
                    if outcome.result is not None:
                        results.append(outcome.result)
                    elif outcome.error is not None:
                        errors[outcome.provider] = outcome.error
        except BaseException:
            # Run abandoned (e.g. cancelled by the caller): stop outstanding units.
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            raise

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in sorted(pending, key=order.__getitem__):
                errors[tasks[task]] = asyncio.TimeoutError(RUN_TIMEOUT_ERROR)
                self.logger.warning("Provider %s cancelled by run timeout", tasks[task])

        return results, errors, timed_out

    def _apply_fallback(
        self,
        failed: list[str],
        selected: list[str],
        generation_input: GenerationInput,
        options: OrchestrationOptions,
        metrics: OrchestrationMetrics,
    ) -> list[str]:
        if options.fallback_strategy == "none":
            return []
        if options.fallback_strategy == "conservative":
            self.logger.info(
                "Run %s: %d/%d providers failed (%s); conservative fallback recruits none",
                metrics.run_id,
                len(failed),
                len(selected),
                ", ".join(failed),
            )
            return []

        recruits = self.recruit_replacements(
            generation_input,
            options,
            exclude=set(selected),
            count=len(failed),
        )
        if recruits:
            metrics.recruited_providers.extend(recruits)
            metrics.providers_used.extend(recruits)
            self.logger.info("Run %s: aggressive fallback recruited %s for %s", metrics.run_id, recruits, failed)
        else:
            self.logger.info("Run %s: aggressive fallback found no replacement providers", metrics.run_id)
        return recruits

    def recruit_replacements(
        self,
        generation_input: GenerationInput,
        options: OrchestrationOptions,
        *,
        exclude: set[str],
        count: int,
    ) -> list[str]:
        """Pick up to ``count`` untried configured providers, best-ranked first.

        Override to change how replacements are chosen.
        """
        pool = [pid for pid in self.available_providers() if pid not in exclude]
        if not pool or count <= 0:
            return []
        return self.selector.select(
            pool,
            task_type=generation_input.task_type,
            priority=options.priority,
            max_parallel=count,
        )

    async def run_single(
        self,
        provider_id: str,
        generation_input: GenerationInput | str,
        task_type: str | None = None,
    ) -> ScoredResult:
        """Call one provider with the same resilience and bookkeeping as :meth:`run`.

        Raises:
            NoValidProviders: provider unknown or not configured.
            AllProvidersFailed: the call exhausted its retries.
        """
        if isinstance(generation_input, str):
            generation_input = GenerationInput(prompt=generation_input)
        if provider_id not in self.available_providers():
            raise NoValidProviders([provider_id], available=self.available_providers())

        outcome = await self._run_unit(provider_id, generation_input)
        if outcome.result is None:
            error = outcome.error
            raise AllProvidersFailed([provider_id], {provider_id: str(error)}) from error
        return score_result(outcome.result, task_type or generation_input.task_type, registry=self.registry)

    async def close(self) -> None:
        """Close all adapters."""
        await asyncio.gather(*[adapter.close() for adapter in self.adapters.values()])
