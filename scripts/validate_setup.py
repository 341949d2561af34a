"""Pre-flight validation for environment, provider registry, and connectivity."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import argparse
import asyncio
import platform
from typing import Any

from dotenv import load_dotenv

from multigen.adapters.factory import supported_providers
from multigen.orchestrator import OrchestrationOptions, Orchestrator
from multigen.settings import OrchestratorSettings
from multigen.types import GenerationInput, GenerationRequest
from multigen.utils.logging_config import setup_logging


def parse_args() -> argparse.Namespace:
    """Parse CLI options."""
    parser = argparse.ArgumentParser(description="Validate setup and optional dry run")
    parser.add_argument("--dry-run", action="store_true", help="Run mocked connectivity and a tiny orchestration")
    parser.add_argument("--live", action="store_true", help="Ping every configured provider with a real call")
    parser.add_argument("--log-dir", type=Path, default=None)
    return parser.parse_args()


def check_python() -> str:
    """Return Python-version status message."""
    if sys.version_info < (3, 10):
        return "Warning: Python 3.10+ is required."
    return "Python version is compatible (3.10+)."


def check_env(orchestrator: Orchestrator) -> dict[str, dict[str, Any]]:
    """Report credential presence per registered provider."""
    status: dict[str, dict[str, Any]] = {}
    for provider_id in orchestrator.registry.ordered_providers():
        config = orchestrator.registry.get_config(provider_id)
        assert config is not None
        adapter = orchestrator.adapters.get(provider_id)
        status[provider_id] = {
            "credential_env": list(config.credential_env),
            "has_adapter": provider_id in supported_providers(),
            "configured": bool(adapter is not None and adapter.is_configured),
        }
    return status


async def validate_connectivity(orchestrator: Orchestrator) -> dict[str, Any]:
    """Send a tiny prompt to every configured provider, one at a time."""
    probe = GenerationInput(
        prompt="Return the single word OK.",
        system="You are a connectivity test assistant. Reply with a short confirmation.",
        temperature=0.0,
        max_tokens=24,
    )
    provider_status: dict[str, dict[str, Any]] = {}
    for provider_id in orchestrator.available_providers():
        try:
            scored = await orchestrator.run_single(provider_id, probe)
            provider_status[provider_id] = {
                "ok": scored.is_valid,
                "latency_ms": round(scored.result.latency_ms, 1),
                "tokens_used": scored.result.tokens_used,
            }
        except Exception as exc:
            provider_status[provider_id] = {"ok": False, "error": repr(exc)}
    return provider_status


async def run_smoke(orchestrator: Orchestrator) -> dict[str, Any]:
    """Run a tiny dry-run orchestration to validate wiring."""
    request = GenerationRequest(
        prompt="Summarize the benefits of unit testing in two sentences.",
        models=orchestrator.available_providers(),
    )
    outcome = await orchestrator.run(request, OrchestrationOptions(require_consensus=True))
    return {
        "providers_used": outcome.metrics.providers_used,
        "successful_providers": outcome.metrics.successful_providers,
        "consensus_method": outcome.consensus.method,
        "consensus_confidence": round(outcome.consensus.confidence, 3),
        "warnings": outcome.metrics.warnings,
    }


async def async_main(args: argparse.Namespace) -> dict[str, Any]:
    logger, _ = setup_logging(log_dir=args.log_dir, name="validate_setup")
    settings = OrchestratorSettings.from_env()
    orchestrator = Orchestrator.from_settings(settings, dry_run=args.dry_run, logger=logger)
    try:
        report: dict[str, Any] = {
            "settings": {
                "provider_timeout_ms": settings.provider_timeout_ms,
                "max_parallel": settings.max_parallel,
                "max_retries": settings.max_retries,
            },
            "environment": check_env(orchestrator),
            "available_providers": orchestrator.available_providers(),
        }
        if args.dry_run or args.live:
            report["connectivity"] = await validate_connectivity(orchestrator)
        if args.dry_run:
            report["smoke"] = await run_smoke(orchestrator)
        return report
    finally:
        await orchestrator.close()


def main() -> None:
    """CLI entry point."""
    load_dotenv()
    args = parse_args()
    report = asyncio.run(async_main(args))

    print("Validation complete")
    print(f"Platform: {platform.platform()}")
    print(check_python())
    print(f"Settings: {report['settings']}")
    for provider_id, status in report["environment"].items():
        print(f"  {provider_id:<12} configured={status['configured']} env={status['credential_env']}")
    print(f"Available providers: {report['available_providers']}")
    if "connectivity" in report:
        print(f"Connectivity: {report['connectivity']}")
    if "smoke" in report:
        print(f"Dry-run summary: {report['smoke']}")
    if not report["available_providers"]:
        raise SystemExit("No provider is configured. Set at least one API key or run Ollama locally.")


if __name__ == "__main__":
    main()
