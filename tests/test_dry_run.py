"""End-to-end dry-run test with offline adapters."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from multigen import Orchestrator, OrchestrationOptions, OrchestratorSettings
from multigen.utils.logging_config import setup_logging


def test_end_to_end_dry_run(tmp_path: Path) -> None:
    """Orchestrator built from settings should complete a dry run and log to file."""

    async def _run() -> None:
        logger, log_path = setup_logging(log_dir=tmp_path, name="test_dry_run")
        settings = OrchestratorSettings.from_env({"LLM_BACKOFF_BASE_MS": "0", "LLM_BACKOFF_MAX_MS": "0"})
        orchestrator = Orchestrator.from_settings(settings, dry_run=True, logger=logger)
        try:
            outcome = await orchestrator.run(
                {
                    "prompt": "Summarize the tradeoffs of optimistic locking.",
                    "models": ["openai", "anthropic", "gemini", "deepseek"],
                    "maxTokens": 200,
                },
                OrchestrationOptions(max_parallel=3),
            )
        finally:
            await orchestrator.close()

        assert len(outcome.results) == 3
        assert outcome.metrics.providers_used == ["openai", "anthropic", "gemini"]
        assert outcome.metrics.failed_providers == []
        assert outcome.metrics.states[-1] == "done"
        assert outcome.metrics.total_tokens > 0
        assert outcome.consensus.winner in outcome.metrics.successful_providers
        assert 0.0 <= outcome.consensus.confidence <= 1.0

        json.dumps(outcome.to_dict())
        for handler in logger.handlers:
            handler.flush()
        assert log_path is not None and log_path.exists()
        assert "Run " in log_path.read_text(encoding="utf-8")

    asyncio.run(_run())
