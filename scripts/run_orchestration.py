"""Fan one prompt out to several providers and print the consensus."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import argparse
import asyncio
import json

from dotenv import load_dotenv

from multigen.errors import OrchestrationError
from multigen.orchestrator import OrchestrationOptions, Orchestrator
from multigen.settings import OrchestratorSettings
from multigen.types import FALLBACK_STRATEGIES, PRIORITIES, TASK_TYPES, GenerationRequest
from multigen.utils.logging_config import setup_logging


def parse_args() -> argparse.Namespace:
    """Parse CLI args."""
    parser = argparse.ArgumentParser(description="Run a multi-provider generation")
    parser.add_argument("--prompt", required=True)
    parser.add_argument("--models", nargs="+", default=["openai", "anthropic", "gemini"])
    parser.add_argument("--context", default=None)
    parser.add_argument("--system", default=None)
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--max-tokens", type=int, default=None)
    parser.add_argument("--task-type", choices=TASK_TYPES, default="text")
    parser.add_argument("--priority", choices=PRIORITIES, default="quality")
    parser.add_argument("--fallback", choices=FALLBACK_STRATEGIES, default="conservative")
    parser.add_argument("--max-parallel", type=int, default=None)
    parser.add_argument("--run-timeout", type=float, default=None, help="Whole-run timeout in seconds")
    parser.add_argument("--require-consensus", action="store_true")
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--output", type=Path, default=None, help="Write the outcome JSON here")
    parser.add_argument("--log-dir", type=Path, default=None)
    return parser.parse_args()


async def async_main(args: argparse.Namespace) -> int:
    """Run one orchestration and emit the outcome."""
    logger, _ = setup_logging(log_dir=args.log_dir, name="run_orchestration")
    settings = OrchestratorSettings.from_env()
    orchestrator = Orchestrator.from_settings(settings, dry_run=args.dry_run, logger=logger)

    request = GenerationRequest(
        prompt=args.prompt,
        models=list(args.models),
        context=args.context,
        system_prompt=args.system,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        task_type=args.task_type,
    )
    options = OrchestrationOptions(
        priority=args.priority,
        max_parallel=args.max_parallel,
        require_consensus=args.require_consensus,
        fallback_strategy=args.fallback,
        run_timeout_seconds=args.run_timeout,
    )

    try:
        outcome = await orchestrator.run(request, options)
    except OrchestrationError as exc:
        logger.error("Orchestration failed: %s", exc)
        return 1
    finally:
        await orchestrator.close()

    payload = json.dumps(outcome.to_dict(), indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        logger.info("Outcome written to %s", args.output)
    else:
        print(payload)
    logger.info("Provider stats: %s", orchestrator.registry.snapshot())
    return 0


def main() -> None:
    """Program entry point."""
    load_dotenv()
    args = parse_args()
    raise SystemExit(asyncio.run(async_main(args)))


if __name__ == "__main__":
    main()
