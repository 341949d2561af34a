"""Estimate fan-out cost from registry pricing and a token estimate."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import argparse
from collections import defaultdict

from dotenv import load_dotenv

from multigen.adapters.base import estimate_tokens
from multigen.registry import load_provider_registry
from multigen.selector import ProviderSelector
from multigen.settings import OrchestratorSettings
from multigen.types import PRIORITIES, TASK_TYPES


DEFAULT_OUTPUT_TOKENS = 550


def parse_args() -> argparse.Namespace:
    """Parse CLI options."""
    parser = argparse.ArgumentParser(description="Estimate orchestration cost")
    prompt = parser.add_mutually_exclusive_group(required=True)
    prompt.add_argument("--prompt")
    prompt.add_argument("--prompt-file", type=Path)
    parser.add_argument("--models", nargs="+", default=None, help="Defaults to every registered provider")
    parser.add_argument("--task-type", choices=TASK_TYPES, default="text")
    parser.add_argument("--priority", choices=PRIORITIES, default="quality")
    parser.add_argument("--runs", type=int, default=1)
    parser.add_argument("--output-tokens", type=int, default=DEFAULT_OUTPUT_TOKENS)
    parser.add_argument("--max-parallel", type=int, default=None)
    parser.add_argument("--worst-case", action="store_true", help="Assume every attempt is retried to exhaustion")
    parser.add_argument("--config", type=Path, default=None, help="Provider registry YAML")
    return parser.parse_args()


def main() -> None:
    """Entry point."""
    load_dotenv()
    args = parse_args()
    settings = OrchestratorSettings.from_env()
    registry = load_provider_registry(config_path=args.config or settings.providers_config)

    prompt = args.prompt if args.prompt is not None else args.prompt_file.read_text(encoding="utf-8")
    requested = args.models or registry.ordered_providers()
    selector = ProviderSelector(registry, max_parallel=args.max_parallel or settings.max_parallel)
    selected = selector.select(requested, task_type=args.task_type, priority=args.priority)

    input_tokens = estimate_tokens(prompt)
    attempts = settings.max_retries + 1 if args.worst_case else 1

    by_provider: dict[str, float] = defaultdict(float)
    tokens_by_provider: dict[str, int] = defaultdict(int)
    for provider_id in selected:
        config = registry.get_config(provider_id)
        assert config is not None
        output_tokens = min(args.output_tokens, config.max_tokens)
        tokens = (input_tokens + output_tokens) * attempts * args.runs
        tokens_by_provider[provider_id] += tokens
        by_provider[provider_id] += registry.cost_for_tokens(provider_id, tokens)

    total_cost = sum(by_provider.values())
    skipped = [pid for pid in requested if pid not in selected]

    print(f"Task type: {args.task_type} | priority: {args.priority}")
    print(f"Selected providers: {', '.join(selected)}")
    if skipped:
        print(f"Not selected: {', '.join(skipped)}")
    print(f"Estimated prompt tokens: {input_tokens}")
    print(f"Runs: {args.runs} | attempts per call: {attempts}")
    print(f"Estimated API calls total: {len(selected) * attempts * args.runs}")
    print(f"Estimated total cost (USD): ${total_cost:,.4f}")

    print("\nCost by provider:")
    for provider_id, value in sorted(by_provider.items()):
        print(f"  - {provider_id}: ${value:,.4f} ({tokens_by_provider[provider_id]:,} tokens)")


if __name__ == "__main__":
    main()
