"""Heuristic quality scoring of raw provider results.

Scores live in [0, 1]. Errors and empty outputs always score 0; any non-empty
successful output starts from a positive base, so it strictly outscores them.
"""

from __future__ import annotations

import json
import re
from typing import Iterable

from ..registry import ProviderRegistry
from ..types import GenResult, ScoredResult


CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")
CODE_FENCE_RE = re.compile(r"```(\w+)?\n?")
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
HEADING_RE = re.compile(r"^#{1,6}\s+", re.MULTILINE)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
FUNCTION_RE = re.compile(r"function\s+\w+|const\s+\w+\s*=\s*\(|def\s+\w+")
CLASS_RE = re.compile(r"class\s+\w+")
IMPORT_RE = re.compile(r"import\s+.*from|^\s*from\s+\S+\s+import\s+", re.MULTILINE)

FAST_RESPONSE_MS = 10_000


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def extract_code_blocks(text: str) -> list[str]:
    return [CODE_FENCE_RE.sub("", block).strip() for block in CODE_BLOCK_RE.findall(text)]


def has_valid_json(text: str) -> bool:
    """True when the outermost ``{...}`` span parses as JSON."""
    match = JSON_OBJECT_RE.search(text)
    if match is None:
        return False
    try:
        json.loads(match.group(0))
    except ValueError:
        return False
    return True


def code_complexity(code: str) -> float:
    lines = len(code.split("\n"))
    functions = len(FUNCTION_RE.findall(code))
    classes = len(CLASS_RE.findall(code))
    imports = len(IMPORT_RE.findall(code))
    return min((lines / 50 + functions / 5 + classes / 2 + imports / 10) / 4, 1.0)


def code_quality(code: str) -> float:
    score = 0.5
    if "export" in code or "def " in code:
        score += 0.1
    if "type" in code or "interface" in code:
        score += 0.1
    if "async" in code or "await" in code:
        score += 0.05
    if ("try" in code and "catch" in code) or ("try:" in code and "except" in code):
        score += 0.1
    if "//" in code or "/*" in code or "# " in code:
        score += 0.05
    if any(len(line) > 120 for line in code.split("\n")):
        score -= 0.1
    return _clamp(score)


def _failed(result: GenResult) -> ScoredResult:
    return ScoredResult(
        result=result,
        score=0.0,
        confidence=0.0,
        reasoning=result.error or "No valid output",
    )


def _score_code(result: GenResult) -> tuple[float, float, list[str]]:
    text = result.text
    score = 0.3
    notes: list[str] = []

    blocks = extract_code_blocks(text)
    if blocks:
        joined = "\n".join(blocks)
        score += 0.2
        notes.append(f"Contains {len(blocks)} code block(s)")
        complexity = code_complexity(joined)
        score += complexity * 0.2
        notes.append(f"Complexity: {complexity * 100:.0f}%")
        quality = code_quality(joined)
        score += quality * 0.2
        notes.append(f"Code quality: {quality * 100:.0f}%")

    if has_valid_json(text):
        score += 0.1
        notes.append("Contains valid JSON")

    if len(text) > 100:
        score += min(len(text) / 2000, 0.2)
        notes.append(f"Length: {len(text)} chars")

    ceiling = 0.9 if result.latency_ms < FAST_RESPONSE_MS else 0.5
    confidence = min(result.tokens_used / 1000, ceiling)
    return score, confidence, notes


def _score_text(result: GenResult) -> tuple[float, float, list[str]]:
    text = result.text
    score = 0.5
    notes: list[str] = []

    word_count = len(text.split())
    if word_count > 50:
        score += min(word_count / 500, 0.3)
        notes.append(f"{word_count} words")

    sentences = len([s for s in SENTENCE_SPLIT_RE.split(text) if s])
    if sentences > 3:
        score += min(sentences / 20, 0.2)
        notes.append(f"{sentences} sentences")

    if has_valid_json(text):
        score += 0.15
        notes.append("Contains structured data")

    if HEADING_RE.search(text):
        score += 0.05
        notes.append("Well-structured with headings")

    confidence = min(result.tokens_used / 1000, 1.0)
    return score, confidence, notes


def score_result(
    result: GenResult,
    task_type: str = "text",
    *,
    registry: ProviderRegistry | None = None,
) -> ScoredResult:
    """Score one result; vision outputs are scored as text."""
    if not result.is_valid:
        return _failed(result)

    if task_type == "code":
        score, confidence, notes = _score_code(result)
    else:
        score, confidence, notes = _score_text(result)
    score = _clamp(score)

    cost_usd = 0.0
    efficiency: float | None = None
    if registry is not None:
        cost_usd = registry.cost_for_tokens(result.provider, result.tokens_used)
        if cost_usd > 0:
            efficiency = score / cost_usd

    return ScoredResult(
        result=result,
        score=score,
        confidence=_clamp(confidence),
        reasoning="; ".join(notes),
        cost_usd=cost_usd,
        cost_efficiency=efficiency,
    )


def score_results(
    results: Iterable[GenResult],
    task_type: str = "text",
    *,
    registry: ProviderRegistry | None = None,
) -> list[ScoredResult]:
    """Score each result independently; order is preserved."""
    return [score_result(result, task_type, registry=registry) for result in results]
