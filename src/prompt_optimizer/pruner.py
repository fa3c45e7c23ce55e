"""Deterministic tool relevance scoring and pruning.

Tools are scored 0-100 against an analyzed intent; pruning marks the lowest
scorers as removable but never touches always-relevant tools or tools named
in the intent.
"""

from __future__ import annotations

import re
from dataclasses import asdict
from typing import Iterable, Mapping, Sequence

from prompt_optimizer.config import settings
from prompt_optimizer.logging import get_logger
from prompt_optimizer.text.tokens import estimate_definition_tokens
from prompt_optimizer.types import (
    IntentSpec,
    PruningResult,
    ToolDefinition,
    ToolScore,
    require_all_task_types,
)

logger = get_logger(__name__)

NEUTRAL_SCORE = 50
MENTIONED_SCORE = 95
SIGNALS_CAP = 10
BRIEF_DESCRIPTION_CHARS = 20

ALWAYS_RELEVANT_TOOLS: frozenset[str] = frozenset({"search", "read", "write", "edit", "bash"})

TASK_TOOL_KEYWORDS: dict[str, tuple[str, ...]] = {
    "code_change": ("refactor", "optimize", "improve", "performance"),
    "question": (),
    "review": ("check", "audit", "assess", "examine", "analyze"),
    "debug": ("bug", "error", "crash", "broken", "failing", "issue"),
    "create": ("build", "write", "implement", "add", "new"),
    "refactor": ("clean", "reorganize", "modernize", "restructure"),
    "writing": ("blog", "article", "email", "slack", "post", "document"),
    "research": ("investigate", "explore", "understand", "survey"),
    "planning": (),
    "analysis": (),
    "communication": (),
    "data": (),
    "other": (),
}
require_all_task_types(TASK_TOOL_KEYWORDS, "TASK_TOOL_KEYWORDS")

TASK_REQUIRED_TOOLS: dict[str, tuple[str, ...]] = {
    "code_change": ("read", "edit", "bash"),
    "question": (),
    "review": ("read",),
    "debug": ("bash", "read"),
    "create": ("write", "edit"),
    "refactor": (),
    "writing": ("write",),
    "research": (),
    "planning": (),
    "analysis": (),
    "communication": (),
    "data": (),
    "other": (),
}
require_all_task_types(TASK_REQUIRED_TOOLS, "TASK_REQUIRED_TOOLS")

TASK_NEGATIVE_TOOLS: dict[str, tuple[str, ...]] = {
    "code_change": (),
    "question": (),
    "review": (),
    "debug": (),
    "create": (),
    "refactor": (),
    "writing": ("bash", "debugger"),
    "research": ("edit", "bash"),
    "planning": (),
    "analysis": (),
    "communication": (),
    "data": (),
    "other": (),
}
require_all_task_types(TASK_NEGATIVE_TOOLS, "TASK_NEGATIVE_TOOLS")


def estimate_tool_tokens(tool: ToolDefinition) -> int:
    return estimate_definition_tokens(asdict(tool))


def count_keyword_matches(text: str, keywords: Iterable[str]) -> int:
    return sum(len(re.findall(rf"\b{re.escape(k)}\b", text, re.IGNORECASE)) for k in keywords)


def score_tool(
    tool: ToolDefinition,
    spec: IntentSpec | None = None,
    keyword_map: Mapping[str, Sequence[str]] | None = None,
) -> ToolScore:
    """Relevance of one tool to the analyzed intent; neutral 50 without a spec."""
    keyword_map = TASK_TOOL_KEYWORDS if keyword_map is None else keyword_map
    tokens = estimate_tool_tokens(tool)
    if spec is None:
        return ToolScore(tool.name, NEUTRAL_SCORE, [], tokens)

    name = tool.name.lower()
    desc = tool.description.lower()
    intent = spec.user_intent.lower()

    if name in intent:
        return ToolScore(tool.name, MENTIONED_SCORE, ["Explicitly mentioned in intent"], tokens)

    task = spec.task_type
    score = NEUTRAL_SCORE
    signals: list[str] = []

    if name in TASK_REQUIRED_TOOLS.get(task, ()):
        signals.append(f"Required for {task} tasks")
        score += 25
    if name in TASK_NEGATIVE_TOOLS.get(task, ()):
        signals.append(f"Deprioritized for {task} tasks")
        score -= 20

    matches = count_keyword_matches(f"{intent} {desc}", keyword_map.get(task, ()))
    if matches:
        signals.append(f"{matches} keyword match(es) for {task}")
        score += min(matches * 5, 15)

    if desc:
        if len(desc) < BRIEF_DESCRIPTION_CHARS:
            signals.append(f"Brief description ({len(desc)} chars)")
            score -= 5
        else:
            signals.append(f"Substantial description ({len(desc)} chars)")
            score += 5

    if any(item.lower() in desc for item in spec.inputs_detected):
        signals.append("Matches detected inputs")
        score += 10
    if spec.platform and spec.platform.lower() in desc:
        signals.append(f"Matches platform: {spec.platform}")
        score += 8
    if spec.tone and spec.tone.lower() in desc:
        signals.append(f"Matches tone: {spec.tone}")
        score += 5
    if spec.audience and spec.audience.lower() in desc:
        signals.append(f"Matches audience: {spec.audience}")
        score += 5
    if spec.constraints.scope and " ".join(spec.constraints.scope).lower() in desc:
        signals.append("Addresses scope constraints")
        score += 8

    return ToolScore(tool.name, max(0, min(100, score)), signals[:SIGNALS_CAP], tokens)


def score_all_tools(
    tools: Iterable[ToolDefinition],
    spec: IntentSpec | None = None,
    keyword_map: Mapping[str, Sequence[str]] | None = None,
) -> list[ToolScore]:
    return [score_tool(tool, spec, keyword_map) for tool in tools]


def rank_tools(scores: Iterable[ToolScore]) -> list[ToolScore]:
    """Highest relevance first; ties keep input order."""
    return sorted(scores, key=lambda s: s.relevance_score, reverse=True)


def prune_tools(
    scores: Sequence[ToolScore], intent_text: str | None, prune_count: int
) -> PruningResult:
    """Mark up to ``prune_count`` of the lowest scorers as pruned.

    Raises:
        ValueError: If ``prune_count`` is negative.
    """
    if prune_count < 0:
        raise ValueError(f"prune_count must be >= 0 (got {prune_count})")

    intent = (intent_text or "").lower()
    mentioned = {s.name.lower() for s in scores if intent and s.name.lower() in intent}

    pruned: list[str] = []
    saved = 0
    # sorted() is stable, so equal scores prune in input order
    for tool in sorted(scores, key=lambda s: s.relevance_score):
        if len(pruned) >= prune_count:
            break
        lowered = tool.name.lower()
        if lowered in ALWAYS_RELEVANT_TOOLS or lowered in mentioned:
            continue
        pruned.append(tool.name)
        saved += tool.tokens_saved_estimate

    logger.debug(f"Pruned {len(pruned)}/{len(scores)} tools, ~{saved} tokens saved")
    return PruningResult(
        tools=list(scores),
        pruned_count=len(pruned),
        pruned_tools=pruned,
        tokens_saved_estimate=saved,
        mode="prune",
    )


def rank_mode(tools: Iterable[ToolDefinition], spec: IntentSpec | None = None) -> PruningResult:
    return PruningResult(
        tools=rank_tools(score_all_tools(tools, spec)),
        pruned_count=0,
        pruned_tools=[],
        tokens_saved_estimate=0,
        mode="rank",
    )


def prune_mode(
    tools: Iterable[ToolDefinition],
    spec: IntentSpec | None = None,
    intent_text: str | None = None,
    prune_count: int | None = None,
) -> PruningResult:
    count = settings.PRUNE_COUNT if prune_count is None else prune_count
    return prune_tools(score_all_tools(tools, spec), intent_text, count)
