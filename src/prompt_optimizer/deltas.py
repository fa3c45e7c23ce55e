"""Pre-flight token savings for compression and tool pruning."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Sequence

from prompt_optimizer.types import CompressionResult, ToolScore

Optimization = Literal["compression", "tool_pruning"]


@dataclass(frozen=True)
class PreFlightDelta:
    optimization: Optimization
    tokens_saved_estimate: int
    percentage_reduction: float


@dataclass
class PreFlightDeltas:
    original_tokens: int
    estimated_total_savings: int
    deltas: list[PreFlightDelta] = field(default_factory=list)
    summary: str = ""


def _percent(saved: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return math.floor(saved / total * 1000 + 0.5) / 10


def calculate_compression_delta(result: CompressionResult) -> PreFlightDelta | None:
    saved = result.original_tokens - result.compressed_tokens
    if saved <= 0:
        return None
    return PreFlightDelta("compression", saved, _percent(saved, result.original_tokens))


def calculate_tool_pruning_delta(
    scores: Sequence[ToolScore], pruned: Sequence[str]
) -> PreFlightDelta | None:
    if not pruned:
        return None
    by_name = {s.name: s for s in scores}
    saved = sum(by_name[name].tokens_saved_estimate for name in pruned if name in by_name)
    if saved <= 0:
        return None
    total = sum(s.tokens_saved_estimate for s in scores)
    return PreFlightDelta("tool_pruning", saved, _percent(saved, total))


def calculate_preflight_deltas(
    compression: CompressionResult | None = None,
    scores: Sequence[ToolScore] | None = None,
    pruned: Sequence[str] | None = None,
) -> PreFlightDeltas:
    deltas: list[PreFlightDelta] = []
    original = 0
    if compression is not None:
        original = compression.original_tokens
        delta = calculate_compression_delta(compression)
        if delta:
            deltas.append(delta)
    if scores and pruned:
        delta = calculate_tool_pruning_delta(scores, pruned)
        if delta:
            deltas.append(delta)

    total = sum(d.tokens_saved_estimate for d in deltas)
    if not deltas:
        summary = "No optimizations would reduce token count"
    elif len(deltas) == 1:
        only = deltas[0]
        summary = (
            f"{only.optimization.replace('_', ' ')} would save ~{only.tokens_saved_estimate} "
            f"tokens ({only.percentage_reduction}% reduction)"
        )
    else:
        summary = f"Combined optimizations would save ~{total} tokens"
    return PreFlightDeltas(original, total, deltas, summary)


def format_delta(delta: PreFlightDelta) -> str:
    label = "Compression" if delta.optimization == "compression" else "Tool Pruning"
    return f"{label}: ~{delta.tokens_saved_estimate} tokens saved ({delta.percentage_reduction}%)"


def format_preflight_deltas(deltas: PreFlightDeltas) -> str:
    if not deltas.deltas:
        return deltas.summary
    lines = [deltas.summary, ""]
    lines.extend(f"  - {format_delta(d)}" for d in deltas.deltas)
    if deltas.estimated_total_savings > 0 and deltas.original_tokens > 0:
        pct = _percent(deltas.estimated_total_savings, deltas.original_tokens)
        lines.extend(["", f"Total estimated savings: ~{deltas.estimated_total_savings} tokens ({pct}%)"])
    return "\n".join(lines)
