"""Multi-provider cost estimation and model recommendation.

Token counts use the ~4 characters per token heuristic; prices are USD per
1M tokens.
"""

from __future__ import annotations

import math

from prompt_optimizer.text.tokens import estimate_tokens
from prompt_optimizer.types import (
    CostEstimate,
    ModelCost,
    OutputTarget,
    RiskLevel,
    TaskType,
    require_all_task_types,
)

PRICING_VERSION = "2026-02"

# provider -> model -> (input, output) per 1M tokens
PRICING: dict[str, dict[str, tuple[float, float]]] = {
    "anthropic": {
        "haiku": (0.80, 4.00),
        "sonnet": (3.00, 15.00),
        "opus": (15.00, 75.00),
    },
    "openai": {
        "gpt-4o-mini": (0.15, 0.60),
        "gpt-4o": (2.50, 10.00),
        "o1": (15.00, 60.00),
    },
    "google": {
        "gemini-2.0-flash": (0.10, 0.40),
        "gemini-2.0-pro": (1.25, 5.00),
    },
    "perplexity": {
        "sonar": (1.00, 1.00),
        "sonar-pro": (3.00, 15.00),
    },
}

# task type -> (output/input ratio, cap)
OUTPUT_RATIOS: dict[str, tuple[float, int]] = {
    "question": (1.0, 500),
    "review": (0.5, 2000),
    "debug": (0.7, 3000),
    "code_change": (1.2, 8000),
    "refactor": (1.2, 8000),
    "create": (2.0, 12000),
    "writing": (1.5, 4000),
    "communication": (1.5, 4000),
    "research": (2.0, 6000),
    "planning": (1.5, 5000),
    "analysis": (1.2, 4000),
    "data": (0.8, 3000),
    "other": (1.0, 4000),
}
require_all_task_types(OUTPUT_RATIOS, "OUTPUT_RATIOS")

_BALANCED_SONNET = "Balanced task: Sonnet offers the best quality-to-cost ratio."
_WRITING_SONNET = "Writing task: Sonnet produces high-quality prose at reasonable cost."
_HIGH_RISK = "High-risk task: maximum capability recommended for safety."


def _round_usd(value: float) -> float:
    return math.floor(value * 1_000_000 + 0.5) / 1_000_000


def estimate_output_tokens(input_tokens: int, task_type: TaskType) -> int:
    ratio, cap = OUTPUT_RATIOS[task_type]
    return min(math.ceil(input_tokens * ratio), cap)


def calculate_cost(
    provider: str, model: str, input_tokens: int, output_tokens: int
) -> ModelCost:
    in_rate, out_rate = PRICING[provider][model]
    input_cost = input_tokens / 1_000_000 * in_rate
    output_cost = output_tokens / 1_000_000 * out_rate
    return ModelCost(
        provider=provider,
        model=model,
        input_tokens=input_tokens,
        estimated_output_tokens=output_tokens,
        input_cost_usd=_round_usd(input_cost),
        output_cost_usd=_round_usd(output_cost),
        total_cost_usd=_round_usd(input_cost + output_cost),
    )


def all_costs(input_tokens: int, output_tokens: int) -> list[ModelCost]:
    """Every priced model, sorted by provider then model."""
    costs = [
        calculate_cost(provider, model, input_tokens, output_tokens)
        for provider, models in PRICING.items()
        for model in models
    ]
    return sorted(costs, key=lambda c: (c.provider, c.model))


def recommend_model(
    task_type: TaskType, risk_level: RiskLevel, input_tokens: int, target: OutputTarget
) -> tuple[str, str]:
    """Return ``(model, reason)``."""
    if risk_level == "high":
        return ("o1" if target == "openai" else "opus"), _HIGH_RISK

    large_build = task_type in ("create", "refactor") and input_tokens > 10_000

    if target == "openai":
        if task_type in ("question", "data"):
            return "gpt-4o-mini", "Lightweight task: GPT-4o Mini is fast and cost-effective."
        if large_build:
            return "o1", "Large-scope creation/refactoring: o1 provides best reasoning."
        return "gpt-4o", "Balanced task: GPT-4o offers the best quality-to-cost ratio."

    if target == "generic":
        if task_type in ("question", "data"):
            return "haiku", "Lightweight task: Haiku is fast and cost-effective."
        if task_type in ("writing", "communication"):
            return "sonnet", _WRITING_SONNET
        return "sonnet", _BALANCED_SONNET

    if task_type == "question":
        return "haiku", "Simple question: Haiku is fast and cost-effective."
    if task_type == "review" and input_tokens < 5000:
        return "haiku", "Code review with moderate context: Haiku handles this well."
    if task_type == "data":
        return "haiku", "Data transformation: Haiku handles structured operations well."
    if task_type in ("writing", "communication"):
        return "sonnet", _WRITING_SONNET
    if task_type in ("research", "analysis"):
        return "sonnet", "Research/analysis: Sonnet offers strong reasoning at reasonable cost."
    if task_type == "planning" and input_tokens > 5000:
        return "opus", "Complex planning task: Opus provides best strategic reasoning."
    if large_build:
        return "opus", "Large-scope creation/refactoring: Opus provides best architectural reasoning."
    return "sonnet", _BALANCED_SONNET


def estimate_cost(
    text: str,
    task_type: TaskType = "other",
    risk_level: RiskLevel = "medium",
    target: OutputTarget = "claude",
) -> CostEstimate:
    input_tokens = estimate_tokens(text)
    output_tokens = estimate_output_tokens(input_tokens, task_type)
    model, reason = recommend_model(task_type, risk_level, input_tokens, target)
    return CostEstimate(
        input_tokens=input_tokens,
        estimated_output_tokens=output_tokens,
        costs=all_costs(input_tokens, output_tokens),
        recommended_model=model,
        recommendation_reason=reason,
    )


def estimate_cost_for_text(text: str, target: OutputTarget = "claude") -> CostEstimate:
    """Flat estimate for arbitrary text with no task context."""
    input_tokens = estimate_tokens(text)
    output_tokens = min(math.ceil(input_tokens * 0.8), 4000)
    return CostEstimate(
        input_tokens=input_tokens,
        estimated_output_tokens=output_tokens,
        costs=all_costs(input_tokens, output_tokens),
        recommended_model="sonnet",
        recommendation_reason="Sonnet recommended as default balance of quality and cost.",
    )
