"""Quantitative risk score over four weighted dimensions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from prompt_optimizer.types import RiskDimension, RiskDimensions, RiskLevel, RiskScore, RuleResult

RISK_ESCALATION_THRESHOLD = 40
MAX_RISK_SCORE = 100


@dataclass(frozen=True)
class RiskWeight:
    dimension: RiskDimension
    base: float
    blocking_multiplier: float = 1.0


RISK_WEIGHTS: dict[str, RiskWeight] = {
    "vague_objective": RiskWeight("underspec", 15, 1.5),
    "missing_target": RiskWeight("underspec", 12, 1.5),
    "generic_vague_ask": RiskWeight("underspec", 13, 1.5),
    "missing_audience": RiskWeight("underspec", 5, 1.0),
    "no_clear_ask": RiskWeight("underspec", 7, 1.0),
    "format_ambiguity": RiskWeight("hallucination", 5, 1.0),
    "hallucination_risk": RiskWeight("hallucination", 15, 1.0),
    "scope_explosion": RiskWeight("scope", 20, 1.5),
    "multi_task_overload": RiskWeight("scope", 8, 1.0),
    "token_budget_mismatch": RiskWeight("scope", 8, 1.0),
    "high_risk_domain": RiskWeight("constraint", 10, 1.0),
    "no_constraints_high_risk": RiskWeight("constraint", 15, 1.5),
    "agent_underspec": RiskWeight("constraint", 18, 1.5),
    "conflicting_constraints": RiskWeight("constraint", 12, 1.5),
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def derive_risk_level(score: int) -> RiskLevel:
    if score < 30:
        return "low"
    if score < 60:
        return "medium"
    return "high"


def compute_risk_score(
    results: Iterable[RuleResult],
    extra_weights: Mapping[str, RiskWeight] | None = None,
) -> RiskScore:
    """Aggregate triggered rules into a bounded score.

    Contributions are summed as floats per dimension and each dimension is
    rounded once, after summing: 22.5 + 19.5 gives 42, never 23 + 20.
    """
    weights: dict[str, RiskWeight] = dict(RISK_WEIGHTS)
    if extra_weights:
        weights.update(extra_weights)

    raw: dict[str, float] = {"underspec": 0.0, "hallucination": 0.0, "scope": 0.0, "constraint": 0.0}
    for result in results:
        if not result.triggered:
            continue
        weight = weights.get(result.rule_name)
        if weight is None:
            continue
        multiplier = weight.blocking_multiplier if result.severity == "blocking" else 1.0
        raw[weight.dimension] += weight.base * multiplier

    rounded = {name: max(0, _round_half_up(value)) for name, value in raw.items()}
    score = min(MAX_RISK_SCORE, max(0, sum(rounded.values())))
    return RiskScore(
        score=score,
        dimensions=RiskDimensions(**rounded),
        level=derive_risk_level(score),
    )
