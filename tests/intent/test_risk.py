"""Tests for the quantitative risk score."""

import pytest
from prompt_optimizer.intent.risk import RiskWeight, compute_risk_score, derive_risk_level
from prompt_optimizer.types import RuleResult


def _hit(name: str, severity: str = "blocking") -> RuleResult:
    return RuleResult(name, severity, True, name)  # type: ignore[arg-type]


def test_dimension_rounded_once_after_summing() -> None:
    """Test that fractional contributions are summed before rounding."""
    risk = compute_risk_score([_hit("vague_objective"), _hit("generic_vague_ask")])

    # 22.5 + 19.5 = 42, not round(22.5) + round(19.5) = 43
    assert risk.dimensions.underspec == 42
    assert risk.score == 42
    assert risk.level == "medium"


def test_half_values_round_up() -> None:
    """Test half-up rounding on a single dimension."""
    risk = compute_risk_score([_hit("vague_objective")])
    assert risk.dimensions.underspec == 23


def test_vague_target_scope_reaches_high() -> None:
    """Test a combination that crosses the high threshold."""
    risk = compute_risk_score(
        [_hit("vague_objective"), _hit("missing_target"), _hit("scope_explosion")]
    )
    assert risk.dimensions.underspec == 41
    assert risk.dimensions.scope == 30
    assert risk.score == 71
    assert risk.level == "high"


def test_non_blocking_severity_skips_multiplier() -> None:
    """Test that the blocking multiplier only applies to blocking results."""
    risk = compute_risk_score([_hit("vague_objective", "non_blocking")])
    assert risk.score == 15


def test_unknown_and_untriggered_rules_contribute_nothing() -> None:
    """Test that only known triggered rules are weighted."""
    quiet = RuleResult("scope_explosion", "blocking", False, "quiet")
    risk = compute_risk_score([_hit("not_a_rule"), quiet])
    assert risk.score == 0
    assert risk.level == "low"


def test_score_is_capped_at_100() -> None:
    """Test the upper bound of the score."""
    names = [
        "vague_objective",
        "missing_target",
        "generic_vague_ask",
        "scope_explosion",
        "no_constraints_high_risk",
        "agent_underspec",
        "conflicting_constraints",
        "hallucination_risk",
    ]
    risk = compute_risk_score([_hit(n) for n in names])
    assert risk.score == 100


def test_extra_weights_cover_custom_rules() -> None:
    """Test that custom rule weights are honored."""
    risk = compute_risk_score(
        [_hit("custom_no_pii")], {"custom_no_pii": RiskWeight("constraint", 20, 1.0)}
    )
    assert risk.dimensions.constraint == 20
    assert risk.score == 20


@pytest.mark.parametrize(
    "score,level",
    [(0, "low"), (29, "low"), (30, "medium"), (59, "medium"), (60, "high"), (100, "high")],
)
def test_derive_risk_level_boundaries(score: int, level: str) -> None:
    """Test the level thresholds."""
    assert derive_risk_level(score) == level
