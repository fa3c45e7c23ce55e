"""Tests for quality scoring."""

import pytest
from prompt_optimizer.compiler import compile_prompt
from prompt_optimizer.intent import analyze
from prompt_optimizer.scoring import score_compiled, score_quality
from prompt_optimizer.types import IntentSpec


def _dims(score) -> dict[str, int]:
    return {d.name: d.score for d in score.dimensions}


def _code_spec() -> IntentSpec:
    return IntentSpec(
        user_intent="Fix the login bug in src/app.py",
        goal="Fix the login bug in src/app",
        task_type="code_change",
        definition_of_done=["Login succeeds with valid credentials"],
        inputs_detected=["src/app.py"],
        output_format="Code changes with brief explanation",
        risk_level="medium",
    )


def test_vague_prompt_scores_low() -> None:
    """Test the breakdown for a terse vague prompt."""
    score = score_quality(analyze("make it better"))

    assert _dims(score) == {
        "Clarity": 10,
        "Specificity": 5,
        "Completeness": 5,
        "Constraints": 5,
        "Efficiency": 18,
    }
    assert score.total == 43
    assert score.max == 100


def test_specific_prompt_scores_higher() -> None:
    """Test that a targeted prompt beats a vague one."""
    vague = score_quality(analyze("make it better"))
    specific = score_quality(analyze("Fix the null pointer crash in src/api/handler.ts"))
    assert specific.total > vague.total


def test_dimensions_are_bounded() -> None:
    """Test every dimension stays within 0-20 and the total within 0-100."""
    prompts = [
        "make it better somehow, whatever, stuff etc. fix it",
        "Write a short, friendly Slack update for my team. Include the launch date.",
        "x",
    ]
    for prompt in prompts:
        score = score_quality(analyze(prompt))
        assert all(0 <= d.score <= d.max == 20 for d in score.dimensions)
        assert 0 <= score.total <= 100


def test_large_context_costs_efficiency() -> None:
    """Test the efficiency penalty for large inputs."""
    score = score_quality(analyze("make it better"), context="x" * 30000)
    assert _dims(score)["Efficiency"] == 14


def test_repetition_costs_efficiency() -> None:
    """Test the repetition penalty."""
    context = " ".join(["The service restarts every night at midnight."] * 4)
    score = score_quality(analyze("make it better"), context=context)
    assert _dims(score)["Efficiency"] == 14


@pytest.mark.parametrize("target", ["claude", "openai", "generic"])
def test_compiled_score_is_target_independent(target: str) -> None:
    """Test structural scoring recognizes every output format."""
    text = compile_prompt(_code_spec(), target=target).text  # type: ignore[arg-type]
    score = score_compiled(text)

    assert _dims(score) == {
        "Clarity": 19,
        "Specificity": 13,
        "Completeness": 20,
        "Constraints": 18,
        "Efficiency": 18,
    }
    assert score.total == 88


def test_compiled_score_of_plain_text() -> None:
    """Test the floor of the structural score."""
    assert score_compiled("just some words").total == 50
