"""Tests for target-specific prompt compilation."""

import pytest
from prompt_optimizer.compiler import compile_prompt
from prompt_optimizer.compiler.render import REDACTED, build_sections, enrich_goal
from prompt_optimizer.types import Assumption, IntentSpec, Question


def _code_spec(**overrides: object) -> IntentSpec:
    fields = dict(
        user_intent="Fix the login bug in src/app.py",
        goal="Fix the login bug in src/app",
        task_type="code_change",
        definition_of_done=["Login succeeds with valid credentials"],
        inputs_detected=["src/app.py"],
        output_format="Code changes with brief explanation",
        risk_level="medium",
    )
    fields.update(overrides)
    return IntentSpec(**fields)  # type: ignore[arg-type]


def _writing_spec(**overrides: object) -> IntentSpec:
    fields = dict(
        user_intent="Announce the launch",
        goal="Announce the launch",
        task_type="writing",
        definition_of_done=["Message achieves its communication goal"],
        output_format="Polished prose matching the intended tone and format",
        audience="team (internal)",
        platform="LinkedIn",
    )
    fields.update(overrides)
    return IntentSpec(**fields)  # type: ignore[arg-type]


def test_claude_uses_xml_sections_in_order() -> None:
    """Test the tag layout of the claude target."""
    text = compile_prompt(_code_spec(), target="claude").text

    assert text.startswith(
        "<role>\nYou are an expert software engineer focused on making precise, "
        "minimal code changes.\n</role>"
    )
    tags = ["<role>", "<goal>", "<definition_of_done>", "<constraints>", "<workflow>",
            "<output_format>", "<uncertainty_policy>"]  # fmt: skip
    positions = [text.index(tag) for tag in tags]
    assert positions == sorted(positions)
    assert "Target file(s): src/app.py" in text
    assert "  - Login succeeds with valid credentials" in text
    assert "  1. Read and understand the relevant files and surrounding context" in text


def test_generic_uses_markdown_headers() -> None:
    """Test the markdown layout of the generic target."""
    text = compile_prompt(_writing_spec(), target="generic").text

    assert text.startswith("## Role\n")
    assert "## Audience\nteam (internal)" in text
    assert "## Platform Guidelines (LinkedIn)\n" in text


def test_openai_splits_system_and_user() -> None:
    """Test that instructions go to the system block and the task to the user block."""
    text = compile_prompt(_writing_spec(), target="openai").text
    user_at = text.index("[USER]")

    assert text.startswith("[SYSTEM]\nRole:\n")
    assert text.index("Constraints:") < user_at
    assert text.index("Platform Guidelines (LinkedIn):") < user_at
    assert text.index("Goal:") > user_at
    assert text.index("Output Format:") > user_at


def test_claude_platform_attribute() -> None:
    """Test that the platform is carried as a tag attribute."""
    text = compile_prompt(_writing_spec(), target="claude").text
    assert '<platform_guidelines platform="LinkedIn">' in text


def test_compilation_is_deterministic() -> None:
    """Test that the same spec compiles to identical text."""
    spec = _code_spec()
    for target in ("claude", "openai", "generic"):
        first = compile_prompt(spec, "some context", target)  # type: ignore[arg-type]
        second = compile_prompt(spec, "some context", target)  # type: ignore[arg-type]
        assert first.text == second.text
        assert first.changes == second.changes


@pytest.mark.parametrize("target", ["claude", "openai", "generic"])
def test_blocking_question_ids_never_leak(target: str) -> None:
    """Test that question ids are redacted from every target."""
    spec = _code_spec(
        goal="Resolve q_scope_explosion before editing",
        blocking_questions=[Question("q_scope_explosion", "Narrow it?", "Too broad")],
    )
    text = compile_prompt(spec, target=target).text  # type: ignore[arg-type]

    assert "q_scope_explosion" not in text
    assert REDACTED in text


def test_unknown_target_raises() -> None:
    """Test target validation."""
    with pytest.raises(ValueError):
        compile_prompt(_code_spec(), target="gemini")  # type: ignore[arg-type]


def test_high_risk_adds_safety_constraints() -> None:
    """Test that high-risk specs carry extra constraints."""
    compiled = compile_prompt(_code_spec(risk_level="high"))

    assert "HIGH RISK: double-check every change before applying" in compiled.text
    assert "Added: high-risk safety constraints" in compiled.changes


def test_context_only_when_present() -> None:
    """Test that blank context adds no section."""
    assert "<context>" not in compile_prompt(_code_spec(), "   ").text
    assert "<context>\nStack trace here\n</context>" in compile_prompt(
        _code_spec(), "Stack trace here"
    ).text


def test_assumptions_are_surfaced() -> None:
    """Test the assumptions section."""
    spec = _code_spec(assumptions=[Assumption("a_json", "Output is JSON", "medium", "low")])
    text = compile_prompt(spec, target="generic").text

    assert "## Assumptions\nThe following assumptions were made." in text
    assert "- Output is JSON [confidence: medium, impact: low]" in text


def test_enrich_goal_for_prose() -> None:
    """Test that prose goals pin audience and platform."""
    lines, changes = enrich_goal(_writing_spec())

    assert lines[0] == "Announce the launch"
    assert "Target audience: team (internal)." in lines
    assert "Platform: LinkedIn." in lines
    assert "Enriched goal: pinned target audience (team (internal))" in changes
    assert any(line.startswith("Include: the key message") for line in lines)


def test_sections_cover_change_log() -> None:
    """Test that every section build is recorded in the change log."""
    sections, changes = build_sections(_code_spec())

    assert [s.tag for s in sections][0] == "role"
    assert "Added: role definition (code_change)" in changes
    assert "Added: code_change workflow (4 steps)" in changes
