"""Tests for the deterministic ambiguity rules."""

from prompt_optimizer.intent.rules import (
    RULE_NAMES,
    extract_assumptions,
    extract_blocking_questions,
    get_elevated_risk,
    rule_applies,
    run_rules,
    sort_issues,
)
from prompt_optimizer.types import Assumption, Question, RuleResult


def _names(prompt: str, task_type: str | None = None, context: str | None = None) -> list[str]:
    return [r.rule_name for r in run_rules(prompt, context, task_type)]


def _blocking(name: str) -> RuleResult:
    return RuleResult(name, "blocking", True, name, question=Question(f"q_{name}", "?", "why"))


def _assumed(name: str) -> RuleResult:
    return RuleResult(name, "non_blocking", True, name, assumption=Assumption(f"a_{name}", name))


def test_registry_has_fourteen_unique_rules() -> None:
    """Test that every built-in rule is registered once."""
    assert len(RULE_NAMES) == 14
    assert len(set(RULE_NAMES)) == 14


def test_run_rules_returns_only_triggered() -> None:
    """Test that quiet rules are filtered out."""
    results = run_rules("Explain how Python generators work", task_type="question")
    assert all(r.triggered for r in results)


def test_vague_objective_triggers_without_target() -> None:
    """Test that a vague ask with no file or symbol is flagged."""
    results = run_rules("make it better", task_type="code_change")
    vague = [r for r in results if r.rule_name == "vague_objective"]
    assert len(vague) == 1
    assert vague[0].severity == "blocking"
    assert vague[0].question is not None
    assert vague[0].question.id == "q_vague_objective"


def test_file_reference_suppresses_vague_objective() -> None:
    """Test that naming a file removes the vague-objective flag."""
    assert "vague_objective" not in _names("improve src/utils/date.py", "code_change")


def test_missing_target_for_coding_verb() -> None:
    """Test that a coding verb with nothing to act on is flagged."""
    assert "missing_target" in _names("refactor everything", "refactor")
    assert "missing_target" not in _names("refactor the handler module", "refactor")


def test_scope_explosion() -> None:
    """Test unbounded versus scoped quantifiers."""
    assert "scope_explosion" in _names("refactor everything", "refactor")
    assert "scope_explosion" in _names("rename variables across the codebase", "refactor")
    assert "scope_explosion" not in _names("update every test file in src/api", "code_change")


def test_high_risk_domain_elevates_and_asks_for_constraints() -> None:
    """Test that sensitive areas elevate risk and require boundaries."""
    results = run_rules("Update the login handler in auth.py", task_type="code_change")
    by_name = {r.rule_name: r for r in results}

    assert by_name["high_risk_domain"].risk_elevation == "high"
    assert by_name["high_risk_domain"].severity == "non_blocking"
    assert "no_constraints_high_risk" in by_name

    constrained = _names("Only change the login handler in auth.py", "code_change")
    assert "high_risk_domain" in constrained
    assert "no_constraints_high_risk" not in constrained


def test_code_rules_skip_prose_tasks() -> None:
    """Test that code-only rules never fire for writing tasks."""
    names = _names("Write a release announcement for the production deploy", "writing")
    assert "high_risk_domain" not in names
    assert "missing_target" not in names


def test_prose_rules_only_for_prose_tasks() -> None:
    """Test that prose-only rules are filtered by task category."""
    assert "generic_vague_ask" not in _names("help me with this", "code_change")
    assert "generic_vague_ask" in _names("help me with this", "writing")
    assert "generic_vague_ask" in _names("help me with this")


def test_audience_and_purpose_rules() -> None:
    """Test that writing prompts without audience or purpose are flagged."""
    names = _names("Write a blog post", "writing")
    assert "missing_audience" in names
    assert "no_clear_ask" in names

    names = _names("Write a blog post for our customers to announce the launch", "writing")
    assert "missing_audience" not in names
    assert "no_clear_ask" not in names


def test_hallucination_risk_needs_grounding() -> None:
    """Test that fact requests without sources are flagged at medium elevation."""
    results = run_rules("Give exact statistics about EV adoption", task_type="research")
    flagged = [r for r in results if r.rule_name == "hallucination_risk"]
    assert flagged and flagged[0].risk_elevation == "medium"

    assert "hallucination_risk" not in _names(
        "Give exact statistics about EV adoption", "research", context="EV sales grew 40% in 2023."
    )
    assert "hallucination_risk" not in _names(
        "Give exact statistics according to the report", "research"
    )


def test_agent_underspec() -> None:
    """Test that autonomous work without limits is blocking."""
    assert "agent_underspec" in _names("Run autonomously and fix the failing build", "debug")
    assert "agent_underspec" not in _names(
        "Run autonomously and stop after 3 iterations", "debug"
    )


def test_conflicting_constraints() -> None:
    """Test scope and length contradictions."""
    assert "conflicting_constraints" in _names(
        "Only modify config.py but also update the README", "code_change"
    )
    assert "conflicting_constraints" in _names(
        "In under 100 words, give a comprehensive overview", "writing"
    )


def test_multi_task_and_budget_and_format() -> None:
    """Test the remaining all-category rules."""
    assert "multi_task_overload" in _names(
        "First fix the bug, then add tests, and also update docs", "code_change"
    )
    assert "token_budget_mismatch" in _names("Use haiku for a comprehensive audit", "review")
    assert "format_ambiguity" in _names("Return JSON", "other")
    assert "format_ambiguity" not in _names("Return JSON with fields name and age", "other")


def test_rule_applies_matrix() -> None:
    """Test category filtering for code, prose and neutral tasks."""
    assert rule_applies("code", None)
    assert rule_applies("prose", None)
    assert rule_applies("all", "writing")
    assert rule_applies("code", "debug")
    assert rule_applies("code", "question")
    assert not rule_applies("code", "planning")
    assert rule_applies("prose", "communication")
    assert not rule_applies("prose", "refactor")


def test_sort_issues_blocking_first_then_name() -> None:
    """Test the issue ordering used by reports."""
    ordered = sort_issues([_assumed("alpha"), _blocking("zeta"), _blocking("beta")])
    assert [r.rule_name for r in ordered] == ["beta", "zeta", "alpha"]


def test_extract_blocking_questions_caps_and_skips_answered() -> None:
    """Test that at most three unanswered questions are returned."""
    results = [_blocking(name) for name in ("d", "c", "b", "a")]

    questions = extract_blocking_questions(results)
    assert [q.id for q in questions] == ["q_a", "q_b", "q_c"]

    questions = extract_blocking_questions(results, answered_ids=["q_a", "q_c"])
    assert [q.id for q in questions] == ["q_b", "q_d"]


def test_extract_assumptions_caps_at_five() -> None:
    """Test the assumption cap."""
    results = [_assumed(f"rule_{i}") for i in range(7)]
    assert len(extract_assumptions(results)) == 5


def test_get_elevated_risk() -> None:
    """Test that the highest elevation wins."""
    medium = RuleResult("x", "non_blocking", True, "m", risk_elevation="medium")
    high = RuleResult("y", "non_blocking", True, "m", risk_elevation="high")

    assert get_elevated_risk([]) is None
    assert get_elevated_risk([medium]) == "medium"
    assert get_elevated_risk([medium, high]) == "high"
