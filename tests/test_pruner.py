"""Tests for tool relevance scoring and pruning."""

import pytest
from prompt_optimizer import pruner
from prompt_optimizer.pruner import (
    MENTIONED_SCORE,
    NEUTRAL_SCORE,
    prune_mode,
    prune_tools,
    rank_mode,
    score_tool,
)
from prompt_optimizer.types import IntentSpec, ToolDefinition, ToolScore


def _debug_spec() -> IntentSpec:
    return IntentSpec(
        user_intent="fix the crash in src/app.py",
        goal="fix the crash in src/app",
        task_type="debug",
        inputs_detected=["src/app.py"],
    )


def test_neutral_without_spec() -> None:
    """Test that tools score 50 with no intent."""
    score = score_tool(ToolDefinition("lint", "Run the linter over the project"))

    assert score.relevance_score == NEUTRAL_SCORE
    assert score.signals == []
    assert score.tokens_saved_estimate > 0


def test_mentioned_tool_scores_high() -> None:
    """Test that a tool named in the intent short-circuits scoring."""
    spec = IntentSpec(user_intent="use grep to find callers", goal="use grep", task_type="other")
    score = score_tool(ToolDefinition("grep", "Search file contents"), spec)

    assert score.relevance_score == MENTIONED_SCORE
    assert score.signals == ["Explicitly mentioned in intent"]


def test_required_tool_for_task() -> None:
    """Test required-tool, keyword and description signals."""
    score = score_tool(ToolDefinition("bash", "Run shell commands in a terminal"), _debug_spec())

    # 50 + 25 required + 5 keyword ("crash") + 5 description
    assert score.relevance_score == 85
    assert "Required for debug tasks" in score.signals


def test_negative_tool_for_task() -> None:
    """Test that deprioritized tools lose points."""
    spec = IntentSpec(user_intent="Announce the launch", goal="Announce the launch", task_type="writing")
    score = score_tool(ToolDefinition("debugger", "Step"), spec)

    # 50 - 20 negative - 5 brief description
    assert score.relevance_score == 25


def test_detected_inputs_raise_score() -> None:
    """Test the detected-input signal."""
    score = score_tool(ToolDefinition("viewer", "Opens src/app.py and friends"), _debug_spec())
    assert "Matches detected inputs" in score.signals


def test_rank_mode_orders_by_score() -> None:
    """Test descending order with stable ties."""
    tools = [
        ToolDefinition("alpha", "x"),
        ToolDefinition("bash", "Run shell commands in a terminal"),
        ToolDefinition("beta", "y"),
    ]
    result = rank_mode(tools, _debug_spec())

    assert result.mode == "rank"
    assert [t.name for t in result.tools] == ["bash", "alpha", "beta"]
    assert result.pruned_tools == []


def test_prune_skips_always_relevant_and_mentioned() -> None:
    """Test that protected tools are never pruned."""
    scores = [
        ToolScore("search", 10, [], 10),
        ToolScore("lint", 20, [], 30),
        ToolScore("deploy", 30, [], 40),
        ToolScore("format", 40, [], 50),
        ToolScore("docs", 60, [], 70),
    ]
    result = prune_tools(scores, "run deploy after checks", 2)

    assert result.pruned_tools == ["lint", "format"]
    assert result.pruned_count == 2
    assert result.tokens_saved_estimate == 80
    assert result.mode == "prune"


def test_negative_prune_count_raises() -> None:
    """Test prune count validation."""
    with pytest.raises(ValueError):
        prune_tools([], None, -1)


def test_prune_mode_uses_configured_count(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the default prune count from settings."""
    monkeypatch.setattr(pruner.settings, "PRUNE_COUNT", 1)
    tools = [ToolDefinition("alpha", "x"), ToolDefinition("beta", "y")]

    result = prune_mode(tools)
    assert result.pruned_tools == ["alpha"]
