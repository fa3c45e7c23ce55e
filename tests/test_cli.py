"""Tests for the command line interface."""

from pathlib import Path

import orjson
from prompt_optimizer.cli import app
from typer.testing import CliRunner

runner = CliRunner()


def test_lint_fails_below_threshold() -> None:
    """Test exit code 1 for a failing prompt."""
    result = runner.invoke(app, ["lint", "make it better"])
    assert result.exit_code == 1


def test_lint_relaxed_passes() -> None:
    """Test that the relaxed threshold lets a weak prompt through."""
    result = runner.invoke(app, ["lint", "make it better", "--relaxed"])
    assert result.exit_code == 0


def test_lint_usage_errors() -> None:
    """Test exit code 2 for invalid flag combinations and missing input."""
    assert runner.invoke(app, ["lint", "x", "--strict", "--relaxed"]).exit_code == 2
    assert runner.invoke(app, ["lint", "x", "--threshold", "101"]).exit_code == 2
    assert runner.invoke(app, ["lint"], input="").exit_code == 2


def test_lint_reads_stdin_and_files(tmp_path: Path) -> None:
    """Test input from stdin and from glob patterns."""
    assert runner.invoke(app, ["lint", "--relaxed"], input="make it better").exit_code == 0

    (tmp_path / "a.txt").write_text("make it better", encoding="utf-8")
    (tmp_path / "b.txt").write_text("what is a closure?", encoding="utf-8")
    result = runner.invoke(app, ["lint", "--json", "--threshold", "0", "-f", str(tmp_path / "*.txt")])

    assert result.exit_code == 0
    reports = orjson.loads(result.stdout)
    assert [Path(r["source"]).name for r in reports] == ["a.txt", "b.txt"]


def test_optimize_command() -> None:
    """Test compiled output for a target."""
    result = runner.invoke(
        app, ["optimize", "Fix the null pointer crash in src/api/handler.ts", "--target", "generic"]
    )
    assert result.exit_code == 0
    assert "## Role" in result.stdout


def test_optimize_unknown_target() -> None:
    """Test target validation."""
    result = runner.invoke(app, ["optimize", "hello there", "--target", "gemini"])
    assert result.exit_code == 2


def test_compress_command(tmp_path: Path) -> None:
    """Test JSON output of the compress command."""
    line = "console.log('processing record from upstream queue');"
    path = tmp_path / "ctx.js"
    path.write_text("\n".join([line] * 4), encoding="utf-8")

    result = runner.invoke(app, ["compress", str(path), "--json"])
    assert result.exit_code == 0
    payload = orjson.loads(result.stdout)
    assert payload["heuristics_applied"] == ["duplicate_collapse"]

    assert runner.invoke(app, ["compress", str(path), "--mode", "turbo"]).exit_code == 2
    assert runner.invoke(app, ["compress", str(tmp_path / "missing.js")]).exit_code == 2


def test_compress_stub_collapse_flag(tmp_path: Path) -> None:
    """Test that comment-only stubs collapse only when the flag is given."""
    path = tmp_path / "stub.js"
    path.write_text("function todo() {\n  // not implemented yet, fill this in later on\n}", encoding="utf-8")

    collapsed = runner.invoke(app, ["compress", str(path), "--mode", "aggressive", "--stub-collapse", "--json"])
    assert collapsed.exit_code == 0
    assert orjson.loads(collapsed.stdout)["compressed"] == "function todo() { /* stub */ }"

    kept = runner.invoke(app, ["compress", str(path), "--mode", "aggressive", "--json"])
    assert "stub_collapse" not in orjson.loads(kept.stdout)["heuristics_applied"]


def _rule(rule_id: str) -> dict:
    return {
        "id": rule_id,
        "description": "Mentions personal data.",
        "pattern": "ssn",
        "applies_to": "all",
        "severity": "BLOCKING",
        "risk_dimension": "constraint",
        "risk_weight": 10,
    }


def test_validate_rules(tmp_path: Path) -> None:
    """Test the rules validator's report and exit codes."""
    path = tmp_path / "rules.json"
    path.write_bytes(orjson.dumps({"rules": [_rule("no_pii"), _rule("Bad-Id")]}))

    result = runner.invoke(app, ["validate-rules", "--path", str(path)])
    assert result.exit_code == 1
    assert "1 valid, 1 invalid" in result.stdout
    assert "rule_set_hash:" in result.stdout

    path.write_bytes(orjson.dumps({"rules": [_rule("no_pii")]}))
    assert runner.invoke(app, ["validate-rules", "--path", str(path)]).exit_code == 0


def test_validate_rules_missing_and_malformed(tmp_path: Path) -> None:
    """Test exit codes for a missing file and invalid JSON."""
    assert runner.invoke(app, ["validate-rules", "--path", str(tmp_path / "no.json")]).exit_code == 2

    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    assert runner.invoke(app, ["validate-rules", "--path", str(bad)]).exit_code == 1
