from __future__ import annotations

import glob
import sys
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prompt_optimizer.compiler.compress import compress_context
from prompt_optimizer.config import settings
from prompt_optimizer.intent.custom_rules import (
    CustomRule,
    CustomRuleError,
    load_custom_rules,
    read_rules_file,
    rule_set_hash,
    validate_rule,
)
from prompt_optimizer.pipeline import LintReport, lint, optimize, to_dict
from prompt_optimizer.types import OUTPUT_TARGETS, CompressionConfig

app = typer.Typer(help="Analyze, score, compile and compress prompts.")
console = Console()

EXIT_OK = 0
EXIT_FAIL = 1
EXIT_USAGE = 2


def _echo_json(payload: object) -> None:
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def _fail_usage(message: str) -> None:
    console.print(f"[bold red]{escape(message)}[/bold red]")
    raise typer.Exit(EXIT_USAGE)


def _read_optional(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    if not path.exists():
        _fail_usage(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _load_rules() -> list[CustomRule]:
    try:
        return load_custom_rules()
    except CustomRuleError as exc:
        _fail_usage(f"Custom rules: {exc}")
    return []


def _collect_inputs(prompt: Optional[str], patterns: list[str]) -> list[tuple[str, str]]:
    inputs: list[tuple[str, str]] = []
    if prompt:
        inputs.append(("<argument>", prompt))
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True))
        if not matches:
            _fail_usage(f"No files match {pattern}")
        for match in matches:
            inputs.append((match, Path(match).read_text(encoding="utf-8")))
    if not inputs and not sys.stdin.isatty():
        piped = sys.stdin.read()
        if piped.strip():
            inputs.append(("<stdin>", piped))
    return inputs


def _print_lint(reports: list[LintReport]) -> None:
    table = Table(title="Prompt Lint")
    table.add_column("Source", style="cyan")
    table.add_column("Score", style="yellow")
    table.add_column("Result")
    table.add_column("Task")
    table.add_column("Risk")
    for report in reports:
        verdict = "[green]PASS[/green]" if report.passed else "[red]FAIL[/red]"
        table.add_row(
            report.source,
            f"{report.score}/{report.threshold}",
            verdict,
            report.task_type,
            report.risk_level,
        )
    console.print(table)

    for report in reports:
        if not report.issues:
            continue
        console.print(f"[bold]{report.source}[/bold]")
        for issue in report.issues:
            style = "red" if issue.severity == "blocking" else "yellow"
            console.print(f"  [{style}]{issue.severity}[/{style}] {issue.rule_name}: {escape(issue.message)}")


_file_option = typer.Option(
    None, "--file", "-f", help="Glob pattern of prompt files (repeatable)."
)
_strict_option = typer.Option(
    False, "--strict", help=f"Use the strict threshold ({settings.STRICT_THRESHOLD})."
)
_relaxed_option = typer.Option(
    False, "--relaxed", help=f"Use the relaxed threshold ({settings.RELAXED_THRESHOLD})."
)
_threshold_option = typer.Option(None, "--threshold", help="Explicit pass threshold (0-100).")
_json_option = typer.Option(False, "--json", help="Emit JSON instead of tables.")
_context_file_option = typer.Option(
    None, "--context-file", help="File with auxiliary context for the prompt."
)
_target_option = typer.Option(
    settings.DEFAULT_TARGET, "--target", help="Output target: claude | openai | generic."
)
_intent_option = typer.Option("", "--intent", help="Task description guiding relevance.")
_mode_option = typer.Option(
    settings.COMPRESSION_MODE, "--mode", help="Compression mode: standard | aggressive."
)
_budget_option = typer.Option(
    settings.COMPRESSION_TOKEN_BUDGET, "--budget", help="Token budget for aggressive mode."
)
_preserve_option = typer.Option(
    None, "--preserve", help="Regex of lines that must not change (repeatable)."
)
_stub_collapse_option = typer.Option(
    False, "--stub-collapse", help="Collapse comment-only function bodies (aggressive mode)."
)
_rules_path_option = typer.Option(
    None, "--path", help="Custom rules file (defaults to CUSTOM_RULES_PATH)."
)


@app.command("lint")
def lint_command(
    prompt: Optional[str] = typer.Argument(None, help="Prompt text; omit to use --file or stdin."),
    file: Optional[list[str]] = _file_option,
    strict: bool = _strict_option,
    relaxed: bool = _relaxed_option,
    threshold: Optional[int] = _threshold_option,
    json_output: bool = _json_option,
    context_file: Optional[Path] = _context_file_option,
):
    """Score prompts and fail when any falls below the threshold."""
    if strict and relaxed:
        _fail_usage("--strict and --relaxed are mutually exclusive")
    if threshold is not None and not 0 <= threshold <= 100:
        _fail_usage("--threshold must be between 0 and 100")

    if threshold is None:
        if strict:
            threshold = settings.STRICT_THRESHOLD
        elif relaxed:
            threshold = settings.RELAXED_THRESHOLD
        else:
            threshold = settings.LINT_THRESHOLD

    inputs = _collect_inputs(prompt, file or [])
    if not inputs:
        _fail_usage("No prompt given: pass text, --file, or pipe via stdin")

    context = _read_optional(context_file)
    rules = _load_rules()
    reports = [lint(text, source, threshold, context, rules) for source, text in inputs]

    if json_output:
        _echo_json(to_dict(reports))
    else:
        _print_lint(reports)

    if not all(r.passed for r in reports):
        raise typer.Exit(EXIT_FAIL)


@app.command("optimize")
def optimize_command(
    prompt: str = typer.Argument(..., help="Prompt text to optimize."),
    target: str = _target_option,
    context_file: Optional[Path] = _context_file_option,
    json_output: bool = _json_option,
):
    """Compile a prompt for a target and report before/after quality."""
    if target not in OUTPUT_TARGETS:
        _fail_usage(f"Unknown target: {target}. Choose from: {', '.join(OUTPUT_TARGETS)}")

    context = _read_optional(context_file)
    result = optimize(prompt, context, target, custom_rules=_load_rules())  # type: ignore[arg-type]

    if json_output:
        _echo_json(to_dict(result))
        return

    if result.blocked:
        console.print("[bold yellow]Blocking questions (answer before running):[/bold yellow]")
        for question in result.intent.blocking_questions:
            console.print(f"  - {question.question}")
    typer.echo(result.compiled.text)
    console.print(
        f"Quality: [yellow]{result.quality_before.total}[/yellow] -> "
        f"[green]{result.quality_after.total}[/green]"
    )
    console.print(f"Checklist: {result.checklist.summary}")
    console.print(
        f"Recommended model: [cyan]{result.cost.recommended_model}[/cyan] "
        f"({result.cost.recommendation_reason})"
    )


@app.command("compress")
def compress_command(
    file: Path = typer.Argument(..., help="Context file to compress."),
    intent: str = _intent_option,
    mode: str = _mode_option,
    budget: int = _budget_option,
    preserve: Optional[list[str]] = _preserve_option,
    stub_collapse: bool = _stub_collapse_option,
    json_output: bool = _json_option,
):
    """Compress a context file and print the result with its stats."""
    text = _read_optional(file) or ""
    config = CompressionConfig(
        mode=mode,  # type: ignore[arg-type]
        token_budget=budget,
        preserve_patterns=list(preserve or []),
        enable_stub_collapse=stub_collapse,
    )
    try:
        result = compress_context(text, intent, config)
    except ValueError as exc:
        _fail_usage(str(exc))
        return

    if json_output:
        _echo_json(to_dict(result))
        return

    typer.echo(result.compressed)
    table = Table(title="Compression")
    table.add_column("Metric", style="magenta")
    table.add_column("Value", style="yellow")
    table.add_row("Original tokens", str(result.original_tokens))
    table.add_row("Compressed tokens", str(result.compressed_tokens))
    table.add_row("Heuristics", ", ".join(result.heuristics_applied) or "none")
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")


@app.command("validate-rules")
def validate_rules_command(path: Optional[Path] = _rules_path_option):
    """Validate a custom rules file and print its rule-set hash."""
    rules_path = (path or Path(settings.CUSTOM_RULES_PATH)).expanduser()
    if not rules_path.exists():
        console.print(f"[bold red]Rules file not found: {rules_path}[/bold red]")
        raise typer.Exit(EXIT_USAGE)

    try:
        records = read_rules_file(rules_path)
    except CustomRuleError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(EXIT_FAIL)

    failures = 0
    valid: list[CustomRule] = []
    for idx, record in enumerate(records):
        rule_id = record.get("id", f"#{idx}") if isinstance(record, dict) else f"#{idx}"
        errors = validate_rule(record)
        if errors:
            failures += 1
            console.print(f"[red]x[/red] {escape(str(rule_id))}")
            for error in errors:
                console.print(f"    {escape(error)}")
        else:
            valid.append(CustomRule.model_validate(record))
            console.print(f"[green]ok[/green] {escape(str(rule_id))}")

    console.print(f"{len(valid)} valid, {failures} invalid")
    console.print(f"rule_set_hash: {rule_set_hash(valid)}")
    if failures:
        raise typer.Exit(EXIT_FAIL)


if __name__ == "__main__":
    app()
