"""End-to-end flows: optimize (analyze, score, compile, checklist, rescore, cost) and lint."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from prompt_optimizer.compiler.render import compile_prompt
from prompt_optimizer.config import settings
from prompt_optimizer.estimator import estimate_cost
from prompt_optimizer.intent.analyzer import analyze
from prompt_optimizer.intent.custom_rules import CustomRule
from prompt_optimizer.intent.rules import sort_issues
from prompt_optimizer.logging import get_logger
from prompt_optimizer.scoring.checklist import generate_checklist
from prompt_optimizer.scoring.quality import score_compiled, score_quality
from prompt_optimizer.types import (
    Checklist,
    CompiledPrompt,
    CostEstimate,
    IntentSpec,
    OutputTarget,
    QualityScore,
    RuleResult,
)

logger = get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass
class OptimizeResult:
    intent: IntentSpec
    quality_before: QualityScore
    compiled: CompiledPrompt
    checklist: Checklist
    quality_after: QualityScore
    cost: CostEstimate

    @property
    def blocked(self) -> bool:
        return bool(self.intent.blocking_questions)


def optimize(
    prompt: str,
    context: str | None = None,
    target: OutputTarget | None = None,
    answered_question_ids: Iterable[str] | None = None,
    custom_rules: Sequence[CustomRule] | None = None,
) -> OptimizeResult:
    target = target or settings.DEFAULT_TARGET
    spec = analyze(prompt, context, answered_question_ids, custom_rules)
    before = score_quality(spec, context)
    compiled = compile_prompt(spec, context, target)
    checklist = generate_checklist(compiled.text)
    after = score_compiled(compiled.text)

    costed = compiled.text + CONTEXT_SEPARATOR + context if context else compiled.text
    cost = estimate_cost(costed, spec.task_type, spec.risk_level, target)

    logger.info(
        f"Optimized prompt: task_type={spec.task_type} risk={spec.risk_level} "
        f"quality {before.total} -> {after.total} target={target}"
    )
    return OptimizeResult(
        intent=spec,
        quality_before=before,
        compiled=compiled,
        checklist=checklist,
        quality_after=after,
        cost=cost,
    )


def to_dict(obj: Any) -> Any:
    """Plain JSON-ready data for any result record (dataclass, list or dict of them)."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (list, tuple)):
        return [to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {key: to_dict(value) for key, value in obj.items()}
    return obj


@dataclass
class LintReport:
    source: str
    score: int
    threshold: int
    passed: bool
    task_type: str
    risk_level: str
    issues: list[RuleResult]


def lint(
    prompt: str,
    source: str = "<prompt>",
    threshold: int | None = None,
    context: str | None = None,
    custom_rules: Sequence[CustomRule] | None = None,
) -> LintReport:
    """Score one prompt and collect its top triggered rules."""
    threshold = settings.LINT_THRESHOLD if threshold is None else threshold
    spec = analyze(prompt, context, custom_rules=custom_rules)
    quality = score_quality(spec, context)

    issues = sort_issues(spec.rule_results)[: settings.LINT_TOP_ISSUES]

    return LintReport(
        source=source,
        score=quality.total,
        threshold=threshold,
        passed=quality.total >= threshold,
        task_type=spec.task_type,
        risk_level=spec.risk_level,
        issues=issues,
    )
