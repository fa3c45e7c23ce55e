"""Deterministic ambiguity rules.

Each rule is a plain record: a name, the task category it applies to and a
pure ``check(prompt, context)`` function. Nothing here calls a model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable

from prompt_optimizer.types import (
    AppliesTo,
    Assumption,
    Question,
    RiskLevel,
    RuleResult,
    is_code_task,
    is_prose_task,
)

_I = re.IGNORECASE

_VAGUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmake\s+it\s+(better|work|good|nice|faster|cleaner)\b", _I),
    re.compile(
        r"\b(improve|enhance|optimize|update|change|fix|tweak)\b"
        r"(?!.*\b(in|at|for|the file|function|class|module|component)\b)",
        _I,
    ),
    re.compile(r"\bdo\s+something\s+(about|with)\b", _I),
    re.compile(r"\bhandle\s+this\b", _I),
)

_FILE_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b[\w\-./]+\.(ts|js|tsx|jsx|py|go|rs|java|rb|css|html|json|yaml|yml|md|sql|sh)\b"
    ),
    re.compile(r"\b(src|lib|app|pages|components|utils|test|spec)/"),
    re.compile(r"\./"),
)

_CODE_REF_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(function|class|method|interface|type|enum|const|let|var|def|fn)\s+\w+", _I),
    re.compile(r"\b\w+\(\)"),
    re.compile(r"\b\w+\.\w+\("),
)

_SCOPED_NOUNS = r"files?|functions?|class(?:es)?|tests?|modules?|components?|endpoints?|routes?"
_SCOPE_EXPLOSION: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\b(everything|entire|whole)\b(?![\w\s]{{0,25}}\b({_SCOPED_NOUNS})\b)", _I),
    re.compile(rf"\b(all|every)\b(?![\w\s]{{0,25}}\b({_SCOPED_NOUNS}|the)\b)", _I),
    re.compile(r"\bacross\s+the\s+(codebase|project|repo)\b", _I),
)

HIGH_RISK_FAMILIES: dict[str, re.Pattern[str]] = {
    "auth": re.compile(
        r"\b(auth|authentication|authorization|login|password|credential|secret|token|api[_\s]?key)\b",
        _I,
    ),
    "payment": re.compile(
        r"\b(payment|billing|invoice|credit\s*card|stripe|transaction|checkout)\b", _I
    ),
    "database": re.compile(
        r"\b(database|migration|schema|drop|truncate|delete\s+from|alter\s+table)\b", _I
    ),
    "deploy": re.compile(r"\b(production|prod|deploy|release|publish|live)\b", _I),
    "delete": re.compile(r"\b(delete|remove|destroy|purge|wipe|reset)\b", _I),
    "security": re.compile(
        r"\b(security|encryption|certificate|ssl|tls|cors|csrf|xss|injection)\b", _I
    ),
}

_FORMAT_REFS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(json|yaml|xml|csv|graphql)\b", _I),
    re.compile(r"\breturn\s+(a|the)?\s*(json|object|array|list|table|schema)\b", _I),
)
_SCHEMA_WORDS = re.compile(r"\b(schema|structure|shape|fields?|columns?|properties)\b", _I)
_BRACE_SHAPE = re.compile(r"\{[\s\S]*:[\s\S]*\}")

_TASK_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(and\s+also|also|additionally|plus|on\s+top\s+of\s+that|while\s+you['’]?re\s+at\s+it)\b",
        _I,
    ),
    re.compile(r"\b(first|second|third|then|after\s+that|next|finally)\b", _I),
    re.compile(r"\d+\.\s+\w"),
)

_CODING_VERB = re.compile(
    r"\b(code|implement|build|write|create|add|remove|refactor|fix|debug|test)\b", _I
)
_NAMED_COMPONENT = re.compile(
    r"\b(the|this|that)\s+(component|module|service|page|endpoint|route|handler|hook|util)\b",
    _I,
)
_CONSTRAINT_PHRASES: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(don['’]?t|do\s+not|never|avoid|skip|only|except|without|must\s+not|should\s+not)\b",
        _I,
    ),
    re.compile(r"\b(constraint|limit|boundary|scope|restrict)\b", _I),
)

AUDIENCE_HINT = re.compile(
    r"\b(for|to)\s+(my\s+|the\s+|our\s+)?(team|colleagues?|manager|stakeholders?|leadership|"
    r"exec(?:utive)?s?|board|engineers?|designers?|developers?|customers?|clients?|users?|"
    r"public|community|everyone|readers?|investors?|students?|beginners?)\b"
    r"|\b(audience|internal|external|non[- ]?technical|technical\s+PMs?)\b",
    _I,
)
_PURPOSE_HINT = re.compile(
    r"\b(so\s+that|in\s+order\s+to|goal|purpose|aim|objective|about|regarding|"
    r"call[\s-]to[\s-]action|cta|to\s+(announce|explain|inform|persuade|convince|encourage|"
    r"update|share|invite|request|ask|thank|introduce|celebrate|promote|summari[sz]e|highlight))\b",
    _I,
)
_GENERIC_VAGUE_ASK = re.compile(
    r"\bhelp\s+me\s+with\s+(this|that|it|something)\b"
    r"|\bwrite\s+(something|anything|some\s+stuff)\b"
    r"|\bmake\s+(it|this)\s+(sound\s+)?(better|good|nicer|great)\b"
    r"|\b(polish|improve|fix)\s+(this|it)\s*[.!?]?\s*$",
    _I,
)

_FACT_REQUEST = re.compile(
    r"\b(exact|precise|accurate|specific)\s+(statistics?|stats|numbers?|figures?|dates?|"
    r"quotes?|percentages?|counts?)\b"
    r"|\b(all\s+the\s+)?facts\s+about\b"
    r"|\bstatistics\s+(about|on|for)\b"
    r"|\b(cite|citations?\s+for)\b",
    _I,
)
_GROUNDING = re.compile(
    r"\b(based\s+on|according\s+to|from|using|in)\s+(this|the|these|attached|provided|following|"
    r"my)\s+(document|file|data|dataset|context|source|article|report|text|paper|pdf|table)s?\b",
    _I,
)
_AGENT_WORK = re.compile(
    r"\b(autonomous(ly)?|agent|agentic|unattended|on\s+its\s+own|loop\s+until|"
    r"without\s+(supervision|asking|confirmation|approval))\b",
    _I,
)
_AGENT_LIMITS = re.compile(
    r"\b(limit|max(imum)?|at\s+most|stop\s+(after|when|if)|timeout|budget|iterations?|"
    r"approval|confirm|dry[\s-]?run|only|never|don['’]?t|do\s+not)\b",
    _I,
)
_EDIT_VERBS = r"(modify|change|touch|edit|update)"
_ONLY_EDIT = re.compile(rf"\bonly\s+{_EDIT_VERBS}\b", _I)
_ALSO_EDIT = re.compile(rf"\balso\s+{_EDIT_VERBS}\b", _I)
_HARD_LENGTH_CAP = re.compile(
    r"\b(under|max(imum)?|at\s+most|no\s+more\s+than)\s+\d+\s*(words?|sentences?|characters?|lines?)\b",
    _I,
)
_EXHAUSTIVE_DEPTH = re.compile(
    r"\b(comprehensive|exhaustive|in[\s-]depth|thorough|complete\s+coverage|every\s+detail)\b", _I
)
_SMALL_MODEL = re.compile(
    r"\b(haiku|gpt-4o-mini|gpt-3\.5(-turbo)?|gemini(-2\.0)?-flash|small\s+model|cheap(est)?\s+model)\b",
    _I,
)
_LARGE_DELIVERABLE = re.compile(
    r"\b(comprehensive|exhaustive|thorough|full\s+audit|in[\s-]depth|detailed\s+analysis|"
    r"entire\s+codebase|every\s+file|all\s+modules)\b",
    _I,
)


def has_file_or_code_reference(prompt: str) -> bool:
    return any(p.search(prompt) for p in _FILE_PATH_PATTERNS) or any(
        p.search(prompt) for p in _CODE_REF_PATTERNS
    )


def high_risk_matches(prompt: str) -> list[str]:
    """First matched word of each high-risk family, in family order."""
    out: list[str] = []
    for pattern in HIGH_RISK_FAMILIES.values():
        match = pattern.search(prompt)
        if match:
            out.append(match.group(0))
    return out


def count_task_separators(prompt: str) -> int:
    return sum(len(p.findall(prompt)) for p in _TASK_SEPARATORS)


@dataclass(frozen=True)
class Rule:
    name: str
    applies_to: AppliesTo
    check: Callable[[str, str | None], RuleResult]


def _quiet(name: str, severity: str, message: str) -> RuleResult:
    return RuleResult(rule_name=name, severity=severity, triggered=False, message=message)  # type: ignore[arg-type]


def _blocking(name: str, fired: bool, message: str, question: Question) -> RuleResult:
    if not fired:
        return _quiet(name, "blocking", message)
    return RuleResult(name, "blocking", True, message, question=question)


def _assumed(
    name: str,
    fired: bool,
    message: str,
    assumption: Assumption,
    elevation: RiskLevel | None = None,
) -> RuleResult:
    if not fired:
        return _quiet(name, "non_blocking", message)
    return RuleResult(
        name, "non_blocking", True, message, assumption=assumption, risk_elevation=elevation
    )


def _vague_objective(prompt: str, context: str | None = None) -> RuleResult:
    vague = any(p.search(prompt) for p in _VAGUE_PATTERNS)
    return _blocking(
        "vague_objective",
        vague and not has_file_or_code_reference(prompt),
        "Objective is vague without a specific target. What exactly should be changed and where?",
        Question(
            id="q_vague_objective",
            question="What specific file, function, or component should be changed?",
            reason="The prompt uses vague terms without pointing to a specific target.",
        ),
    )


def _missing_target(prompt: str, context: str | None = None) -> RuleResult:
    has_target = has_file_or_code_reference(prompt) or bool(_NAMED_COMPONENT.search(prompt))
    return _blocking(
        "missing_target",
        bool(_CODING_VERB.search(prompt)) and not has_target,
        "Code task detected but no target file, function, or module specified.",
        Question(
            id="q_missing_target",
            question="Which file(s) or module(s) should this change apply to?",
            reason="A code change was requested but no target location was specified.",
        ),
    )


def _scope_explosion(prompt: str, context: str | None = None) -> RuleResult:
    return _blocking(
        "scope_explosion",
        any(p.search(prompt) for p in _SCOPE_EXPLOSION),
        "Scope is extremely broad. Consider narrowing to specific files or modules.",
        Question(
            id="q_scope_explosion",
            question="Can you narrow the scope? Which specific area should be the focus?",
            reason='Terms like "all", "everything", or "entire codebase" suggest an unbounded scope.',
        ),
    )


def _high_risk_domain(prompt: str, context: str | None = None) -> RuleResult:
    matched = high_risk_matches(prompt)
    message = f"High-risk domain detected: {', '.join(matched)}. Extra caution warranted."
    if not matched:
        return _quiet("high_risk_domain", "non_blocking", message)
    return RuleResult("high_risk_domain", "non_blocking", True, message, risk_elevation="high")


def _no_constraints_high_risk(prompt: str, context: str | None = None) -> RuleResult:
    risky = bool(high_risk_matches(prompt))
    constrained = any(p.search(prompt) for p in _CONSTRAINT_PHRASES)
    return _blocking(
        "no_constraints_high_risk",
        risky and not constrained,
        "High-risk task with no constraints specified. What should NOT be changed or affected?",
        Question(
            id="q_no_constraints",
            question="This touches a sensitive area. What are the boundaries: what should NOT be changed?",
            reason="High-risk domain detected but no constraints or safety boundaries were mentioned.",
        ),
    )


def _format_ambiguity(prompt: str, context: str | None = None) -> RuleResult:
    mentions = any(p.search(prompt) for p in _FORMAT_REFS)
    has_schema = bool(_SCHEMA_WORDS.search(prompt) or _BRACE_SHAPE.search(prompt))
    return _assumed(
        "format_ambiguity",
        mentions and not has_schema,
        "A structured format was mentioned but no schema was provided.",
        Assumption(
            id="a_format_flexible",
            assumption="Output format will be inferred from context. No strict schema enforced.",
            confidence="medium",
            impact="low",
        ),
    )


def _multi_task_overload(prompt: str, context: str | None = None) -> RuleResult:
    count = count_task_separators(prompt)
    return _assumed(
        "multi_task_overload",
        count >= 3,
        f"Multiple tasks detected in one prompt (~{count} task indicators). "
        "Consider splitting for better results.",
        Assumption(
            id="a_multi_task",
            assumption="All tasks will be addressed in sequence. Consider splitting into "
            "separate prompts for better focus.",
            confidence="medium",
            impact="medium",
        ),
    )


def _missing_audience(prompt: str, context: str | None = None) -> RuleResult:
    return _assumed(
        "missing_audience",
        not AUDIENCE_HINT.search(prompt),
        "No target audience was specified for this content.",
        Assumption(
            id="a_general_audience",
            assumption="Content is written for a general professional audience.",
            confidence="medium",
            impact="medium",
        ),
    )


def _no_clear_ask(prompt: str, context: str | None = None) -> RuleResult:
    return _assumed(
        "no_clear_ask",
        not _PURPOSE_HINT.search(prompt),
        "The purpose or desired outcome of the content is not stated.",
        Assumption(
            id="a_inferred_purpose",
            assumption="The purpose is inferred from the request: inform the reader clearly "
            "and concisely.",
            confidence="low",
            impact="medium",
        ),
    )


def _generic_vague_ask(prompt: str, context: str | None = None) -> RuleResult:
    return _blocking(
        "generic_vague_ask",
        bool(_GENERIC_VAGUE_ASK.search(prompt.strip())),
        "The request is too generic to act on. What should the content be about?",
        Question(
            id="q_generic_vague_ask",
            question="What is the topic, and what should the finished piece achieve?",
            reason="The prompt asks for help without saying what the content is or is for.",
        ),
    )


def _hallucination_risk(prompt: str, context: str | None = None) -> RuleResult:
    grounded = bool(_GROUNDING.search(prompt)) or bool(context and context.strip())
    return _assumed(
        "hallucination_risk",
        bool(_FACT_REQUEST.search(prompt)) and not grounded,
        "Exact facts or statistics were requested without a source to ground them.",
        Assumption(
            id="a_no_fabrication",
            assumption="Figures that cannot be verified will be marked as uncertain rather than invented.",
            confidence="high",
            impact="high",
        ),
        elevation="medium",
    )


def _agent_underspec(prompt: str, context: str | None = None) -> RuleResult:
    return _blocking(
        "agent_underspec",
        bool(_AGENT_WORK.search(prompt)) and not _AGENT_LIMITS.search(prompt),
        "Autonomous work was requested without limits, stop conditions, or approval points.",
        Question(
            id="q_agent_limits",
            question="What limits apply: when should the agent stop, and which actions need approval?",
            reason="Unbounded autonomous execution can take irreversible actions.",
        ),
    )


def _conflicting_constraints(prompt: str, context: str | None = None) -> RuleResult:
    scope_conflict = bool(_ONLY_EDIT.search(prompt) and _ALSO_EDIT.search(prompt))
    length_conflict = bool(_HARD_LENGTH_CAP.search(prompt) and _EXHAUSTIVE_DEPTH.search(prompt))
    return _blocking(
        "conflicting_constraints",
        scope_conflict or length_conflict,
        "The prompt contains constraints that contradict each other.",
        Question(
            id="q_conflicting_constraints",
            question="Two constraints conflict. Which one takes priority?",
            reason="The request limits scope or length and also asks for more than that limit allows.",
        ),
    )


def _token_budget_mismatch(prompt: str, context: str | None = None) -> RuleResult:
    return _assumed(
        "token_budget_mismatch",
        bool(_SMALL_MODEL.search(prompt) and _LARGE_DELIVERABLE.search(prompt)),
        "A small model was requested for a deliverable that likely exceeds its useful budget.",
        Assumption(
            id="a_budget_tradeoff",
            assumption="Output will prioritize the most important findings to fit the model's budget.",
            confidence="medium",
            impact="medium",
        ),
    )


RULES: tuple[Rule, ...] = (
    Rule("vague_objective", "code", _vague_objective),
    Rule("missing_target", "code", _missing_target),
    Rule("scope_explosion", "code", _scope_explosion),
    Rule("high_risk_domain", "code", _high_risk_domain),
    Rule("no_constraints_high_risk", "code", _no_constraints_high_risk),
    Rule("format_ambiguity", "all", _format_ambiguity),
    Rule("multi_task_overload", "all", _multi_task_overload),
    Rule("missing_audience", "prose", _missing_audience),
    Rule("no_clear_ask", "prose", _no_clear_ask),
    Rule("generic_vague_ask", "prose", _generic_vague_ask),
    Rule("hallucination_risk", "all", _hallucination_risk),
    Rule("agent_underspec", "all", _agent_underspec),
    Rule("conflicting_constraints", "all", _conflicting_constraints),
    Rule("token_budget_mismatch", "all", _token_budget_mismatch),
)

RULE_NAMES: tuple[str, ...] = tuple(r.name for r in RULES)


def rule_applies(applies_to: str, task_type: str | None) -> bool:
    if task_type is None or applies_to == "all":
        return True
    if applies_to == "code":
        return not is_prose_task(task_type)
    if applies_to == "prose":
        return is_prose_task(task_type)
    return False


def run_rules(
    prompt: str, context: str | None = None, task_type: str | None = None
) -> list[RuleResult]:
    """Evaluate the registry and return only triggered results."""
    results: list[RuleResult] = []
    for rule in RULES:
        if not rule_applies(rule.applies_to, task_type):
            continue
        result = rule.check(prompt, context)
        if result.triggered:
            results.append(result)
    return results


_SEVERITY_ORDER = {"blocking": 0, "non_blocking": 1}


def sort_issues(results: Iterable[RuleResult]) -> list[RuleResult]:
    """Blocking first, then by rule name."""
    return sorted(results, key=lambda r: (_SEVERITY_ORDER.get(r.severity, 2), r.rule_name))


def extract_blocking_questions(
    results: Iterable[RuleResult],
    answered_ids: Iterable[str] | None = None,
    limit: int = 3,
) -> list[Question]:
    answered = set(answered_ids or ())
    questions = [
        r.question
        for r in sort_issues(results)
        if r.question is not None and r.question.blocking and r.question.id not in answered
    ]
    return questions[:limit]


def extract_assumptions(results: Iterable[RuleResult], limit: int = 5) -> list[Assumption]:
    return [r.assumption for r in sort_issues(results) if r.assumption is not None][:limit]


def get_elevated_risk(results: Iterable[RuleResult]) -> RiskLevel | None:
    elevations = {r.risk_elevation for r in results if r.risk_elevation}
    if "high" in elevations:
        return "high"
    if "medium" in elevations:
        return "medium"
    return None
