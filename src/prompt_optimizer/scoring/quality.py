"""Prompt quality scoring (0-100) over five 20-point dimensions.

``score_quality`` grades a raw prompt through its IntentSpec and is task-type
aware: code tasks earn specificity from file paths and snippets, prose tasks
from audience, tone and platform. ``score_compiled`` grades rendered output
structurally and recognizes every output target.
"""

from __future__ import annotations

import math
import re

from prompt_optimizer.text.tokens import estimate_tokens
from prompt_optimizer.types import (
    INLINE_CODE_MARKER,
    IntentSpec,
    QualityDimension,
    QualityScore,
    is_code_task,
)

from .sections import has_section

_I = re.IGNORECASE
DIMENSION_MAX = 20

_VAGUE_TERMS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bmake\s+it\s+(better|work|good|nice|faster|cleaner)\b", _I),
    re.compile(r"\b(improve|enhance|optimize)\b(?!.*\b(in|at|for)\b)", _I),
    re.compile(r"\bdo\s+something\b", _I),
    re.compile(r"\bfix\s+it\b", _I),
    re.compile(r"\bsomehow\b", _I),
    re.compile(r"\bwhatever\b", _I),
    re.compile(r"\bstuff\b", _I),
    re.compile(r"\betc\b\.?", _I),
)

_AUDIENCE_RE = re.compile(
    r"\b(for|to)\s+(my\s+)?(team|colleagues?|manager|stakeholders?|engineers?|designers?|"
    r"leadership|customers?|users?|clients?|public|community|audience|everyone)\b",
    _I,
)
_TONE_RE = re.compile(
    r"\b(casual|formal|professional|friendly|technical|simple|concise|detailed|persuasive|"
    r"neutral|enthusiastic|serious|conversational)\b",
    _I,
)
_PLATFORM_RE = re.compile(
    r"\b(slack|email|blog|twitter|linkedin|newsletter|docs?|wiki|presentation|meeting|standup)\b",
    _I,
)
_LENGTH_RE = re.compile(
    r"\b(short|brief|concise|one[\s-]?liner|paragraph|under\s+\d+\s*words?|max\s+\d+)\b", _I
)
_CONTENT_RE = re.compile(r"\b(include|mention|cover|highlight|reference|example)\b", _I)
_FORMAT_RE = re.compile(r"JSON|YAML|Markdown|Table|list", _I)
_SENTENCE_SPLIT = re.compile(r"[.!?\n]")

DEFAULT_DOD_PREFIXES: tuple[str, ...] = (
    "Code compiles",
    "Changes are minimal",
    "Behavior is preserved",
    "Root cause",
    "Key findings",
    "Actionable recommendations",
    "Answer is",
    "Task is",
    "Content is clear",
    "Message is clear",
    "Message achieves",
    "Key information",
    "Findings are organized",
    "Sources are cited",
    "Plan has clear",
    "Dependencies and risks",
    "Key insights",
    "Data supports",
    "Output format is correct",
    "Edge cases",
)


def _clamp(score: int) -> int:
    return max(0, min(DIMENSION_MAX, score))


def _dimension(name: str, score: int, notes: list[str]) -> QualityDimension:
    return QualityDimension(name=name, score=_clamp(score), max=DIMENSION_MAX, notes=notes)


def _total(dimensions: list[QualityDimension]) -> QualityScore:
    return QualityScore(total=sum(d.score for d in dimensions), dimensions=dimensions, max=100)


def _score_clarity(spec: IntentSpec) -> QualityDimension:
    score = 20
    notes: list[str] = []
    vague = sum(1 for p in _VAGUE_TERMS if p.search(spec.user_intent))
    deduction = min(vague * 5, 15)
    score -= deduction
    if vague:
        notes.append(f"{vague} vague term(s) detected (-{deduction})")
    if len(spec.goal) <= 20:
        score -= 5
        notes.append("Goal is very short, may be too terse (-5)")
    elif len(spec.goal) < 200:
        notes.append("Goal is well-scoped")
    return _dimension("Clarity", score, notes)


def _score_specificity(spec: IntentSpec) -> QualityDimension:
    score = 5
    notes: list[str] = []
    if is_code_task(spec.task_type):
        files = [
            i for i in spec.inputs_detected if not i.startswith("http") and i != INLINE_CODE_MARKER
        ]
        if files:
            bonus = min(len(files) * 5, 10)
            score += bonus
            notes.append(f"{len(files)} file path(s) referenced (+{bonus})")
        if INLINE_CODE_MARKER in spec.inputs_detected:
            score += 3
            notes.append("Inline code provided (+3)")
        urls = [i for i in spec.inputs_detected if i.startswith("http")]
        if urls:
            score += 2
            notes.append(f"{len(urls)} URL(s) provided (+2)")
    else:
        prompt = spec.user_intent
        for pattern, bonus, label in (
            (_AUDIENCE_RE, 5, "Target audience specified"),
            (_TONE_RE, 4, "Tone/style specified"),
            (_PLATFORM_RE, 3, "Platform/medium specified"),
            (_LENGTH_RE, 3, "Length constraint specified"),
            (_CONTENT_RE, 2, "Specific content requirements mentioned"),
        ):
            if pattern.search(prompt):
                score += bonus
                notes.append(f"{label} (+{bonus})")
    return _dimension("Specificity", score, notes)


def _score_completeness(spec: IntentSpec) -> QualityDimension:
    score = 5
    notes: list[str] = []
    explicit = [d for d in spec.definition_of_done if not d.startswith(DEFAULT_DOD_PREFIXES)]
    if len(explicit) >= 2:
        score += 10
        notes.append(f"{len(explicit)} explicit success criteria (+10)")
    elif len(explicit) == 1:
        score += 5
        notes.append("1 explicit success criterion (+5)")
    else:
        notes.append("No explicit success criteria (defaults applied)")

    if spec.task_type != "other":
        score += 3
        notes.append(f"Task type detected: {spec.task_type} (+3)")
    if _FORMAT_RE.search(spec.output_format):
        score += 2
        notes.append("Output format specified (+2)")
    return _dimension("Completeness", score, notes)


def _score_constraints(spec: IntentSpec) -> QualityDimension:
    score = 5
    notes: list[str] = []
    scope, forbidden = spec.constraints.scope, spec.constraints.forbidden
    if scope:
        score += 5
        notes.append(f"{len(scope)} scope constraint(s) (+5)")
    if forbidden:
        score += 5
        notes.append(f"{len(forbidden)} forbidden action(s) (+5)")
    if spec.constraints.time_budget:
        score += 3
        notes.append("Time budget specified (+3)")
    if not scope and not forbidden:
        if spec.risk_level == "high":
            score -= 5
            notes.append("High-risk task with no constraints (-5)")
        notes.append("No constraints specified")
    return _dimension("Constraints", score, notes)


def _score_efficiency(prompt: str, context: str | None) -> QualityDimension:
    score = 18
    notes: list[str] = []
    total_text = prompt + (context or "")
    tokens = estimate_tokens(total_text)
    if tokens > 5000:
        penalty = min(math.floor((tokens - 5000) / 1000) * 2, 12)
        score -= penalty
        notes.append(f"~{tokens} tokens total, large context (-{penalty})")
    elif tokens > 2000:
        penalty = min(math.floor((tokens - 2000) / 1000), 6)
        score -= penalty
        notes.append(f"~{tokens} tokens, moderate size (-{penalty})")
    else:
        notes.append(f"~{tokens} tokens, efficient")

    sentences = [
        s.strip().lower() for s in _SENTENCE_SPLIT.split(total_text) if len(s.strip()) > 20
    ]
    if len(sentences) - len(set(sentences)) > 2:
        score -= 4
        notes.append("Repetitive content detected (-4)")
    return _dimension("Efficiency", score, notes)


def score_quality(spec: IntentSpec, context: str | None = None) -> QualityScore:
    """Score a raw prompt through its analyzed IntentSpec."""
    return _total(
        [
            _score_clarity(spec),
            _score_specificity(spec),
            _score_completeness(spec),
            _score_constraints(spec),
            _score_efficiency(spec.user_intent, context),
        ]
    )


def _structural(name: str, base: int, text: str, bonuses: tuple[tuple[str, int, str], ...]):
    score = base
    notes: list[str] = []
    for section, bonus, label in bonuses:
        if has_section(text, section):
            score += bonus
            notes.append(f"{label} (+{bonus})")
    return _dimension(name, score, notes)


def score_compiled(text: str) -> QualityScore:
    """Structural score of a rendered prompt in any target format."""
    has_goal = has_section(text, "Goal")
    clarity = _dimension(
        "Clarity",
        19 if has_goal else 12,
        ["Explicit goal section present" if has_goal else "No goal section found"],
    )
    specificity = _structural(
        "Specificity",
        10,
        text,
        (
            ("Role", 3, "Role defined"),
            ("Context", 3, "Context provided"),
            ("Audience", 4, "Audience specified"),
            ("Tone", 3, "Tone specified"),
            ("Platform Guidelines", 3, "Platform guidelines included"),
        ),
    )
    completeness = _structural(
        "Completeness",
        5,
        text,
        (
            ("Definition of Done", 6, "Definition of done present"),
            ("Workflow", 5, "Workflow steps defined"),
            ("Output Format", 4, "Output format specified"),
        ),
    )
    constraints = _structural(
        "Constraints",
        5,
        text,
        (
            ("Constraints", 8, "Constraints defined"),
            ("Uncertainty Policy", 5, "Uncertainty policy set"),
        ),
    )
    tokens = estimate_tokens(text)
    efficiency = _dimension(
        "Efficiency", 14 if tokens > 3000 else 18, [f"~{tokens} tokens in compiled prompt"]
    )
    return _total([clarity, specificity, completeness, constraints, efficiency])
