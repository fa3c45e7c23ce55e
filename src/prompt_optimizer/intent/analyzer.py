"""Raw prompt -> IntentSpec."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from prompt_optimizer.logging import get_logger, prompt_preview
from prompt_optimizer.types import (
    INLINE_CODE_MARKER,
    Constraints,
    IntentSpec,
    RiskLevel,
    TaskType,
    is_code_task,
    require_all_task_types,
)

from .custom_rules import CustomRule, custom_risk_weights, evaluate_custom_rules
from .risk import compute_risk_score
from .rules import (
    extract_assumptions,
    extract_blocking_questions,
    get_elevated_risk,
    run_rules,
)

logger = get_logger(__name__)

_I = re.IGNORECASE

_PROSE_OUTPUT_TYPES = "|".join(
    [
        "post", "article", "blog", r"blog\s+post", "essay", "copy", "email",
        "message", "announcement", "letter", "memo", "brief", "newsletter",
        "report", "proposal", "summary", r"executive\s+summary", "one[- ]pager",
        "abstract", "overview", "blurb", "description",
        "doc", "documentation", "readme", "guide", "tutorial", "faq",
        "changelog", r"release\s+notes",
        "pitch", "presentation", "speech", r"talking\s+points", "script",
        "response", "reply", "comment", "review",
        "tweet", "bio", "introduction", "intro",
        "minutes", "recap", "digest", "notes",
        r"cover\s+letter",
    ]
)  # fmt: skip
_PROSE_OUTPUT_RE = re.compile(rf"\b({_PROSE_OUTPUT_TYPES})\b", _I)

_WRITING_VERBS = re.compile(
    r"\b(write|draft|compose|rewrite|edit|proofread|polish|craft|prepare|put\s+together|"
    r"summarize|create|generate)\b",
    _I,
)
_RESEARCH_OPENER = re.compile(r"^(research|compare|investigate|benchmark|evaluate|explore)\b", _I)
_BUILD_VERBS = re.compile(r"\b(create|build|design|develop|make)\b", _I)
_PLANNING_NOUNS = re.compile(
    r"\b(plan|roadmap|strategy|timeline|proposal|rfc|outline|schedule|budget)\b", _I
)
_CODE_ARTIFACT_NOUNS = re.compile(
    r"\b(app|api|server|service|component|module|function|class|project|repo|library|package|"
    r"tool|system|endpoint|cli|sdk|bot|worker|lambda|pipeline|daemon)\b",
    _I,
)
_PLATFORM_SIGNALS = re.compile(
    r"\b(linkedin|medium|substack|twitter|slack|x\.com|notion|confluence|wiki|google\s+docs?|blog)\b",
    _I,
)
_OPENER_END = re.compile(r"[.!?\n]")

_TASK_TYPE_PATTERNS: tuple[tuple[TaskType, tuple[re.Pattern[str], ...]], ...] = (
    (
        "writing",
        (
            re.compile(
                r"\b(write|draft|compose|rewrite|edit|proofread|polish|craft|prepare|summarize)\s+"
                r"(?:(?:me|us|them|him|her)\s+)?(?:a|an|the|my|this)?\s*(?:\w+\s+){0,2}"
                rf"({_PROSE_OUTPUT_TYPES})\b",
                _I,
            ),
            re.compile(
                r"\b(slack\s+(?:post|message)|blog\s+post|press\s+release|newsletter|tweet|"
                r"linkedin(?:\s+post)?|medium\s+(?:article|post)|substack(?:\s+post)?|"
                r"twitter\s+(?:thread|post)|x\s+(?:thread|post)|notion\s+page|confluence\s+page|"
                r"wiki\s+page|google\s+doc|github\s+(?:issue|pr)\s+description)\b",
                _I,
            ),
            re.compile(r"\b(tone|voice|audience|readability|word\s*count|paragraph)\b", _I),
        ),
    ),
    (
        "communication",
        (
            re.compile(
                r"\b(announce|share|present|pitch|notify|inform|"
                r"update\s+(the\s+)?(team|group|channel|stakeholders|everyone))\b",
                _I,
            ),
            re.compile(
                r"\b(meeting\s+notes|standup|status\s+update|weekly\s+update|retro|retrospective)\b",
                _I,
            ),
        ),
    ),
    (
        "planning",
        (
            re.compile(
                r"\b(plan|design|architect|strategy|roadmap|outline|scope|spec|specification|"
                r"proposal|rfc)\b",
                _I,
            ),
            re.compile(
                r"\b(break\s+down|decompose|phase|milestone|timeline|prioriti[sz]e)\b", _I
            ),
        ),
    ),
    (
        "research",
        (
            re.compile(
                r"\b(research|investigate|compare|benchmark|evaluate|survey|explore|"
                r"find\s+out|look\s+into)\b",
                _I,
            ),
            re.compile(r"\b(pros?\s+and\s+cons?|trade-?offs?|alternatives?|options?|landscape)\b", _I),
        ),
    ),
    (
        "data",
        (
            re.compile(
                r"\b(csv|spreadsheet|dataset|sql\s+query|"
                r"data\s+(clean|transform|migrate|export|import))\b",
                _I,
            ),
            re.compile(r"\b(pivot|aggregate|filter|group\s+by|join|merge)\b", _I),
        ),
    ),
    (
        "analysis",
        (
            re.compile(
                r"\b(analy[sz]e|summari[sz]e|assess|digest|breakdown|report\s+on|insights?\s+from)\b",
                _I,
            ),
            re.compile(r"\b(metrics?|data|trends?|patterns?|findings?|conclusions?)\b", _I),
        ),
    ),
    (
        "debug",
        (
            re.compile(
                r"\b(debug|diagnose|troubleshoot|why\s+is|not\s+working|broken|error|bug|crash|"
                r"failing)\b",
                _I,
            ),
        ),
    ),
    (
        "refactor",
        (
            re.compile(
                r"\b(refactor|restructure|reorganize|"
                r"clean\s*up\s+(the\s+)?(code|function|class|module)|simplify|extract|decompose|"
                r"decouple)\b",
                _I,
            ),
        ),
    ),
    (
        "review",
        (
            re.compile(
                r"\b(code\s+review|review\s+(this|the)\s+(code|pr|pull\s+request|diff|commit))\b", _I
            ),
            re.compile(r"\b(audit\s+(the\s+)?(code|security|performance))\b", _I),
        ),
    ),
    (
        "create",
        (
            re.compile(
                r"\b(create|build|scaffold|generate|set\s*up|bootstrap|initialize)\s+"
                r"(?:a|an|the|my)?\s*(?:\w+\s+){0,2}"
                r"(app|api|server|service|component|module|function|class|project|repo)\b",
                _I,
            ),
        ),
    ),
    (
        "code_change",
        (
            re.compile(
                r"\b(add|implement|modify|change|update|edit|replace|remove|delete|rename|move)\s+"
                r"(the\s+|a\s+|this\s+)?(function|class|method|variable|import|endpoint|route|"
                r"handler|middleware|hook|component|type|interface)\b",
                _I,
            ),
            re.compile(
                r"\b(add|implement|write)\s+(a|an|the)?\s*(test|spec|migration|endpoint|api|feature)\b",
                _I,
            ),
            re.compile(
                r"\b(add|implement|modify|change|update|edit|remove|delete)\b.*"
                r"\b[\w\-./]+\.(ts|js|tsx|jsx|py|go|rs|java|rb|css|html)\b",
                _I,
            ),
            re.compile(
                r"\b(add|implement|modify|change|update)\b.*\b(to|in|for)\s+(the\s+)?"
                r"\w+(function|method|class|handler|module|component)\b",
                _I,
            ),
        ),
    ),
    (
        "question",
        (
            re.compile(
                r"\b(explain|what\s+is|how\s+does|why\s+does|where\s+is|can\s+you\s+tell|describe|"
                r"show\s+me)\b",
                _I,
            ),
            re.compile(r"\?$", re.MULTILINE),
        ),
    ),
)

_FILE_RE = re.compile(
    r"\b([\w\-./]+\.(ts|js|tsx|jsx|py|go|rs|java|rb|css|html|json|yaml|yml|md|sql|sh|toml|cfg|env|lock))\b"
)
_URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")
_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")

_AUDIENCE_MAP: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(for|to)\s+(my\s+)?team\b", _I), "team (internal)"),
    (re.compile(r"\b(for|to)\s+(my\s+)?colleagues?\b", _I), "colleagues (internal)"),
    (re.compile(r"\b(for|to)\s+(my\s+)?manager\b", _I), "manager"),
    (re.compile(r"\b(for|to)\s+(the\s+)?stakeholders?\b", _I), "stakeholders"),
    (re.compile(r"\b(for|to)\s+(the\s+)?leadership\b", _I), "leadership / executives"),
    (re.compile(r"\b(for|to)\s+(the\s+)?(exec|board)\b", _I), "executives"),
    (re.compile(r"\b(for|to)\s+(the\s+)?engineers?\b", _I), "engineers (technical)"),
    (re.compile(r"\b(for|to)\s+(the\s+)?designers?\b", _I), "designers"),
    (re.compile(r"\b(for|to)\s+(the\s+)?developers?\b", _I), "developers (technical)"),
    (re.compile(r"\b(for|to)\s+(the\s+)?customers?\b", _I), "customers (external)"),
    (re.compile(r"\b(for|to)\s+(the\s+)?clients?\b", _I), "clients (external)"),
    (re.compile(r"\b(for|to)\s+(the\s+)?users?\b", _I), "end users"),
    (re.compile(r"\b(for|to)\s+(the\s+)?public\b", _I), "general public"),
    (re.compile(r"\b(for|to)\s+(the\s+)?community\b", _I), "community"),
    (re.compile(r"\b(for|to)\s+(the\s+)?everyone\b", _I), "general audience"),
    (re.compile(r"\binternal\s+(audience|post|announcement|message)\b", _I), "internal audience"),
    (re.compile(r"\bexternal\s+(audience|post|announcement|message)\b", _I), "external audience"),
    (re.compile(r"\btechnical\s+PMs?\b", _I), "technical PMs"),
    (re.compile(r"\bnon[- ]?technical\b", _I), "non-technical audience"),
)

_TONE_RE = re.compile(
    r"\b(casual|formal|professional|friendly|technical|simple|concise|detailed|persuasive|"
    r"neutral|enthusiastic|serious)\b",
    _I,
)

_PLATFORM_MAP: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bslack\b", _I), "Slack"),
    (re.compile(r"\blinkedin\b", _I), "LinkedIn"),
    (re.compile(r"\bblog\s*(?:post)?\b", _I), "Blog"),
    (re.compile(r"\btwitter\b|\bx\.com\b", _I), "Twitter/X"),
    (re.compile(r"\bmedium\b|\bsubstack\b", _I), "Medium/Substack"),
    (re.compile(r"\bemail\b", _I), "Email"),
    (re.compile(r"\bnewsletter\b", _I), "Newsletter"),
    (re.compile(r"\bwiki\b|\bconfluence\b|\bnotion\b", _I), "Wiki"),
    (re.compile(r"\bpresentation\b|\bslides?\b", _I), "Presentation"),
)

_SENTENCE_SPLIT = re.compile(r"[.!?\n]")
_CRITERIA_RE = re.compile(r"\b(should|must|needs?\s+to|expected\s+to|make\s+sure)\b[^.!?\n]*", _I)

DEFAULT_DONE: dict[str, tuple[str, ...]] = {
    "code_change": ("Code compiles without errors", "Changes are minimal and focused"),
    "create": ("Code compiles without errors", "Changes are minimal and focused"),
    "refactor": ("Behavior is preserved (no functional changes)", "Code compiles without errors"),
    "debug": ("Root cause is identified", "Fix addresses the root cause, not just symptoms"),
    "review": ("Key findings are clearly listed", "Actionable recommendations provided"),
    "question": ("Answer is clear and specific",),
    "writing": (
        "Content is clear, well-structured, and matches the intended tone",
        "Message achieves its communication goal",
    ),
    "communication": (
        "Message is clear and actionable for the audience",
        "Key information is easy to scan",
    ),
    "research": ("Findings are organized and evidence-based", "Sources are cited or identifiable"),
    "planning": (
        "Plan has clear milestones and actionable steps",
        "Dependencies and risks are identified",
    ),
    "analysis": ("Key insights are clearly stated", "Data supports the conclusions"),
    "data": ("Output format is correct and complete", "Edge cases are handled"),
    "other": ("Task is completed as described",),
}
require_all_task_types(DEFAULT_DONE, "DEFAULT_DONE")

DEFAULT_OUTPUT_FORMAT: dict[str, str] = {
    "code_change": "Code changes with brief explanation",
    "create": "Code changes with brief explanation",
    "refactor": "Code changes with brief explanation",
    "debug": "Code changes with brief explanation",
    "review": "Structured analysis with findings and recommendations",
    "question": "Clear, concise answer",
    "writing": "Polished prose matching the intended tone and format",
    "communication": "Clear, scannable message formatted for the target platform",
    "research": "Structured findings with evidence and sources",
    "planning": "Actionable plan with milestones and dependencies",
    "analysis": "Structured analysis with key insights and supporting data",
    "data": "Clean, formatted data output",
    "other": "Appropriate format for the task",
}
require_all_task_types(DEFAULT_OUTPUT_FORMAT, "DEFAULT_OUTPUT_FORMAT")

_EXPLICIT_FORMATS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bjson\b", _I), "JSON"),
    (re.compile(r"\byaml\b", _I), "YAML"),
    (re.compile(r"\bmarkdown\b|\bmd\b", _I), "Markdown"),
    (re.compile(r"\btable\b", _I), "Table"),
    (re.compile(r"\blist\b", _I), "Bulleted list"),
)

_CODE_SCOPE_RE = re.compile(r"\b(only|just)\s+(modify|change|touch|edit|update)\s+[^.!?\n]*", _I)
_CODE_FORBID_RE = re.compile(
    r"\b(don['’]?t|do\s+not|never|avoid|must\s+not|should\s+not)\s+"
    r"(touch|modify|change|edit|delete|remove)\s+[^.!?\n]*",
    _I,
)
_PROSE_TONE_RE = re.compile(
    r"\b(keep\s+it|make\s+it|should\s+be)\s+"
    r"(short|concise|brief|detailed|formal|casual|professional|simple|technical)\b[^.!?\n]*",
    _I,
)
_PROSE_LENGTH_RE = re.compile(
    r"\b(under|within|max|maximum|at\s+most|no\s+more\s+than)\s+\d+\s*"
    r"(words?|sentences?|paragraphs?|characters?|lines?|pages?)\b",
    _I,
)
_PROSE_AVOID_RE = re.compile(
    r"\b(don['’]?t|do\s+not|never|avoid|must\s+not|should\s+not|without)\s+"
    r"(mention|include|use|reference|say|add)\s+[^.!?\n]*",
    _I,
)
_TIME_BUDGET_RE = re.compile(
    r"\b(within|under|in\s+less\s+than|at\s+most)\s+(\d+\s*(minutes?|hours?|mins?|hrs?))\b", _I
)

_RISK_ORDER: dict[str, int] = {"low": 0, "medium": 1, "high": 2}


def _dedup(seq: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in seq:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _matches(pattern: re.Pattern[str], text: str) -> list[str]:
    return [m.group(0).strip() for m in pattern.finditer(text)]


def detect_intent_from_opener(prompt: str) -> TaskType | None:
    """Classify from the opening phrase, which outweighs topic words later on."""
    end = _OPENER_END.search(prompt)
    limit = end.start() if end and end.start() > 0 else 150
    opener = prompt[: min(limit, 150)]

    if _WRITING_VERBS.search(opener):
        if _PROSE_OUTPUT_RE.search(opener):
            # Prose noun wins even next to a code noun ("a guide for the API server")
            return "writing"
        if _PLATFORM_SIGNALS.search(opener):
            return "writing"

    if _RESEARCH_OPENER.search(opener):
        return "research"

    if _BUILD_VERBS.search(opener):
        if _PLANNING_NOUNS.search(opener) and not _CODE_ARTIFACT_NOUNS.search(opener):
            return "planning"
    return None


def detect_task_type(prompt: str) -> TaskType:
    opener = detect_intent_from_opener(prompt)
    if opener:
        return opener
    for task_type, patterns in _TASK_TYPE_PATTERNS:
        if any(p.search(prompt) for p in patterns):
            return task_type
    return "other"


def detect_inputs(prompt: str) -> list[str]:
    """File paths, URLs and an inline-code marker, in order of first occurrence."""
    found: list[tuple[int, str]] = []
    url_spans: list[tuple[int, int]] = []
    for match in _URL_RE.finditer(prompt):
        url_spans.append(match.span())
        found.append((match.start(), match.group(0)))
    for match in _FILE_RE.finditer(prompt):
        start, end = match.span(1)
        if any(s <= start and end <= e for s, e in url_spans):
            continue
        found.append((start, match.group(1)))
    code_block = _CODE_BLOCK_RE.search(prompt)
    if code_block:
        found.append((code_block.start(), INLINE_CODE_MARKER))
    return _dedup(item for _, item in sorted(found, key=lambda pair: pair[0]))


def detect_audience(prompt: str) -> str | None:
    for pattern, label in _AUDIENCE_MAP:
        if pattern.search(prompt):
            return label
    return None


def detect_tone(prompt: str) -> str | None:
    match = _TONE_RE.search(prompt)
    return match.group(0) if match else None


def detect_platform(prompt: str) -> str | None:
    for pattern, label in _PLATFORM_MAP:
        if pattern.search(prompt):
            return label
    return None


def extract_goal(prompt: str) -> str:
    sentences = [s for s in _SENTENCE_SPLIT.split(prompt) if len(s.strip()) > 5]
    first = sentences[0].strip() if sentences else prompt.strip()
    return first[:200] + "..." if len(first) > 200 else first


def extract_definition_of_done(prompt: str, task_type: TaskType) -> list[str]:
    items = _matches(_CRITERIA_RE, prompt)
    if not items:
        items = list(DEFAULT_DONE[task_type])
    return items[:5]


def extract_constraints(prompt: str, task_type: TaskType) -> Constraints:
    scope: list[str] = []
    forbidden: list[str] = []
    if is_code_task(task_type):
        scope.extend(_matches(_CODE_SCOPE_RE, prompt))
        forbidden.extend(_matches(_CODE_FORBID_RE, prompt))
    else:
        scope.extend(_matches(_PROSE_TONE_RE, prompt))
        scope.extend(_matches(_PROSE_LENGTH_RE, prompt))
        forbidden.extend(_matches(_PROSE_AVOID_RE, prompt))

    time_match = _TIME_BUDGET_RE.search(prompt)
    return Constraints(
        scope=scope[:5],
        forbidden=forbidden[:5],
        time_budget=time_match.group(0) if time_match else None,
    )


def detect_output_format(prompt: str, task_type: TaskType) -> str:
    for pattern, label in _EXPLICIT_FORMATS:
        if pattern.search(prompt):
            return label
    return DEFAULT_OUTPUT_FORMAT[task_type]


def assess_base_risk(task_type: TaskType) -> RiskLevel:
    # Only tasks that produce or change code start above low
    if task_type in ("code_change", "create", "refactor", "debug"):
        return "medium"
    return "low"


def _max_risk(levels: Sequence[RiskLevel | None]) -> RiskLevel:
    present = [lvl for lvl in levels if lvl]
    return max(present, key=lambda lvl: _RISK_ORDER[lvl]) if present else "low"


def analyze(
    prompt: str,
    context: str | None = None,
    answered_question_ids: Iterable[str] | None = None,
    custom_rules: Sequence[CustomRule] | None = None,
) -> IntentSpec:
    """Decompose a raw prompt into an IntentSpec.

    Args:
        prompt: Raw prompt text.
        context: Optional auxiliary context supplied by the caller.
        answered_question_ids: Blocking-question ids already resolved in a
            refinement pass; they are not asked again.
        custom_rules: Validated user rules evaluated alongside the built-ins.

    Returns:
        The normalized intent record.
    """
    task_type = detect_task_type(prompt)
    results = run_rules(prompt, context, task_type)
    if custom_rules:
        results.extend(evaluate_custom_rules(custom_rules, prompt, task_type))

    risk = compute_risk_score(
        results, custom_risk_weights(custom_rules) if custom_rules else None
    )
    risk_level = _max_risk([assess_base_risk(task_type), get_elevated_risk(results), risk.level])

    logger.debug(
        f"Analyzed prompt {prompt_preview(prompt)}: task_type={task_type} "
        f"rules={[r.rule_name for r in results]} risk={risk.score} ({risk_level})"
    )

    return IntentSpec(
        user_intent=prompt,
        goal=extract_goal(prompt),
        task_type=task_type,
        definition_of_done=extract_definition_of_done(prompt, task_type),
        inputs_detected=detect_inputs(prompt),
        constraints=extract_constraints(prompt, task_type),
        output_format=detect_output_format(prompt, task_type),
        risk_level=risk_level,
        risk_score=risk,
        assumptions=extract_assumptions(results),
        blocking_questions=extract_blocking_questions(results, answered_question_ids),
        audience=detect_audience(prompt),
        tone=detect_tone(prompt),
        platform=detect_platform(prompt),
        rule_results=results,
    )
