from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping, get_args

TaskType = Literal[
    "code_change",
    "question",
    "review",
    "debug",
    "create",
    "refactor",
    "writing",
    "research",
    "planning",
    "analysis",
    "communication",
    "data",
    "other",
]
RiskLevel = Literal["low", "medium", "high"]
Severity = Literal["blocking", "non_blocking"]
AppliesTo = Literal["code", "prose", "all"]
RiskDimension = Literal["underspec", "hallucination", "scope", "constraint"]
OutputTarget = Literal["claude", "openai", "generic"]
ZoneType = Literal[
    "fenced_code", "markdown_table", "markdown_list", "json_block", "yaml_block"
]
CompressionMode = Literal["standard", "aggressive"]

TASK_TYPES: tuple[str, ...] = get_args(TaskType)
OUTPUT_TARGETS: tuple[str, ...] = get_args(OutputTarget)
RISK_DIMENSIONS: tuple[str, ...] = get_args(RiskDimension)

CODE_TASKS: frozenset[str] = frozenset({"code_change", "debug", "create", "refactor"})
PROSE_TASKS: frozenset[str] = frozenset({"writing", "communication", "planning"})

# Placeholder recorded in IntentSpec.inputs_detected for fenced code in a prompt
INLINE_CODE_MARKER = "[inline code block]"


def is_code_task(task_type: str | None) -> bool:
    return task_type in CODE_TASKS


def is_prose_task(task_type: str | None) -> bool:
    return task_type in PROSE_TASKS


def require_all_task_types(table: Mapping[str, object], name: str) -> None:
    """Fail at import time when a lookup table keyed by task type is incomplete."""
    missing = [t for t in TASK_TYPES if t not in table]
    extra = [k for k in table if k not in TASK_TYPES]
    if missing or extra:
        raise ValueError(
            f"{name} must cover every task type exactly "
            f"(missing={missing}, unknown={extra})"
        )


@dataclass(frozen=True)
class Question:
    id: str
    question: str
    reason: str
    blocking: bool = True


@dataclass(frozen=True)
class Assumption:
    id: str
    assumption: str
    confidence: RiskLevel = "medium"
    impact: RiskLevel = "low"
    reversible: bool = True


@dataclass(frozen=True)
class RuleResult:
    rule_name: str
    severity: Severity
    triggered: bool
    message: str
    question: Question | None = None
    assumption: Assumption | None = None
    risk_elevation: RiskLevel | None = None


@dataclass
class Constraints:
    scope: list[str] = field(default_factory=list)
    forbidden: list[str] = field(default_factory=list)
    time_budget: str | None = None


@dataclass(frozen=True)
class RiskDimensions:
    underspec: int = 0
    hallucination: int = 0
    scope: int = 0
    constraint: int = 0


@dataclass(frozen=True)
class RiskScore:
    score: int
    dimensions: RiskDimensions
    level: RiskLevel


@dataclass
class IntentSpec:
    user_intent: str
    goal: str
    task_type: TaskType = "other"
    definition_of_done: list[str] = field(default_factory=list)
    inputs_detected: list[str] = field(default_factory=list)
    constraints: Constraints = field(default_factory=Constraints)
    output_format: str = "Appropriate format for the task"
    risk_level: RiskLevel = "low"
    risk_score: RiskScore | None = None
    assumptions: list[Assumption] = field(default_factory=list)
    blocking_questions: list[Question] = field(default_factory=list)
    audience: str | None = None
    tone: str | None = None
    platform: str | None = None
    # Triggered built-in and custom rule results, unsorted
    rule_results: list[RuleResult] = field(default_factory=list)


@dataclass(frozen=True)
class Zone:
    start_line: int  # 0-indexed
    end_line: int  # inclusive
    type: ZoneType


@dataclass
class QualityDimension:
    name: str
    score: int
    max: int = 20
    notes: list[str] = field(default_factory=list)


@dataclass
class QualityScore:
    total: int
    dimensions: list[QualityDimension]
    max: int = 100


@dataclass(frozen=True)
class ChecklistItem:
    name: str
    present: bool
    note: str | None = None


@dataclass
class Checklist:
    items: list[ChecklistItem]
    summary: str


@dataclass(frozen=True)
class ModelCost:
    provider: str
    model: str
    input_tokens: int
    estimated_output_tokens: int
    input_cost_usd: float
    output_cost_usd: float
    total_cost_usd: float


@dataclass
class CostEstimate:
    input_tokens: int
    estimated_output_tokens: int
    costs: list[ModelCost]
    recommended_model: str
    recommendation_reason: str


@dataclass
class CompiledPrompt:
    text: str
    changes: list[str]
    target: OutputTarget = "claude"
    format_version: int = 1


@dataclass
class CompressionConfig:
    mode: CompressionMode = "standard"
    token_budget: int = 8000
    preserve_patterns: list[str] = field(default_factory=list)
    enable_stub_collapse: bool = False


@dataclass
class CompressionResult:
    compressed: str
    removed: list[str]
    original_tokens: int
    compressed_tokens: int
    heuristics_applied: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mode: CompressionMode = "standard"


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str = ""


@dataclass
class ToolScore:
    name: str
    relevance_score: int
    signals: list[str] = field(default_factory=list)
    tokens_saved_estimate: int = 0


@dataclass
class PruningResult:
    tools: list[ToolScore]
    pruned_count: int
    pruned_tools: list[str]
    tokens_saved_estimate: int
    mode: Literal["rank", "prune"]
