"""IntentSpec -> target-specific prompt text.

The compiler builds one ordered list of semantic sections and hands it to a
renderer per target, so claude, openai and generic output always carry the
same content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Literal, Sequence

from prompt_optimizer.logging import get_logger
from prompt_optimizer.types import (
    INLINE_CODE_MARKER,
    OUTPUT_TARGETS,
    CompiledPrompt,
    IntentSpec,
    OutputTarget,
    is_code_task,
    is_prose_task,
)

from .templates import (
    CODE_CONSTRAINTS,
    CONTENT_CONSTRAINTS,
    HIGH_RISK_CONSTRAINTS,
    PLATFORM_HINTS,
    UNCERTAINTY_POLICY,
    get_role,
    get_workflow,
)

logger = get_logger(__name__)

FORMAT_VERSION = 1
REDACTED = "[redacted]"

_CONTENT_DIRECTIVE = re.compile(
    r"\b(include|cover|mention|highlight|address|discuss|explain|list)\b", re.IGNORECASE
)

Style = Literal["text", "bullets", "numbered"]


@dataclass(frozen=True)
class Section:
    title: str
    tag: str
    lines: tuple[str, ...]
    style: Style = "text"
    indent: bool = True
    lead: str | None = None
    qualifier: str | None = None


def _file_inputs(spec: IntentSpec) -> list[str]:
    return [i for i in spec.inputs_detected if not i.startswith("http") and i != INLINE_CODE_MARKER]


def enrich_goal(spec: IntentSpec) -> tuple[list[str], list[str]]:
    """Goal lines plus the change notes describing what was added."""
    lines = [spec.goal]
    changes: list[str] = []

    def pin(label: str, value: str | None, what: str) -> None:
        if value:
            lines.append(f"{label}: {value}.")
            changes.append(f"Enriched goal: pinned {what} ({value})")

    if is_prose_task(spec.task_type):
        pin("Target audience", spec.audience, "target audience")
        pin("Tone", spec.tone, "tone")
        pin("Platform", spec.platform, "platform")
        if len(spec.goal) < 80 and not _CONTENT_DIRECTIVE.search(spec.user_intent):
            lines.append(
                "Include: the key message, supporting context and any required next steps "
                "or calls-to-action."
            )
            changes.append("Enriched goal: added content structure guidance (thin prompt detected)")
    elif is_code_task(spec.task_type):
        files = _file_inputs(spec)
        if files:
            lines.append(f"Target file(s): {', '.join(files)}")
            changes.append(f"Enriched goal: pinned {len(files)} target file(s)")
        if spec.constraints.scope:
            lines.append(f"Scope: {spec.constraints.scope[0]}")
            changes.append("Enriched goal: surfaced primary scope constraint")
    elif spec.task_type == "research":
        lines.append(
            "Structure findings with: background, key findings, comparison (if applicable) "
            "and recommendations."
        )
        changes.append("Enriched goal: added research output structure")
    elif spec.task_type == "analysis":
        lines.append("Lead with the most important insight. Support each conclusion with data.")
        changes.append("Enriched goal: added analysis structure guidance")
    elif spec.task_type == "data":
        refs = [i for i in spec.inputs_detected if not i.startswith("http")]
        if refs:
            lines.append(f"Input reference(s): {', '.join(refs)}")
            changes.append(f"Enriched goal: pinned {len(refs)} input reference(s)")
    else:
        pin("Target audience", spec.audience, "target audience")
        pin("Tone", spec.tone, "tone")
    return lines, changes


def build_sections(
    spec: IntentSpec, context: str | None = None
) -> tuple[list[Section], list[str]]:
    sections: list[Section] = []
    changes: list[str] = []

    sections.append(Section("Role", "role", (f"You are {get_role(spec.task_type)}.",), indent=False))
    changes.append(f"Added: role definition ({spec.task_type})")

    if spec.audience:
        sections.append(Section("Audience", "audience", (spec.audience,)))
        changes.append(f"Added: audience section ({spec.audience})")
    if spec.tone:
        sections.append(Section("Tone", "tone", (spec.tone,)))
        changes.append(f"Added: tone section ({spec.tone})")

    goal_lines, goal_changes = enrich_goal(spec)
    sections.append(Section("Goal", "goal", tuple(goal_lines), indent=False))
    changes.extend(goal_changes)
    if spec.goal != spec.user_intent and not goal_changes:
        changes.append("Extracted: single-sentence goal from prompt")

    sections.append(
        Section("Definition of Done", "definition_of_done", tuple(spec.definition_of_done), "bullets")
    )
    changes.append(f"Added: {len(spec.definition_of_done)} success criteria")

    if context and context.strip():
        sections.append(Section("Context", "context", (context.strip(),), indent=False))

    code = is_code_task(spec.task_type)
    constraint_lines = [f"Scope: {s}" for s in spec.constraints.scope]
    constraint_lines += [f"Forbidden: {f}" for f in spec.constraints.forbidden]
    constraint_lines += CODE_CONSTRAINTS if code else CONTENT_CONSTRAINTS
    if spec.risk_level == "high":
        constraint_lines += HIGH_RISK_CONSTRAINTS
        changes.append("Added: high-risk safety constraints")
    sections.append(Section("Constraints", "constraints", tuple(constraint_lines), "bullets"))
    changes.append(f"Added: {'code' if code else 'content'} safety constraints")

    if spec.platform and spec.platform in PLATFORM_HINTS:
        sections.append(
            Section(
                "Platform Guidelines",
                "platform_guidelines",
                PLATFORM_HINTS[spec.platform],
                "bullets",
                qualifier=spec.platform,
            )
        )
        changes.append(f"Added: {spec.platform} platform guidelines")

    workflow = get_workflow(spec.task_type)
    sections.append(Section("Workflow", "workflow", workflow, "numbered"))
    changes.append(f"Added: {spec.task_type} workflow ({len(workflow)} steps)")

    sections.append(Section("Output Format", "output_format", (spec.output_format,)))
    changes.append("Standardized: output format")

    sections.append(Section("Uncertainty Policy", "uncertainty_policy", UNCERTAINTY_POLICY))
    changes.append("Added: uncertainty policy (ask, don't guess)")

    if spec.assumptions:
        sections.append(
            Section(
                "Assumptions",
                "assumptions",
                tuple(
                    f"{a.assumption} [confidence: {a.confidence}, impact: {a.impact}]"
                    for a in spec.assumptions
                ),
                "bullets",
                lead="The following assumptions were made. Override any that are incorrect:",
            )
        )
        changes.append(f"Surfaced: {len(spec.assumptions)} assumption(s) for review")

    return sections, changes


def _body(section: Section, prefix: str) -> str:
    if section.style == "bullets":
        lines = [f"{prefix}- {line}" for line in section.lines]
    elif section.style == "numbered":
        lines = [f"{prefix}{i}. {line}" for i, line in enumerate(section.lines, start=1)]
    else:
        pad = prefix if section.indent else ""
        lines = [f"{pad}{line}" for line in section.lines]
    if section.lead:
        lines.insert(0, section.lead)
    return "\n".join(lines)


def _title(section: Section) -> str:
    return f"{section.title} ({section.qualifier})" if section.qualifier else section.title


def render_claude(sections: Sequence[Section]) -> str:
    blocks = []
    for s in sections:
        attrs = f' platform="{s.qualifier}"' if s.qualifier else ""
        blocks.append(f"<{s.tag}{attrs}>\n{_body(s, '  ')}\n</{s.tag}>")
    return "\n\n".join(blocks)


def render_generic(sections: Sequence[Section]) -> str:
    return "\n\n".join(f"## {_title(s)}\n{_body(s, '')}" for s in sections)


_OPENAI_SYSTEM = frozenset(
    {"role", "audience", "tone", "constraints", "platform_guidelines", "workflow", "uncertainty_policy"}
)


def render_openai(sections: Sequence[Section]) -> str:
    def block(items: list[Section]) -> str:
        return "\n\n".join(f"{_title(s)}:\n{_body(s, '')}" for s in items)

    system = [s for s in sections if s.tag in _OPENAI_SYSTEM]
    user = [s for s in sections if s.tag not in _OPENAI_SYSTEM]
    return f"[SYSTEM]\n{block(system)}\n\n[USER]\n{block(user)}"


RENDERERS: dict[str, Callable[[Sequence[Section]], str]] = {
    "claude": render_claude,
    "openai": render_openai,
    "generic": render_generic,
}


def redact_question_ids(text: str, spec: IntentSpec) -> str:
    for question in spec.blocking_questions:
        if question.id in text:
            logger.warning(f"Redacting blocking question id {question.id} from compiled prompt")
            text = text.replace(question.id, REDACTED)
    return text


def compile_prompt(
    spec: IntentSpec, context: str | None = None, target: OutputTarget = "claude"
) -> CompiledPrompt:
    """Render ``spec`` for ``target``.

    Raises:
        ValueError: If ``target`` is not one of claude, openai or generic.
    """
    if target not in OUTPUT_TARGETS:
        raise ValueError(f"Unknown target {target!r}; expected one of {', '.join(OUTPUT_TARGETS)}")
    sections, changes = build_sections(spec, context)
    text = redact_question_ids(RENDERERS[target](sections), spec)
    logger.debug(f"Compiled {len(sections)} sections for target={target}")
    return CompiledPrompt(text=text, changes=changes, target=target, format_version=FORMAT_VERSION)
