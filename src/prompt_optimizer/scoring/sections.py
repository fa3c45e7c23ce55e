"""Section detection shared by the structural scorer and the checklist.

A section counts as present in any of the three rendered shapes: an XML tag
(``<goal>``), a Markdown header (``## Goal``) or a labelled line (``Goal:``).
"""

from __future__ import annotations

import re


def _section_re(tag: str, title: str) -> re.Pattern[str]:
    return re.compile(
        rf"<{tag}[\s>]|^##\s+{title}\b|^{title}(?:\s*\([^)\n]*\))?:",
        re.IGNORECASE | re.MULTILINE,
    )


SECTION_MARKERS: dict[str, re.Pattern[str]] = {
    "Role": _section_re("role", "Role"),
    "Audience": _section_re("audience", "Audience"),
    "Tone": _section_re("tone", "Tone"),
    "Goal": _section_re("goal", "Goal"),
    "Definition of Done": _section_re("definition_of_done", "Definition of Done"),
    "Context": _section_re("context", "Context"),
    "Constraints": _section_re("constraints", "Constraints"),
    "Platform Guidelines": _section_re("platform_guidelines", "Platform Guidelines"),
    "Workflow": _section_re("workflow", "Workflow"),
    "Output Format": _section_re("output_format", "Output Format"),
    "Uncertainty Policy": _section_re("uncertainty_policy", "Uncertainty Policy"),
    "Assumptions": _section_re("assumptions", "Assumptions"),
}


def has_section(text: str, name: str) -> bool:
    return SECTION_MARKERS[name].search(text) is not None
