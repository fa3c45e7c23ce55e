from __future__ import annotations

from prompt_optimizer.types import Checklist, ChecklistItem

from .sections import has_section

CHECKLIST_ORDER: tuple[str, ...] = (
    "Role",
    "Goal",
    "Definition of Done",
    "Constraints",
    "Workflow",
    "Output Format",
    "Uncertainty Policy",
    "Audience",
    "Platform Guidelines",
)
OPTIONAL_SECTIONS = frozenset({"Audience", "Platform Guidelines"})


def generate_checklist(text: str) -> Checklist:
    """Report which canonical sections a (compiled) prompt carries."""
    items: list[ChecklistItem] = []
    missing_required: list[str] = []
    for name in CHECKLIST_ORDER:
        present = has_section(text, name)
        note = None
        if not present:
            if name in OPTIONAL_SECTIONS:
                note = "optional"
            else:
                note = "missing"
                missing_required.append(name)
        items.append(ChecklistItem(name=name, present=present, note=note))

    count = sum(1 for item in items if item.present)
    summary = f"{count}/{len(CHECKLIST_ORDER)} sections present"
    if missing_required:
        summary += f"; missing: {', '.join(missing_required)}"
    return Checklist(items=items, summary=summary)
