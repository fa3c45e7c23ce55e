from __future__ import annotations

import re
from typing import Sequence

from prompt_optimizer.logging import get_logger

logger = get_logger(__name__)

DUPLICATE_MARKER_RE = re.compile(r"^\s*\.\.\.\s*\(\d+\s+duplicate lines removed\)\s*$")
COMMENT_MARKER_RE = re.compile(r"^\s*// \.\.\. \(\d+ comment lines collapsed\)\s*$")
IMPORT_MARKER_RE = re.compile(r"^\s*// \.\.\. \d+ more imports\s*$")
LICENSE_MARKER_RE = re.compile(r"^\s*// \[license header removed\]\s*$")
LARGE_COMMENT_MARKER_RE = re.compile(r"^\s*/\* \.\.\. \(large comment removed for brevity\) \*/\s*$")
TEST_SECTION_MARKER_RE = re.compile(r"^\s*// \[test code removed, not relevant to task\]\s*$")
MIDDLE_MARKER_RE = re.compile(r"^\s*\[middle section truncated: \d+ lines\]\s*$")

# Compression markers are never rewritten, whatever the caller asks for
_INTERNAL_PATTERNS: tuple[re.Pattern[str], ...] = (
    DUPLICATE_MARKER_RE,
    COMMENT_MARKER_RE,
    IMPORT_MARKER_RE,
    LICENSE_MARKER_RE,
    LARGE_COMMENT_MARKER_RE,
    TEST_SECTION_MARKER_RE,
    MIDDLE_MARKER_RE,
)


def _compile_patterns(
    patterns: Sequence[str] | None, warnings: list[str] | None
) -> list[re.Pattern[str]]:
    compiled: list[re.Pattern[str]] = []
    for idx, raw in enumerate(patterns or ()):
        try:
            compiled.append(re.compile(raw))
        except re.error as exc:
            message = f'Invalid regex at pattern[{idx}]: "{raw}": {exc}'
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
    return compiled


def mark_preserved_lines(
    lines: Sequence[str],
    patterns: Sequence[str] | None = None,
    warnings: list[str] | None = None,
) -> set[int]:
    """Indices of lines that no compression heuristic may touch.

    Invalid user patterns are skipped; their messages are appended to
    ``warnings`` when the caller passes a list.
    """
    active = list(_INTERNAL_PATTERNS) + _compile_patterns(patterns, warnings)
    return {
        idx
        for idx, line in enumerate(lines)
        if any(p.search(line) for p in active)
    }


def preserve_line_range(start: int, end: int, preserved: set[int]) -> None:
    preserved.update(range(start, end + 1))


def is_line_preserved(line: int, preserved: set[int]) -> bool:
    return line in preserved
