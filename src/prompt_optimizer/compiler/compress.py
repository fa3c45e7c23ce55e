"""Line-based context compression.

Zones (fenced code, tables, lists, JSON / YAML blocks) and caller-preserved
lines are computed once on the input and carried as a ``locked`` flag on every
line; no heuristic rewrites or drops a locked line. Each replacement is only
applied when it makes the text shorter. Inserted markers are locked as well,
and are recognized again on a later run, so compressing the output a second
time changes nothing in standard mode.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Callable, get_args

from prompt_optimizer.config import settings
from prompt_optimizer.logging import get_logger
from prompt_optimizer.text.preserve import mark_preserved_lines
from prompt_optimizer.text.tokens import estimate_tokens
from prompt_optimizer.text.zones import scan_zones_by_lines
from prompt_optimizer.types import CompressionConfig, CompressionMode, CompressionResult

logger = get_logger(__name__)

_I = re.IGNORECASE

LICENSE_SCAN_LINES = 40
COMMENT_RUN_MIN = 5
IMPORT_KEEP = 5
LARGE_COMMENT_CHARS = 200
MIDDLE_KEEP_RATIO = 0.3

LICENSE_MARKER = "// [license header removed]"
LARGE_COMMENT_MARKER = "/* ... (large comment removed for brevity) */"
TEST_SECTION_MARKER = "// [test code removed, not relevant to task]"
STUB_BODY = "{ /* stub */ }"

_HEADER_COMMENT = re.compile(r"^\s*(//|#|/\*|\*)")
_LEGAL_TOKEN = re.compile(r"\b(copyright|licensed\s+under|spdx|apache|mit|gpl)\b", _I)
_SLASH_COMMENT = re.compile(r"^(\s*)//(?!/)")
_IMPORT = re.compile(r"^\s*(import\s|from\s+\S+\s+import\s)")
_TEST_INTENT = re.compile(r"\b(tests?|spec|jest|mocha|vitest|pytest)\b", _I)
_TEST_HEADER = re.compile(r"^\s*(//|#)\s*(tests?|spec|__tests__)\b", _I)
_SECTION_BREAK = re.compile(r"^\s*(//|#)")
_INLINE_STUB = re.compile(r"^(?P<head>.*?)\{\s*/\*.*\*/\s*\}(?P<tail>\s*;?)\s*$")
_OPENS_BLOCK = re.compile(r"^(?P<head>.*?)\{\s*$")
_CLOSES_BLOCK = re.compile(r"^\s*\}(?P<tail>\s*;?)\s*$")
_COMMENT_ONLY = re.compile(r"^\s*(//|/\*|\*|\*/)")
_THROW = re.compile(r"\b(throw|raise)\b")


@dataclass
class _Line:
    text: str
    locked: bool = False


@dataclass
class _Report:
    removed: list[str] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)

    def add(self, heuristic: str, description: str) -> None:
        self.removed.append(description)
        if heuristic not in self.applied:
            self.applied.append(heuristic)


def _indent(text: str) -> str:
    return text[: len(text) - len(text.lstrip())]


def _shorter(old: list[_Line], new: list[str]) -> bool:
    return len("\n".join(new)) < len("\n".join(line.text for line in old))


def _unlocked(lines: list[_Line]) -> bool:
    return not any(line.locked for line in lines)


def strip_trailing_whitespace(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    stripped = 0
    for line in lines:
        text = line.text if line.locked else line.text.rstrip(" \t")
        if text != line.text:
            stripped += 1
            line = _Line(text)
        out.append(line)
    if stripped:
        report.add("whitespace", f"Stripped trailing whitespace from {stripped} line(s)")
    return out


def strip_license_header(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    start = 0
    while start < len(lines) and not lines[start].text.strip():
        start += 1
    end = start
    limit = min(len(lines), LICENSE_SCAN_LINES)
    while end < limit and _HEADER_COMMENT.match(lines[end].text):
        end += 1

    block = lines[start:end]
    if not block or not _unlocked(block):
        return lines
    if not _LEGAL_TOKEN.search("\n".join(line.text for line in block)):
        return lines
    if not _shorter(block, [LICENSE_MARKER]):
        return lines
    report.add("license_header", f"Removed {len(block)}-line license header")
    return lines[:start] + [_Line(LICENSE_MARKER, locked=True)] + lines[end:]


def collapse_comment_runs(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    total = 0
    i = 0
    while i < len(lines):
        j = i
        while j < len(lines) and not lines[j].locked and _SLASH_COMMENT.match(lines[j].text):
            j += 1
        if j - i >= COMMENT_RUN_MIN:
            marker = f"{_indent(lines[i].text)}// ... ({j - i} comment lines collapsed)"
            if _shorter(lines[i:j], [marker]):
                out.append(_Line(marker, locked=True))
                total += j - i
                i = j
                continue
        if j > i:
            out.extend(lines[i:j])
            i = j
        else:
            out.append(lines[i])
            i += 1
    if total:
        report.add("comment_collapse", f"Collapsed {total} consecutive comment lines")
    return out


def collapse_duplicates(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    total = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        j = i + 1
        if not line.locked and line.text.strip():
            while j < len(lines) and not lines[j].locked and lines[j].text == line.text:
                j += 1
        dupes = j - i - 1
        out.append(line)
        if dupes:
            marker = f"... ({dupes} duplicate lines removed)"
            if _shorter(lines[i + 1 : j], [marker]):
                out.append(_Line(marker, locked=True))
                total += dupes
            else:
                out.extend(lines[i + 1 : j])
        i = j
    if total:
        report.add("duplicate_collapse", f"Removed {total} duplicate lines")
    return out


def trim_imports(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    i = 0
    while i < len(lines):
        j = i
        while j < len(lines) and not lines[j].locked and _IMPORT.match(lines[j].text):
            j += 1
        run = j - i
        if run > IMPORT_KEEP:
            marker = f"// ... {run - IMPORT_KEEP} more imports"
            if _shorter(lines[i + IMPORT_KEEP : j], [marker]):
                out.extend(lines[i : i + IMPORT_KEEP])
                out.append(_Line(marker, locked=True))
                report.add(
                    "import_trim",
                    f"Trimmed {run - IMPORT_KEEP} import statements (kept first {IMPORT_KEEP})",
                )
                i = j
                continue
        if run:
            out.extend(lines[i:j])
            i = j
        else:
            out.append(lines[i])
            i += 1
    return out


def _block_comment_end(lines: list[_Line], start: int) -> int | None:
    first = lines[start].text.strip()
    if not first.startswith("/*"):
        return None
    if first.endswith("*/") and len(first) > 3:
        return start
    for j in range(start + 1, len(lines)):
        if "*/" in lines[j].text:
            return j if lines[j].text.strip().endswith("*/") else None
    return None


def remove_large_comments(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    i = 0
    while i < len(lines):
        end = None if lines[i].locked else _block_comment_end(lines, i)
        if end is not None:
            block = lines[i : end + 1]
            size = len("\n".join(line.text for line in block))
            marker = f"{_indent(block[0].text)}{LARGE_COMMENT_MARKER}"
            if size >= LARGE_COMMENT_CHARS and _unlocked(block) and _shorter(block, [marker]):
                out.append(_Line(marker, locked=True))
                report.add("large_comment", f"Removed {len(block)}-line block comment")
                i = end + 1
                continue
        out.append(lines[i])
        i += 1
    return out


def remove_test_sections(
    lines: list[_Line], report: _Report, config: CompressionConfig, intent: str = ""
) -> list[_Line]:
    if _TEST_INTENT.search(intent):
        return lines
    out: list[_Line] = []
    i = 0
    while i < len(lines):
        if not lines[i].locked and _TEST_HEADER.match(lines[i].text):
            j = i + 1
            while (
                j < len(lines)
                and not lines[j].locked
                and not _SECTION_BREAK.match(lines[j].text)
            ):
                j += 1
            if _shorter(lines[i:j], [TEST_SECTION_MARKER]):
                out.append(_Line(TEST_SECTION_MARKER, locked=True))
                report.add("test_section", f"Removed {j - i}-line test section (not relevant to intent)")
                i = j
                continue
        out.append(lines[i])
        i += 1
    return out


def collapse_stubs(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    if config.mode != "aggressive" or not config.enable_stub_collapse:
        return lines
    out: list[_Line] = []
    total = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.locked or _THROW.search(line.text):
            out.append(line)
            i += 1
            continue

        inline = _INLINE_STUB.match(line.text)
        if inline:
            replacement = f"{inline.group('head')}{STUB_BODY}{inline.group('tail')}"
            if _shorter([line], [replacement]):
                out.append(_Line(replacement))
                total += 1
                i += 1
                continue

        opener = _OPENS_BLOCK.match(line.text)
        if opener:
            j = i + 1
            while j < len(lines) and _COMMENT_ONLY.match(lines[j].text):
                j += 1
            closer = _CLOSES_BLOCK.match(lines[j].text) if j < len(lines) else None
            block = lines[i : j + 1]
            if (
                closer
                and j > i + 1
                and _unlocked(block)
                and not any(_THROW.search(b.text) for b in block)
            ):
                replacement = f"{opener.group('head')}{STUB_BODY}{closer.group('tail')}"
                if _shorter(block, [replacement]):
                    out.append(_Line(replacement))
                    total += 1
                    i = j + 1
                    continue
        out.append(line)
        i += 1
    if total:
        report.add("stub_collapse", f"Collapsed {total} comment-only stub(s)")
    return out


def truncate_middle(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    if config.mode != "aggressive":
        return lines
    if estimate_tokens("\n".join(line.text for line in lines)) <= config.token_budget:
        return lines
    keep = math.floor(len(lines) * MIDDLE_KEEP_RATIO)
    if keep * 2 >= len(lines):
        return lines

    out: list[_Line] = list(lines[:keep])
    pending: list[_Line] = []
    total = 0

    def flush() -> None:
        nonlocal total
        if not pending:
            return
        marker = f"[middle section truncated: {len(pending)} lines]"
        if _shorter(pending, [marker]):
            out.append(_Line(marker, locked=True))
            total += len(pending)
        else:
            out.extend(pending)
        pending.clear()

    for line in lines[keep : len(lines) - keep]:
        if line.locked:
            flush()
            out.append(line)
        else:
            pending.append(line)
    flush()
    out.extend(lines[len(lines) - keep :])
    if total:
        report.add("middle_truncation", f"Truncated {total} middle lines (over {config.token_budget} token budget)")
    return out


def normalize_whitespace(lines: list[_Line], report: _Report, config: CompressionConfig) -> list[_Line]:
    out: list[_Line] = []
    blanks = 0
    for line in lines:
        if not line.locked and not line.text and out and not out[-1].locked and not out[-1].text:
            blanks += 1
            continue
        out.append(line)

    while out and not out[0].locked and not out[0].text:
        out.pop(0)
        blanks += 1
    while out and not out[-1].locked and not out[-1].text:
        out.pop()
        blanks += 1

    if blanks:
        report.add("whitespace", f"Collapsed {blanks} excess blank line(s)")
    return out


Heuristic = Callable[[list[_Line], _Report, CompressionConfig], list[_Line]]

# Fixed application order
HEURISTICS: tuple[Heuristic, ...] = (
    strip_trailing_whitespace,
    strip_license_header,
    collapse_comment_runs,
    collapse_duplicates,
    trim_imports,
    remove_large_comments,
)
LATE_HEURISTICS: tuple[Heuristic, ...] = (
    collapse_stubs,
    truncate_middle,
    normalize_whitespace,
)


def default_config() -> CompressionConfig:
    return CompressionConfig(
        mode=settings.COMPRESSION_MODE, token_budget=settings.COMPRESSION_TOKEN_BUDGET
    )


def compress_context(
    context: str, intent: str = "", config: CompressionConfig | None = None
) -> CompressionResult:
    """Shrink auxiliary context without touching zones or preserved lines.

    Args:
        context: Raw context text (files, logs, docs).
        intent: Task description; test sections are dropped unless it mentions tests.
        config: Mode, token budget and preserve patterns. Defaults come from settings.

    Returns:
        CompressionResult whose ``compressed_tokens`` never exceeds ``original_tokens``.

    Raises:
        ValueError: On an unknown mode or a negative token budget.
    """
    config = config or default_config()
    if config.mode not in get_args(CompressionMode):
        raise ValueError(f"Unknown compression mode {config.mode!r}; expected standard or aggressive")
    if config.token_budget < 0:
        raise ValueError("token_budget must be >= 0")

    if not context:
        return CompressionResult(compressed="", removed=[], original_tokens=0, compressed_tokens=0, mode=config.mode)

    original_tokens = estimate_tokens(context)
    normalized = context.replace("\r\n", "\n")
    raw_lines = normalized.split("\n")

    warnings: list[str] = []
    locked = mark_preserved_lines(raw_lines, config.preserve_patterns, warnings)
    for zone in scan_zones_by_lines(raw_lines):
        locked.update(range(zone.start_line, zone.end_line + 1))
    lines = [_Line(text, idx in locked) for idx, text in enumerate(raw_lines)]

    report = _Report()
    for heuristic in HEURISTICS:
        lines = heuristic(lines, report, config)
    lines = remove_test_sections(lines, report, config, intent)
    for heuristic in LATE_HEURISTICS:
        lines = heuristic(lines, report, config)

    compressed = "\n".join(line.text for line in lines)
    compressed_tokens = estimate_tokens(compressed)
    if compressed_tokens > original_tokens:
        warnings.append("Compression grew the text; returning the normalized original")
        compressed, compressed_tokens = normalized, estimate_tokens(normalized)

    logger.debug(
        f"Compressed context {original_tokens} -> {compressed_tokens} tokens "
        f"(mode={config.mode}, heuristics={report.applied})"
    )
    return CompressionResult(
        compressed=compressed,
        removed=report.removed,
        original_tokens=original_tokens,
        compressed_tokens=compressed_tokens,
        heuristics_applied=report.applied,
        warnings=warnings,
        mode=config.mode,
    )
