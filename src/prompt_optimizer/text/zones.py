"""Structured-region detection for context text.

Compression heuristics consult these zones so they never rewrite fenced
code, markdown tables, lists, or whole JSON / YAML frontmatter blocks.
Every pass prefers under-matching: a single ``|`` line is not a table and
two bullets are not a list.
"""

from __future__ import annotations

import re
from typing import Iterable

import orjson

from prompt_optimizer.types import Zone

JSON_MAX_CHARS = 200_000
YAML_SCAN_LINES = 80

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")
_TABLE_RE = re.compile(r"^\s*\|")
_LIST_RE = re.compile(r"^\s*[-*+]\s")
_YAML_KEY_RE = re.compile(r"^[a-zA-Z_][\w-]*\s*:\s*")


def _claim(claimed: list[bool], start: int, end: int) -> None:
    for idx in range(start, end + 1):
        claimed[idx] = True


def _scan_fences(lines: list[str], claimed: list[bool]) -> list[Zone]:
    zones: list[Zone] = []
    i = 0
    while i < len(lines):
        match = _FENCE_RE.match(lines[i])
        if not match or claimed[i]:
            i += 1
            continue
        fence = match.group(1)
        start = i
        i += 1
        while i < len(lines) and not lines[i].startswith(fence):
            i += 1
        # Unterminated fences swallow the rest of the input without a zone
        if i < len(lines):
            zones.append(Zone(start, i, "fenced_code"))
            _claim(claimed, start, i)
        i += 1
    return zones


def _scan_tables(lines: list[str], claimed: list[bool]) -> list[Zone]:
    """Pipe-line runs of length >= 2.

    A single non-pipe line between two pipe lines stays inside the table;
    two consecutive non-pipe lines end it.
    """

    def is_row(idx: int) -> bool:
        return idx < len(lines) and not claimed[idx] and bool(_TABLE_RE.match(lines[idx]))

    zones: list[Zone] = []
    i = 0
    while i < len(lines):
        if not is_row(i):
            i += 1
            continue
        start = i
        last_row = i
        i += 1
        while i < len(lines):
            if is_row(i):
                last_row = i
                i += 1
            elif is_row(i + 1) and not claimed[i]:
                last_row = i + 1
                i += 2
            else:
                break
        if last_row > start:
            zones.append(Zone(start, last_row, "markdown_table"))
            _claim(claimed, start, last_row)
        i = last_row + 1
    return zones


def _scan_lists(lines: list[str], claimed: list[bool]) -> list[Zone]:
    zones: list[Zone] = []
    i = 0
    while i < len(lines):
        if claimed[i] or not _LIST_RE.match(lines[i]):
            i += 1
            continue
        start = i
        while i < len(lines) and not claimed[i] and _LIST_RE.match(lines[i]):
            i += 1
        end = i - 1
        if end - start >= 2:
            zones.append(Zone(start, end, "markdown_list"))
            _claim(claimed, start, end)
    return zones


def _scan_json(lines: list[str], found_any: bool) -> list[Zone]:
    if found_any:
        return []
    whole = "\n".join(lines).strip()
    if not whole or len(whole) >= JSON_MAX_CHARS or whole[0] not in "{[":
        return []
    try:
        orjson.loads(whole)
    except orjson.JSONDecodeError:
        return []
    return [Zone(0, len(lines) - 1, "json_block")]


def _scan_yaml(lines: list[str], claimed: list[bool]) -> list[Zone]:
    if not lines or not lines[0].startswith("---") or claimed[0]:
        return []
    end = -1
    for idx in range(1, min(YAML_SCAN_LINES, len(lines))):
        if lines[idx].startswith("---"):
            end = idx
            break
    if end < 0:
        return []
    if not any(_YAML_KEY_RE.match(line) for line in lines[1:end]):
        return []
    if any(claimed[0 : end + 1]):
        return []
    _claim(claimed, 0, end)
    return [Zone(0, end, "yaml_block")]


def scan_zones_by_lines(lines: list[str]) -> list[Zone]:
    claimed = [False] * len(lines)
    zones: list[Zone] = []
    zones.extend(_scan_fences(lines, claimed))
    zones.extend(_scan_tables(lines, claimed))
    zones.extend(_scan_lists(lines, claimed))
    zones.extend(_scan_json(lines, bool(zones)))
    zones.extend(_scan_yaml(lines, claimed))
    return sorted(zones, key=lambda z: (z.start_line, z.end_line))


def scan_zones(text: str) -> list[Zone]:
    """Return the structured zones of ``text`` sorted by start line."""
    return scan_zones_by_lines(text.split("\n"))


def is_line_in_zone(line: int, zones: Iterable[Zone]) -> bool:
    return any(z.start_line <= line <= z.end_line for z in zones)


def get_zones_in_range(start: int, end: int, zones: Iterable[Zone]) -> list[Zone]:
    return [z for z in zones if not (z.end_line < start or z.start_line > end)]
