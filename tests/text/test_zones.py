"""Tests for structured-zone detection."""

from prompt_optimizer.text.zones import (
    get_zones_in_range,
    is_line_in_zone,
    scan_zones,
    scan_zones_by_lines,
)
from prompt_optimizer.types import Zone


def test_fenced_code_block() -> None:
    """Test that a closed fence is one zone including both fence lines."""
    zones = scan_zones("intro\n```py\nx = 1\n```\noutro")
    assert zones == [Zone(1, 3, "fenced_code")]


def test_unterminated_fence_is_not_a_zone() -> None:
    """Test that an open fence produces nothing."""
    assert scan_zones_by_lines(["```", "x = 1"]) == []


def test_table_needs_two_rows() -> None:
    """Test that a single pipe line is not a table."""
    assert scan_zones_by_lines(["| lonely"]) == []
    assert scan_zones_by_lines(["| a | b |", "|---|---|", "| 1 | 2 |"]) == [
        Zone(0, 2, "markdown_table")
    ]


def test_table_tolerates_one_interrupting_line() -> None:
    """Test that one non-pipe line stays inside a table and two end it."""
    assert scan_zones_by_lines(["| a |", "note", "| b |"]) == [Zone(0, 2, "markdown_table")]
    assert scan_zones_by_lines(["| a |", "x", "y", "| b |"]) == []


def test_list_needs_three_items() -> None:
    """Test that two bullets are not a list."""
    assert scan_zones_by_lines(["- a", "- b"]) == []
    assert scan_zones_by_lines(["- a", "* b", "+ c"]) == [Zone(0, 2, "markdown_list")]


def test_whole_input_json() -> None:
    """Test that JSON is only a zone when it is the entire input."""
    assert scan_zones('{"a": 1,\n "b": [1, 2]}') == [Zone(0, 1, "json_block")]
    assert scan_zones('Here is the payload:\n{"a": 1}') == []


def test_yaml_frontmatter() -> None:
    """Test a leading frontmatter block."""
    zones = scan_zones("---\ntitle: Notes\ntags: x\n---\nbody text")
    assert zones == [Zone(0, 3, "yaml_block")]


def test_zones_sorted_by_start() -> None:
    """Test that zones from different passes come back in line order."""
    lines = ["- a", "- b", "- c", "", "```", "code", "```"]
    zones = scan_zones_by_lines(lines)
    assert [z.type for z in zones] == ["markdown_list", "fenced_code"]


def test_zone_queries() -> None:
    """Test membership and range overlap helpers."""
    zones = [Zone(2, 4, "fenced_code"), Zone(8, 9, "markdown_table")]

    assert is_line_in_zone(3, zones)
    assert not is_line_in_zone(5, zones)
    assert get_zones_in_range(4, 8, zones) == zones
    assert get_zones_in_range(5, 7, zones) == []
