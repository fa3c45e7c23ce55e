"""Tests for preserved-line marking and token estimates."""

from prompt_optimizer.text.preserve import (
    is_line_preserved,
    mark_preserved_lines,
    preserve_line_range,
)
from prompt_optimizer.text.tokens import estimate_tokens, stable_dumps


def test_user_patterns_mark_lines() -> None:
    """Test that matching lines are preserved."""
    lines = ["# TODO: keep me", "plain line", "another TODO"]
    assert mark_preserved_lines(lines, ["TODO"]) == {0, 2}


def test_invalid_pattern_warns_and_continues() -> None:
    """Test that a bad regex is reported instead of raised."""
    warnings: list[str] = []
    preserved = mark_preserved_lines(["keep", "("], ["(", "keep"], warnings)

    assert preserved == {0}
    assert len(warnings) == 1
    assert "pattern[0]" in warnings[0]


def test_duplicate_marker_always_preserved() -> None:
    """Test that compression markers are locked without user patterns."""
    lines = ["text", "... (3 duplicate lines removed)"]
    assert mark_preserved_lines(lines) == {1}


def test_preserve_line_range() -> None:
    """Test that ranges are inclusive."""
    preserved: set[int] = {0}
    preserve_line_range(3, 5, preserved)
    assert preserved == {0, 3, 4, 5}
    assert is_line_preserved(4, preserved)
    assert not is_line_preserved(2, preserved)


def test_estimate_tokens() -> None:
    """Test the four-characters-per-token estimate."""
    assert estimate_tokens("") == 0
    assert estimate_tokens(None) == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_stable_dumps_sorts_keys() -> None:
    """Test deterministic serialization."""
    assert stable_dumps({"b": 1, "a": 2}) == b'{"a":2,"b":1}'


def test_every_compression_marker_is_preserved() -> None:
    """Test that markers inserted by compression are locked on a later run."""
    lines = [
        "// ... (6 comment lines collapsed)",
        "// ... 3 more imports",
        "// [license header removed]",
        "/* ... (large comment removed for brevity) */",
        "// [test code removed, not relevant to task]",
        "[middle section truncated: 40 lines]",
        "// an ordinary comment",
    ]
    assert mark_preserved_lines(lines) == {0, 1, 2, 3, 4, 5}
