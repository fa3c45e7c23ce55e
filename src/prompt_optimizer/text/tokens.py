"""Character-based token estimates shared by scoring, compression and pricing."""

from __future__ import annotations

import math
from typing import Any

import orjson


def estimate_tokens(text: str | None) -> int:
    """Approximate token count, ~4 characters per token."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def stable_dumps(obj: Any) -> bytes:
    """Compact JSON with sorted keys, identical across runs for equal input."""
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS)


def estimate_definition_tokens(definition: dict[str, Any]) -> int:
    return math.ceil(len(stable_dumps(definition)) / 4)
