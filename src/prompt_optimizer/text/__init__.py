from .preserve import is_line_preserved, mark_preserved_lines, preserve_line_range
from .tokens import estimate_tokens
from .zones import get_zones_in_range, is_line_in_zone, scan_zones, scan_zones_by_lines

__all__ = [
    "estimate_tokens",
    "get_zones_in_range",
    "is_line_in_zone",
    "is_line_preserved",
    "mark_preserved_lines",
    "preserve_line_range",
    "scan_zones",
    "scan_zones_by_lines",
]
