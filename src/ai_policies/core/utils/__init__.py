"""Utility helpers for ai-policies core.

- merge: layered dictionary merging for settings
- text: whitespace normalisation and content hashing
- time: timezone-aware timestamps
"""
from __future__ import annotations

from .merge import deep_merge, merge_arrays, merge_layers
from .text import (
    collapse_blank_lines,
    content_hash,
    normalize_whitespace,
    strip_trailing_whitespace,
)
from .time import format_timestamp, parse_iso8601, utc_now, utc_timestamp

__all__ = [
    "deep_merge",
    "merge_arrays",
    "merge_layers",
    "collapse_blank_lines",
    "content_hash",
    "normalize_whitespace",
    "strip_trailing_whitespace",
    "format_timestamp",
    "parse_iso8601",
    "utc_now",
    "utc_timestamp",
]
