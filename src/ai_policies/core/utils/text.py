"""Text helpers shared by the merger and the metadata codec."""
from __future__ import annotations

import re


_BLANK_RUN = re.compile(r"\n\s*\n\s*\n")
_TRAILING_WS = re.compile(r"[ \t]+$", re.MULTILINE)
_TRAILING_NEWLINES = re.compile(r"\n*\Z")


def collapse_blank_lines(content: str) -> str:
    """Collapse runs of two or more blank lines to a single blank line.

    Idempotent: ``collapse_blank_lines(collapse_blank_lines(x)) == collapse_blank_lines(x)``.
    """
    return _BLANK_RUN.sub("\n\n", content)


def strip_trailing_whitespace(content: str) -> str:
    """Remove trailing spaces and tabs from every line."""
    return _TRAILING_WS.sub("", content)


def normalize_whitespace(content: str) -> str:
    """Strip trailing whitespace, collapse blank runs, end with one newline."""
    result = strip_trailing_whitespace(content)
    result = collapse_blank_lines(result)
    return _TRAILING_NEWLINES.sub("\n", result, count=1)


def content_hash(content: str) -> str:
    """Return a short change-detection hash of ``content``.

    Rolling 32-bit ``h * 31 + unit`` over UTF-16 code units, so documents
    generated by other ai-policies implementations hash identically.
    Not suitable for anything security related.
    """
    data = content.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


__all__ = [
    "collapse_blank_lines",
    "strip_trailing_whitespace",
    "normalize_whitespace",
    "content_hash",
]
