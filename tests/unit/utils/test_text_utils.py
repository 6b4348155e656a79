"""Tests for whitespace helpers and the content hash."""
from __future__ import annotations

import pytest

from ai_policies.core.utils import (
    collapse_blank_lines,
    content_hash,
    normalize_whitespace,
    strip_trailing_whitespace,
)


@pytest.mark.parametrize(
    "content, expected",
    [
        ("", "0"),
        ("a", "61"),
        ("ab", "c21"),
        ("\U0001F600", "1b0d63"),
    ],
)
def test_content_hash_known_values(content: str, expected: str) -> None:
    assert content_hash(content) == expected


def test_content_hash_is_stable_and_sensitive() -> None:
    text = "# Policies\n\nNever commit secrets."
    assert content_hash(text) == content_hash(text)
    assert content_hash(text) != content_hash(text + " ")


def test_content_hash_of_long_text_stays_short_hex() -> None:
    digest = content_hash("x" * 10_000)
    assert len(digest) <= 8
    int(digest, 16)


def test_collapse_blank_lines() -> None:
    assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"
    assert collapse_blank_lines("a\n \n\t\nb") == "a\n\nb"
    assert collapse_blank_lines("a\n\nb") == "a\n\nb"


def test_collapse_blank_lines_is_idempotent() -> None:
    once = collapse_blank_lines("a\n\n\n\n\nb\n\n\n")
    assert collapse_blank_lines(once) == once


def test_strip_trailing_whitespace() -> None:
    assert strip_trailing_whitespace("a  \nb\t\nc") == "a\nb\nc"


def test_normalize_whitespace() -> None:
    assert normalize_whitespace("a  \nb\n\n\n") == "a\nb\n"
    assert normalize_whitespace("abc") == "abc\n"
