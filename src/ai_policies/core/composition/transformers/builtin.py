"""Built-in transformers."""
from __future__ import annotations

from ai_policies.core.utils.text import collapse_blank_lines, strip_trailing_whitespace

from .base import ContentTransformer, TransformContext


class CollapseBlankLinesTransformer(ContentTransformer):
    """Collapse runs of blank lines to one blank line.

    Installed in every pipeline so regenerating a document is idempotent on
    whitespace.
    """

    name = "remove-empty-lines"

    def __init__(self, priority: int = 100) -> None:
        self.priority = priority

    def transform(self, content: str, context: TransformContext) -> str:
        return collapse_blank_lines(content)


class StripTrailingWhitespaceTransformer(ContentTransformer):
    """Strip trailing spaces and tabs from each line."""

    name = "strip-trailing-whitespace"
    priority = 90

    def transform(self, content: str, context: TransformContext) -> str:
        return strip_trailing_whitespace(content)


__all__ = ["CollapseBlankLinesTransformer", "StripTrailingWhitespaceTransformer"]
