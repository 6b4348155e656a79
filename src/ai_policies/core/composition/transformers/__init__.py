"""Content transformers applied to every partial before merging."""
from __future__ import annotations

from .base import (
    ContentTransformer,
    FunctionTransformer,
    TransformContext,
    TransformerLike,
    TransformerPipeline,
    as_transformer,
)
from .builtin import CollapseBlankLinesTransformer, StripTrailingWhitespaceTransformer

__all__ = [
    "ContentTransformer",
    "FunctionTransformer",
    "TransformContext",
    "TransformerLike",
    "TransformerPipeline",
    "as_transformer",
    "CollapseBlankLinesTransformer",
    "StripTrailingWhitespaceTransformer",
]
