"""Base classes for content transformers.

Every partial body passes through a pipeline of transformers before it is
merged. Transformers run in ascending priority order; each receives the
previous transformer's output. They are pure: they read the body and the
context and return new text, never mutating shared state, so two targets
can be composed from the same partials independently.
"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from ..errors import TransformerError
from ..types import Partial


@dataclass(frozen=True)
class TransformContext:
    """Context provided to transformers for one partial.

    Attributes:
        partial: The partial being transformed.
        target: Output target (provider) being composed.
        all_partials: Every partial in the composition, in final order.
        settings: Read-only composition settings snapshot.
    """

    partial: Partial
    target: str
    all_partials: Sequence[Partial] = ()
    settings: Mapping[str, Any] = field(default_factory=dict)


class ContentTransformer(ABC):
    """Abstract base class for content transformers.

    Example:
        class UppercaseHeadings(ContentTransformer):
            priority = 50

            def transform(self, content: str, context: TransformContext) -> str:
                return re.sub(r"^(#+ .*)$", lambda m: m.group(1).upper(), content, flags=re.M)
    """

    #: Lower runs earlier.
    priority: int = 50

    @abstractmethod
    def transform(self, content: str, context: TransformContext) -> str:
        """Transform content using this transformer's rules.

        Args:
            content: Output of the previous transformer
            context: TransformContext for the current partial

        Returns:
            Transformed content
        """
        ...

    def get_name(self) -> str:
        """Get transformer name for logging/debugging."""
        return getattr(self, "name", None) or self.__class__.__name__


class FunctionTransformer(ContentTransformer):
    """Adapt a plain callable into a transformer.

    The callable takes either ``(content)`` or ``(content, context)``.
    """

    def __init__(
        self,
        func: Callable[..., str],
        *,
        name: Optional[str] = None,
        priority: int = 50,
    ) -> None:
        self.func = func
        self.name = name or getattr(func, "__name__", "function")
        self.priority = priority
        self._wants_context = self._accepts_context(func)

    @staticmethod
    def _accepts_context(func: Callable[..., str]) -> bool:
        try:
            params = inspect.signature(func).parameters.values()
        except (TypeError, ValueError):
            return False
        positional = [
            p for p in params
            if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        ]
        variadic = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
        return variadic or len(positional) >= 2

    def transform(self, content: str, context: TransformContext) -> str:
        if self._wants_context:
            return self.func(content, context)
        return self.func(content)


TransformerLike = Union[ContentTransformer, Callable[..., str]]


def as_transformer(item: TransformerLike) -> ContentTransformer:
    """Wrap callables in FunctionTransformer; pass transformers through."""
    if isinstance(item, ContentTransformer):
        return item
    if callable(item):
        return FunctionTransformer(item)
    raise TypeError(f"Not a transformer: {item!r}")


class TransformerPipeline:
    """Execute transformers in ascending priority order.

    Transformers with equal priority keep their insertion order.

    Example:
        pipeline = TransformerPipeline([CollapseBlankLinesTransformer()])
        pipeline.add_transformer(my_transformer)
        result = pipeline.execute(content, context)
    """

    def __init__(self, transformers: Optional[Iterable[TransformerLike]] = None) -> None:
        self._transformers: List[ContentTransformer] = []
        for transformer in transformers or ():
            self.add_transformer(transformer)

    @property
    def transformers(self) -> List[ContentTransformer]:
        """Transformers in execution order."""
        return list(self._transformers)

    def add_transformer(self, transformer: TransformerLike) -> None:
        """Add a transformer at the position its priority dictates."""
        self._transformers.append(as_transformer(transformer))
        self._transformers.sort(key=lambda t: t.priority)

    def extended(self, transformers: Iterable[TransformerLike]) -> "TransformerPipeline":
        """Return a new pipeline with additional transformers; self is unchanged."""
        pipeline = TransformerPipeline(self._transformers)
        for transformer in transformers:
            pipeline.add_transformer(transformer)
        return pipeline

    def names(self) -> List[str]:
        return [t.get_name() for t in self._transformers]

    def execute(self, content: str, context: TransformContext) -> str:
        """Run every transformer over ``content``.

        Raises:
            TransformerError: If a transformer raises or returns a non-string.
        """
        result = content
        for transformer in self._transformers:
            name = transformer.get_name()
            try:
                result = transformer.transform(result, context)
            except Exception as exc:
                raise TransformerError(
                    f"Transformer '{name}' failed for partial '{context.partial.id}' "
                    f"({context.target}): {exc}",
                    transformer=name,
                    partial_id=context.partial.id,
                    target=context.target,
                ) from exc
            if not isinstance(result, str):
                raise TransformerError(
                    f"Transformer '{name}' returned {type(result).__name__}, expected str",
                    transformer=name,
                    partial_id=context.partial.id,
                    target=context.target,
                )
        return result

    def __len__(self) -> int:
        return len(self._transformers)


__all__ = [
    "TransformContext",
    "ContentTransformer",
    "FunctionTransformer",
    "TransformerLike",
    "TransformerPipeline",
    "as_transformer",
]
