"""Composition error classes.

Anomalies the engine can recover from (missing dependencies, cycles,
conflicts, malformed protected blocks) are returned as data. These
exceptions cover the fatal cases only.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, TYPE_CHECKING

from ai_policies.core.exceptions import AiPoliciesError

if TYPE_CHECKING:
    from .types import CompositionProblem, DependencyResolution


class CompositionError(AiPoliciesError):
    """Raised when composition of a target fails."""


class ConfigurationError(CompositionError, ValueError):
    """Raised when the resolved configuration cannot drive a composition."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        CompositionError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class DependencyResolutionError(CompositionError):
    """Raised when cycles or missing dependencies block a composition."""

    def __init__(self, message: str, *, resolution: "DependencyResolution", target: str) -> None:
        super().__init__(
            message,
            context={
                "target": target,
                "circular": [list(c) for c in resolution.circular],
                "missing": {m.partial_id: list(m.missing_deps) for m in resolution.missing},
            },
        )
        self.resolution = resolution


class TransformerError(CompositionError):
    """Raised when a content transformer fails for a partial."""

    def __init__(
        self,
        message: str,
        *,
        transformer: str,
        partial_id: Optional[str] = None,
        target: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            context={"transformer": transformer, "partialId": partial_id, "target": target},
        )
        self.transformer = transformer
        self.partial_id = partial_id
        self.target = target


class StrictCompositionError(CompositionError):
    """Raised in strict mode when validation reports any error."""

    def __init__(self, problems: Sequence["CompositionProblem"], *, target: Optional[str] = None) -> None:
        self.problems: List["CompositionProblem"] = list(problems)
        summary = "; ".join(p.message for p in self.problems)
        super().__init__(
            f"Composition failed with {len(self.problems)} problem(s): {summary}",
            context={"target": target, "problems": [p.to_dict() for p in self.problems]},
        )


class CompositionSessionError(CompositionError, RuntimeError):
    """Raised when a closed or unopened composition session is used."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        CompositionError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


__all__ = [
    "CompositionError",
    "ConfigurationError",
    "DependencyResolutionError",
    "TransformerError",
    "StrictCompositionError",
    "CompositionSessionError",
]
