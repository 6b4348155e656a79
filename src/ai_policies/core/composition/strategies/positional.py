"""Positional ordering strategy ("last wins").

Partials are emitted in the order their packages appear in the configured
extension list. When two packages provide the same id, the later-declared
package wins unless the id is protected.
"""
from __future__ import annotations

from typing import AbstractSet, Any, Dict, Sequence, Tuple

from ..types import ConflictReason, Partial, ResolvedConfig
from .base import OrderingStrategy


class PositionalStrategy(OrderingStrategy):
    """Order by declaration position; the last declaration of an id wins."""

    name = "positional"

    def _rank(self, candidates: Sequence[Partial]) -> Tuple[Partial, ConflictReason]:
        # Equal positions (same package listed twice) fall back to input order.
        winner = max(enumerate(candidates), key=lambda pair: (pair[1].source_index, pair[0]))[1]
        return winner, "last-wins"

    def sort_key(self, partial: Partial) -> Tuple[Any, ...]:
        return (partial.source_index, partial.id)

    def metadata_extras(
        self,
        config: ResolvedConfig,
        protected_ids: AbstractSet[str],
    ) -> Dict[str, Any]:
        return {"protected_partials": sorted(protected_ids)}


__all__ = ["PositionalStrategy"]
