"""Base class for ordering strategies.

An ordering strategy decides two things the rest of the engine stays
neutral about:
- which candidate wins when several partials share an id
- the final total order of the surviving partials

The merger, protected block manager, and metadata codec are shared by all
strategies; they only ask the strategy for grouping and metadata details.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AbstractSet, Any, Dict, List, Optional, Sequence, Tuple

from ..types import ConflictReason, ConflictResolution, Partial, ResolvedConfig


class OrderingStrategy(ABC):
    """Abstract base class for ordering/conflict strategies."""

    #: Model name, matches ``ResolvedConfig.model``.
    name: str = ""

    # ------------------------------------------------------------------
    # Conflict resolution
    # ------------------------------------------------------------------
    def resolve_conflict(
        self,
        candidates: Sequence[Partial],
        protected_ids: AbstractSet[str],
    ) -> ConflictResolution:
        """Pick the surviving partial among candidates sharing one id.

        Protection is decided here for every strategy: when the id is in
        ``protected_ids`` or any candidate carries the ``protected`` flag, the
        earliest-declared protecting candidate wins and every other candidate
        is overridden; those declared after it are recorded as ``ignored``.
        Otherwise the strategy's ranking decides.

        Args:
            candidates: Two or more partials with the same id, in input order.
            protected_ids: Effective protected-id set.
        """
        if not candidates:
            raise ValueError("resolve_conflict requires at least one candidate")
        partial_id = candidates[0].id

        if partial_id in protected_ids:
            protecting: Sequence[Partial] = candidates
        else:
            protecting = [c for c in candidates if c.protected]

        ignored: List[Partial] = []
        if protecting:
            declared = self._declaration_keys(candidates)
            winner = min(protecting, key=lambda c: declared[id(c)])
            reason: ConflictReason = "protected"
            ignored = [c for c in candidates if declared[id(c)] > declared[id(winner)]]
        else:
            winner, reason = self._rank(candidates)

        overridden = [c for c in candidates if c is not winner]
        return ConflictResolution(
            partial_id=partial_id,
            winner=winner,
            overridden=overridden,
            reason=reason,
            ignored=ignored,
        )

    @staticmethod
    def _declaration_keys(candidates: Sequence[Partial]) -> Dict[int, Tuple[int, int]]:
        """(source index, input position) per candidate, keyed by object identity."""
        return {id(c): (c.source_index, i) for i, c in enumerate(candidates)}

    @abstractmethod
    def _rank(self, candidates: Sequence[Partial]) -> Tuple[Partial, ConflictReason]:
        """Return the winner among unprotected candidates and the deciding reason."""
        ...

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    @abstractmethod
    def sort_key(self, partial: Partial) -> Tuple[Any, ...]:
        """Total sort key; must end with the partial id to break ties."""
        ...

    def order(self, partials: Sequence[Partial]) -> List[Partial]:
        """Return the final deterministic order (stable sort by ``sort_key``)."""
        return sorted(partials, key=self.sort_key)

    # ------------------------------------------------------------------
    # Merge and metadata hooks
    # ------------------------------------------------------------------
    def groups(self, partials: Sequence[Partial]) -> Optional[List[Tuple[str, List[Partial]]]]:
        """Group ordered partials under headings, or None for a flat document."""
        return None

    def metadata_entry(self, partial: Partial) -> Dict[str, Any]:
        """Per-partial record stored in metadata."""
        return partial.ref.to_dict()

    @abstractmethod
    def metadata_extras(
        self,
        config: ResolvedConfig,
        protected_ids: AbstractSet[str],
    ) -> Dict[str, Any]:
        """Strategy-specific metadata fields (``protected_partials`` or ``settings``)."""
        ...


__all__ = ["OrderingStrategy"]
