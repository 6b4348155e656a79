"""Priority-tier ordering strategy.

Partials carry a tier (``core``, ``domain``, ``stack``, ``team`` by default)
and a weight. The tier order lists tiers ascending: earlier tiers are
emitted first, later tiers outrank earlier ones in conflicts.

Conflict precedence (after protection):
1. Higher tier (later in the tier order) wins
2. Higher weight wins
3. Lexicographically later package name wins
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Any, Dict, List, Optional, Sequence, Tuple

from ..types import ConflictReason, Partial, ResolvedConfig
from .base import OrderingStrategy

logger = logging.getLogger(__name__)


class PriorityTierStrategy(OrderingStrategy):
    """Order by (tier rank, weight, id); resolve conflicts by tier then weight."""

    name = "priority"

    def __init__(self, tier_order: Sequence[str]) -> None:
        if not tier_order:
            raise ValueError("Priority-tier model requires a non-empty tier order")
        self.tier_order: Tuple[str, ...] = tuple(tier_order)
        self._rank_of: Dict[str, int] = {t: i for i, t in enumerate(self.tier_order)}

    def tier_rank(self, tier: Optional[str]) -> int:
        """Index of ``tier`` in the tier order; unknown tiers rank after all others."""
        if tier is None:
            return len(self.tier_order)
        return self._rank_of.get(tier, len(self.tier_order))

    def knows_tier(self, tier: Optional[str]) -> bool:
        return tier is not None and tier in self._rank_of

    def _precedence(self, partial: Partial) -> Tuple[int, int, str]:
        # Unknown tiers never outrank a known one in a conflict.
        tier = self._rank_of.get(partial.tier or "", -1)
        return (tier, partial.weight, partial.package_name)

    def _rank(self, candidates: Sequence[Partial]) -> Tuple[Partial, ConflictReason]:
        ranked = sorted(candidates, key=self._precedence, reverse=True)
        winner, runner_up = ranked[0], ranked[1]
        w, r = self._precedence(winner), self._precedence(runner_up)
        if w[0] != r[0]:
            reason: ConflictReason = "layer-priority"
        elif w[1] != r[1]:
            reason = "weight"
        else:
            reason = "package-name"
        return winner, reason

    def sort_key(self, partial: Partial) -> Tuple[Any, ...]:
        return (self.tier_rank(partial.tier), partial.weight, partial.id)

    def groups(self, partials: Sequence[Partial]) -> Optional[List[Tuple[str, List[Partial]]]]:
        buckets: Dict[str, List[Partial]] = {t: [] for t in self.tier_order}
        for partial in partials:
            if not self.knows_tier(partial.tier):
                logger.warning(
                    "Skipping partial %s with unknown tier: %s", partial.id, partial.tier
                )
                continue
            buckets[partial.tier].append(partial)  # type: ignore[index]
        return [(tier, buckets[tier]) for tier in self.tier_order if buckets[tier]]

    def metadata_entry(self, partial: Partial) -> Dict[str, Any]:
        entry = partial.ref.to_dict()
        entry["layer"] = partial.tier
        entry["weight"] = partial.weight
        return entry

    def metadata_extras(
        self,
        config: ResolvedConfig,
        protected_ids: AbstractSet[str],
    ) -> Dict[str, Any]:
        settings = config.settings_snapshot()
        settings["order"] = list(self.tier_order)
        return {"settings": settings}


__all__ = ["PriorityTierStrategy"]
