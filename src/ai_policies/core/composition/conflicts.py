"""Conflict resolution for partials sharing an identifier.

Cross-package duplicates are expected: a team package overrides a shared
rule by publishing a partial with the same id. The active ordering strategy
picks the survivor; this module groups candidates, records every decision
for auditing, and logs it.
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Dict, List, Sequence

from .strategies.base import OrderingStrategy
from .types import ConflictResolution, DeduplicationResult, Partial

logger = logging.getLogger(__name__)


def protected_warning(resolution: ConflictResolution) -> str:
    """Human-readable warning naming the later packages whose overrides were ignored."""
    discarded = ", ".join(resolution.ignored_packages)
    return (
        f"Protected partial '{resolution.partial_id}' from '{resolution.winner.package_name}' "
        f"was preserved. Overrides from {discarded} were ignored."
    )


def deduplicate_partials(
    partials: Sequence[Partial],
    protected_ids: AbstractSet[str],
    strategy: OrderingStrategy,
) -> DeduplicationResult:
    """Keep one partial per id.

    Args:
        partials: Partials already filtered for the target and exclusions.
        protected_ids: Effective protected-id set (config plus package defaults).
        strategy: Strategy deciding the winner of each conflict.

    Returns:
        DeduplicationResult with survivors in first-appearance order of their
        id, one ConflictResolution per id that had several candidates, and a
        warning per protected winner that later candidates tried to override.
    """
    groups: Dict[str, List[Partial]] = {}
    for partial in partials:
        groups.setdefault(partial.id, []).append(partial)

    survivors: List[Partial] = []
    conflicts: List[ConflictResolution] = []
    warnings: List[str] = []

    for partial_id, candidates in groups.items():
        if len(candidates) == 1:
            survivors.append(candidates[0])
            continue

        resolution = strategy.resolve_conflict(candidates, protected_ids)
        survivors.append(resolution.winner)
        conflicts.append(resolution)

        if resolution.reason == "protected" and resolution.ignored:
            message = protected_warning(resolution)
            warnings.append(message)
            logger.warning(message)
        else:
            logger.info(
                "Conflict resolved: using '%s' from %s (%s) over %s",
                partial_id,
                resolution.winner.package_name,
                resolution.reason,
                ", ".join(resolution.overridden_packages),
            )

    return DeduplicationResult(partials=survivors, conflicts=conflicts, protected_warnings=warnings)


__all__ = ["deduplicate_partials", "protected_warning"]
