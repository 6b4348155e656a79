"""Input validation for composition.

``validate`` inspects partials against a resolved configuration and returns
every problem it finds; it never raises for bad input. Strict-mode
composition turns the error-severity problems into one aggregate exception.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ai_policies.core.config import CompositionSettings

from .dependencies import resolve_dependencies
from .packages import effective_protected_ids
from .strategies import PriorityTierStrategy, strategy_for
from .types import CompositionProblem, Package, Partial, ResolvedConfig

logger = logging.getLogger(__name__)


def _duplicate_ids(partials: Sequence[Partial]) -> List[CompositionProblem]:
    problems: List[CompositionProblem] = []
    seen: Dict[str, Set[str]] = {}
    for partial in partials:
        ids = seen.setdefault(partial.package_name, set())
        if partial.id in ids:
            problems.append(
                CompositionProblem(
                    message=f"Duplicate partial ID '{partial.id}' in package {partial.package_name}",
                    type="conflict",
                    partial_id=partial.id,
                    context={"packageName": partial.package_name},
                )
            )
        ids.add(partial.id)
    return problems


def _dependency_problems(partials: Sequence[Partial]) -> List[CompositionProblem]:
    problems: List[CompositionProblem] = []
    self_dependent: Set[str] = set()

    for partial in partials:
        if partial.id in partial.depends_on and partial.id not in self_dependent:
            self_dependent.add(partial.id)
            problems.append(
                CompositionProblem(
                    message=f"Partial '{partial.id}' cannot depend on itself",
                    type="dependency",
                    partial_id=partial.id,
                )
            )

    resolution = resolve_dependencies(partials)
    for entry in resolution.missing:
        problems.append(
            CompositionProblem(
                message=f"Partial '{entry.partial_id}' has missing dependencies: {', '.join(entry.missing_deps)}",
                type="dependency",
                partial_id=entry.partial_id,
                context={"missing": list(entry.missing_deps)},
            )
        )
    for chain in resolution.circular:
        if len(chain) == 2 and chain[0] in self_dependent:
            continue
        problems.append(
            CompositionProblem(
                message=f"Circular dependency detected: {' -> '.join(chain)}",
                type="circular",
                partial_id=chain[0],
                context={"chain": list(chain)},
            )
        )
    return problems


def _reference_problems(
    partials: Sequence[Partial],
    protected_ids: Iterable[str],
    exclude_ids: Iterable[str],
) -> List[CompositionProblem]:
    problems: List[CompositionProblem] = []
    known = {p.id for p in partials}

    for protected_id in sorted(protected_ids):
        if protected_id not in known:
            problems.append(
                CompositionProblem(
                    message=f"Protected partial '{protected_id}' not found in any package",
                    type="validation",
                    partial_id=protected_id,
                )
            )

    for exclude_id in sorted(exclude_ids):
        if exclude_id not in known:
            message = f"Excluded partial '{exclude_id}' not found in any package"
            logger.warning(message)
            problems.append(
                CompositionProblem(
                    message=message,
                    type="validation",
                    partial_id=exclude_id,
                    severity="warning",
                )
            )
    return problems


def _tier_problems(partials: Sequence[Partial], strategy: PriorityTierStrategy) -> List[CompositionProblem]:
    problems: List[CompositionProblem] = []
    order = ", ".join(strategy.tier_order)
    by_slot: Dict[Tuple[str, int], List[str]] = {}

    for partial in partials:
        if not strategy.knows_tier(partial.tier):
            problems.append(
                CompositionProblem(
                    message=f"Partial '{partial.id}' has layer '{partial.tier}' which is not in compose.order ({order})",
                    type="validation",
                    partial_id=partial.id,
                    context={"tier": partial.tier, "order": list(strategy.tier_order)},
                )
            )
            continue
        ids = by_slot.setdefault((str(partial.tier), partial.weight), [])
        if partial.id not in ids:
            ids.append(partial.id)

    for (tier, weight), ids in by_slot.items():
        if len(ids) > 1:
            problems.append(
                CompositionProblem(
                    message=f"Partials {', '.join(repr(i) for i in ids)} share weight {weight} in layer '{tier}'",
                    type="validation",
                    severity="warning",
                    context={"tier": tier, "weight": weight, "ids": ids},
                )
            )
    return problems


def validate(
    partials: Sequence[Partial],
    config: ResolvedConfig,
    *,
    packages: Sequence[Package] = (),
    settings: Optional[CompositionSettings] = None,
    protected: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> List[CompositionProblem]:
    """Return every problem found in ``partials`` under ``config``.

    Args:
        partials: All candidate partials, before target filtering.
        config: Resolved configuration.
        packages: Packages the partials came from; their default protected
            ids count as configured protections.
        settings: Composition settings (tier order fallback).
        protected: Per-call replacement for the configured protected ids.
        exclude: Per-call replacement for the configured excluded ids.

    Returns:
        Problems in check order. ``severity`` is ``"error"`` for anything
        strict mode must reject and ``"warning"`` otherwise.
    """
    if protected is not None:
        protected_ids = set(protected)
        for package in packages:
            protected_ids.update(package.protected_ids)
    else:
        protected_ids = set(effective_protected_ids(config, packages))
    exclude_ids = set(exclude) if exclude is not None else set(config.exclude)

    problems = _duplicate_ids(partials)
    problems.extend(_dependency_problems(partials))
    problems.extend(_reference_problems(partials, protected_ids, exclude_ids))

    strategy = strategy_for(config, settings)
    if isinstance(strategy, PriorityTierStrategy):
        problems.extend(_tier_problems(partials, strategy))

    return problems


__all__ = ["validate"]
