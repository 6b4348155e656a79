"""Helpers for turning resolved packages into composer inputs."""
from __future__ import annotations

import dataclasses
import logging
from typing import FrozenSet, Iterable, List, Optional, Sequence

from .types import Package, Partial, ResolvedConfig

logger = logging.getLogger(__name__)


def effective_protected_ids(
    config: ResolvedConfig,
    packages: Iterable[Package] = (),
) -> FrozenSet[str]:
    """Config protected ids plus every package's protected-by-default ids.

    Per-partial ``protected`` flags are not folded in; conflict resolution
    reads them from the candidates themselves.
    """
    ids = set(config.protected)
    for package in packages:
        ids.update(package.protected_ids)
    return frozenset(ids)


def partials_from_packages(
    packages: Sequence[Package],
    config: Optional[ResolvedConfig] = None,
) -> List[Partial]:
    """Flatten packages into one partial list stamped with declaration order.

    ``source_index`` is the package's position in ``config.extends`` when the
    package is listed there, otherwise its position in ``packages``. The
    package name and version always come from the package.
    """
    positions = {name: i for i, name in enumerate(config.extends)} if config else {}
    partials: List[Partial] = []
    for index, package in enumerate(packages):
        source_index = positions.get(package.name, index)
        if config and config.extends and package.name not in positions:
            logger.debug("Package %s is not in the extension list; using position %d", package.name, index)
        for partial in package.partials:
            partials.append(
                dataclasses.replace(
                    partial,
                    package_name=package.name,
                    package_version=package.version,
                    source_index=source_index,
                )
            )
    return partials


__all__ = ["effective_protected_ids", "partials_from_packages"]
