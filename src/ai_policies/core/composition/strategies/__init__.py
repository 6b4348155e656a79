"""Ordering/conflict strategies.

- PositionalStrategy: declaration order, last wins
- PriorityTierStrategy: tier + weight ordering, tier/weight precedence

Use ``strategy_for(config)`` to pick the strategy a configuration asks for.
"""
from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from ..types import ResolvedConfig
from .base import OrderingStrategy
from .positional import PositionalStrategy
from .priority import PriorityTierStrategy

if TYPE_CHECKING:
    from ai_policies.core.config import CompositionSettings


def strategy_for(
    config: ResolvedConfig,
    settings: Optional["CompositionSettings"] = None,
) -> OrderingStrategy:
    """Return the strategy selected by ``config.model``.

    The priority model uses ``config.tier_order`` when set, otherwise the
    tier order from settings.
    """
    if config.model == "priority":
        tier_order = config.tier_order
        if not tier_order:
            if settings is None:
                from ai_policies.core.config import CompositionSettings

                settings = CompositionSettings()
            tier_order = tuple(settings.tier_order)
        return PriorityTierStrategy(tier_order)
    if config.model == "positional":
        return PositionalStrategy()
    raise ValueError(f"Unknown ordering model: {config.model!r}")


__all__ = [
    "OrderingStrategy",
    "PositionalStrategy",
    "PriorityTierStrategy",
    "strategy_for",
]
