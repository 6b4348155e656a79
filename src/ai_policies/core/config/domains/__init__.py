"""Domain-specific settings accessors."""
from __future__ import annotations

from .composition import CompositionSettings, ProtectedBlockMarkers, TeamAppendMarkers

__all__ = ["CompositionSettings", "ProtectedBlockMarkers", "TeamAppendMarkers"]
