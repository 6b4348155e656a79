"""ai-policies settings system.

Usage:
    from ai_policies.core.config import CompositionSettings

    settings = CompositionSettings()
    settings.tier_order

    # Layer caller overrides over the bundled defaults
    settings = CompositionSettings({"composition": {"tierOrder": ["base", "team"]}})
"""
from __future__ import annotations

from .base import BaseDomainConfig
from .domains import CompositionSettings, ProtectedBlockMarkers, TeamAppendMarkers
from .validation import load_schema, schema_errors, validate_payload

__all__ = [
    "BaseDomainConfig",
    "CompositionSettings",
    "ProtectedBlockMarkers",
    "TeamAppendMarkers",
    "load_schema",
    "schema_errors",
    "validate_payload",
]
