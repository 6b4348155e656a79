"""Composition settings domain.

CompositionSettings is the only way the engine reads ``composition.yaml``.

This module provides:
- ProtectedBlockMarkers: marker templates for hand-edited blocks
- TeamAppendMarkers: markers around the team customizations section
- CompositionSettings: the settings accessor
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, List

from ..base import BaseDomainConfig


@dataclass(frozen=True)
class ProtectedBlockMarkers:
    """Marker templates for protected blocks.

    ``begin`` and ``placeholder`` contain an ``{id}`` field.
    """

    begin: str
    end: str
    placeholder: str

    def begin_for(self, block_id: str) -> str:
        return self.begin.replace("{id}", block_id)

    def placeholder_for(self, block_id: str) -> str:
        return self.placeholder.replace("{id}", block_id)


@dataclass(frozen=True)
class TeamAppendMarkers:
    """Markers and heading for the team customizations section."""

    begin: str
    end: str
    heading: str


class CompositionSettings(BaseDomainConfig):
    """Settings accessor for the composition engine.

    Usage:
        settings = CompositionSettings()
        settings.tier_order            # ['core', 'domain', 'stack', 'team']
        settings.metadata_label        # 'AI-POLICIES-META'

        custom = CompositionSettings({"composition": {"metadata": {"label": "X-META"}}})
    """

    def _config_section(self) -> str:
        return "composition"

    @cached_property
    def tier_order(self) -> List[str]:
        return [str(t) for t in self.section.get("tierOrder") or []]

    @cached_property
    def tier_titles(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self.section.get("tierTitles") or {}).items()}

    def tier_title(self, tier: str) -> str:
        """Return the heading title for ``tier``, e.g. ``"Core Policies"``."""
        title = self.tier_titles.get(tier)
        if title:
            return title
        return f"{tier[:1].upper()}{tier[1:]} Policies"

    @cached_property
    def section_marker(self) -> str:
        return str(self.section["sectionMarker"])

    def format_section_marker(self, partial_id: str, package_name: str) -> str:
        return self.section_marker.replace("{id}", partial_id).replace("{package}", package_name)

    @cached_property
    def team_append(self) -> TeamAppendMarkers:
        raw = self.section.get("teamAppend") or {}
        return TeamAppendMarkers(
            begin=str(raw.get("begin", "<!-- BEGIN TEAM APPEND -->")),
            end=str(raw.get("end", "<!-- END TEAM APPEND -->")),
            heading=str(raw.get("heading", "## Team Customizations")),
        )

    @cached_property
    def protected_blocks(self) -> ProtectedBlockMarkers:
        raw = self.section["protectedBlocks"]
        return ProtectedBlockMarkers(
            begin=str(raw["begin"]),
            end=str(raw["end"]),
            placeholder=str(raw["placeholder"]),
        )

    @cached_property
    def metadata_label(self) -> str:
        return str(self.section["metadata"]["label"])

    @cached_property
    def collapse_blank_lines_priority(self) -> int:
        return int((self.section.get("transformers") or {}).get("collapseBlankLinesPriority", 100))

    @cached_property
    def time_config(self) -> Dict[str, Any]:
        return dict(self.full_config["time"]["iso8601"])


__all__ = ["CompositionSettings", "ProtectedBlockMarkers", "TeamAppendMarkers"]
