"""Assemble ordered partials into one document.

Each surviving partial is run through the transformer pipeline, then emitted
as a labeled section:

    <!-- BEGIN PARTIAL: security-basics (from @acme/core) -->
    ...body...

Sections are separated by exactly one blank line. Partials whose transformed
body is blank are dropped. Under the priority-tier model sections are grouped
under one ``##`` heading per non-empty tier.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence

from ai_policies.core.config import CompositionSettings

from .strategies.base import OrderingStrategy
from .transformers.base import TransformContext, TransformerPipeline
from .types import Partial

logger = logging.getLogger(__name__)

MergeMode = Literal["override", "append", "prepend", "preserve"]

_HEADING = re.compile(r"^#+\s+(.+)$")


@dataclass
class MergeOutput:
    """Merged document plus the partials that actually produced a section."""

    content: str
    emitted: List[Partial] = field(default_factory=list)
    dropped: List[Partial] = field(default_factory=list)


class Merger:
    """Render ordered partials into a single document for one target."""

    def __init__(
        self,
        pipeline: TransformerPipeline,
        strategy: OrderingStrategy,
        settings: CompositionSettings,
    ) -> None:
        self.pipeline = pipeline
        self.strategy = strategy
        self.settings = settings

    def section_header(self, partial: Partial) -> str:
        return self.settings.format_section_marker(partial.id, partial.package_name)

    def tier_heading(self, tier: str) -> str:
        return f"## {self.settings.tier_title(tier)}"

    def team_append_section(self, content: str) -> str:
        markers = self.settings.team_append
        return f"{markers.begin}\n{markers.heading}\n\n{content}\n{markers.end}"

    def _render(self, partial: Partial, target: str, ordered: Sequence[Partial]) -> Optional[str]:
        context = TransformContext(
            partial=partial,
            target=target,
            all_partials=tuple(ordered),
            settings=self.settings.section,
        )
        body = self.pipeline.execute(partial.content, context)
        if not body.strip():
            logger.debug("Dropping partial %s: empty after transformation", partial.id)
            return None
        body = body.rstrip("\n")
        return f"{self.section_header(partial)}\n{body}"

    def _render_all(
        self,
        partials: Sequence[Partial],
        target: str,
        ordered: Sequence[Partial],
        output: MergeOutput,
    ) -> List[str]:
        sections: List[str] = []
        for partial in partials:
            rendered = self._render(partial, target, ordered)
            if rendered is None:
                output.dropped.append(partial)
                continue
            output.emitted.append(partial)
            sections.append(rendered)
        return sections

    def merge(
        self,
        partials: Sequence[Partial],
        target: str,
        *,
        team_append_content: Optional[str] = None,
    ) -> MergeOutput:
        """Merge ``partials`` (already in final order) for ``target``.

        Raises:
            TransformerError: If a transformer fails.
        """
        output = MergeOutput(content="")
        blocks: List[str] = []

        groups = self.strategy.groups(partials)
        if groups is None:
            blocks.extend(self._render_all(partials, target, partials, output))
        else:
            grouped = {p.id for _, members in groups for p in members}
            output.dropped.extend(p for p in partials if p.id not in grouped)
            for tier, members in groups:
                sections = self._render_all(members, target, partials, output)
                if sections:
                    blocks.append(self.tier_heading(tier) + "\n" + "\n\n".join(sections))

        if team_append_content and team_append_content.strip():
            blocks.append(self.team_append_section(team_append_content.strip()))

        output.content = "\n\n".join(blocks)
        return output


def merge_with_conflict_resolution(base_content: str, new_content: str, strategy: MergeMode) -> str:
    """Combine two bodies for the same section."""
    if strategy == "append":
        return f"{base_content}\n\n{new_content}" if base_content else new_content
    if strategy == "prepend":
        return f"{new_content}\n\n{base_content}" if base_content else new_content
    if strategy == "preserve":
        return base_content or new_content
    return new_content


def extract_sections(content: str) -> Dict[str, str]:
    """Map each markdown heading's text to its trimmed body.

    Text before the first heading is ignored. A heading on the last line
    has no body and is omitted. A repeated heading keeps its last body.
    """
    sections: Dict[str, str] = {}
    current: Optional[str] = None
    lines: List[str] = []

    for line in content.split("\n"):
        match = _HEADING.match(line)
        if match:
            if current and lines:
                sections[current] = "\n".join(lines).strip()
            current = match.group(1)
            lines = []
        else:
            lines.append(line)

    if current and lines:
        sections[current] = "\n".join(lines).strip()
    return sections


def remove_duplicate_sections(content: str) -> str:
    """Drop every heading section whose heading line was already seen.

    Text before the first heading is dropped.
    """
    seen: set[str] = set()
    unique: List[str] = []
    header = ""
    body: List[str] = []

    def flush() -> None:
        if header and header not in seen:
            unique.append("\n".join([header, *body]))
            seen.add(header)

    for line in content.split("\n"):
        if _HEADING.match(line):
            flush()
            header = line
            body = []
        else:
            body.append(line)
    flush()

    return "\n\n".join(unique)


__all__ = [
    "MergeMode",
    "MergeOutput",
    "Merger",
    "merge_with_conflict_resolution",
    "extract_sections",
    "remove_duplicate_sections",
]
