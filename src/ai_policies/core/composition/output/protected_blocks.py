"""Preserve hand-edited blocks across regenerations.

A protected block lives in a previously generated document:

    <!-- BEGIN PROTECTED:team-notes -->
    anything a human wrote here
    <!-- END PROTECTED -->

Before a document is rewritten, blocks are extracted from the old text and
folded back into the freshly generated one. Placement, in order of
preference:
- a block with the same id already present in the new document is replaced
- a placeholder ``<!-- PROTECTED:team-notes -->`` is substituted
- the block goes right after the first heading whose text contains the id
- the block is appended at the end

No block is ever dropped. A second block with the same id is kept as well
and reported. Malformed markers are reported, never repaired.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Sequence, Tuple

from ai_policies.core.config import ProtectedBlockMarkers
from ai_policies.core.utils.text import collapse_blank_lines

from ..types import CompositionProblem, Partial

logger = logging.getLogger(__name__)

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


@dataclass(frozen=True)
class ProtectedBlock:
    """A protected block as found in a document.

    ``content`` is the verbatim span including both markers.
    """

    id: str
    content: str
    nested: bool = False


@dataclass
class ExtractionResult:
    """Blocks found in a document plus any marker problems."""

    blocks: List[ProtectedBlock] = field(default_factory=list)
    problems: List[CompositionProblem] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def _marker_regex(template: str, *, capture_id: bool) -> Pattern[str]:
    """Compile a marker template, tolerating whitespace variations."""

    def loose(text: str) -> str:
        parts = [re.escape(p) for p in re.split(r"\s+", text.strip())]
        lead = r"\s*" if text[:1].isspace() else ""
        trail = r"\s*" if text[-1:].isspace() else ""
        return lead + r"\s*".join(parts) + trail

    if "{id}" not in template:
        return re.compile(loose(template))
    prefix, suffix = template.split("{id}", 1)
    ident = r"([^\s]+?)" if capture_id else r"[^\s]+?"
    return re.compile(loose(prefix) + ident + (loose(suffix) if suffix else ""))


def sanitize_block_id(block_id: str) -> str:
    """Replace characters that cannot appear in a marker id with ``-``."""
    return _UNSAFE_ID_CHARS.sub("-", block_id)


class ProtectedBlockManager:
    """Extract, validate, and reinsert protected blocks.

    Usage:
        manager = ProtectedBlockManager(settings.protected_blocks)
        extracted = manager.extract(previous_text)
        text = manager.reinsert(new_text, extracted.blocks)
    """

    def __init__(self, markers: ProtectedBlockMarkers) -> None:
        self.markers = markers
        self._begin = _marker_regex(markers.begin, capture_id=True)
        self._end = _marker_regex(markers.end, capture_id=False)

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------
    def placeholder(self, block_id: str) -> str:
        return self.markers.placeholder_for(block_id)

    def create_block(self, block_id: str, content: str) -> str:
        """Wrap ``content`` in begin/end markers."""
        safe_id = sanitize_block_id(block_id)
        return f"{self.markers.begin_for(safe_id)}\n{content}\n{self.markers.end}"

    def wrap_partial(self, partial: Partial) -> Optional[ProtectedBlock]:
        """Wrap a protected partial's whole body as a block; None if unprotected."""
        if not partial.protected:
            return None
        safe_id = sanitize_block_id(partial.id)
        return ProtectedBlock(id=safe_id, content=self.create_block(partial.id, partial.content))

    def has_blocks(self, document: str) -> bool:
        return self._begin.search(document) is not None

    def block_ids(self, document: str) -> List[str]:
        """Ids of every begin marker, in document order."""
        return [m.group(1) for m in self._begin.finditer(document)]

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------
    def _tokens(self, document: str) -> List[Tuple[int, int, str, Optional[str]]]:
        tokens: List[Tuple[int, int, str, Optional[str]]] = []
        for m in self._begin.finditer(document):
            tokens.append((m.start(), m.end(), "begin", m.group(1)))
        for m in self._end.finditer(document):
            tokens.append((m.start(), m.end(), "end", None))
        tokens.sort(key=lambda t: t[0])
        return tokens

    def _scan(self, document: str) -> Tuple[List[Tuple[int, int, ProtectedBlock]], List[CompositionProblem]]:
        spans: List[Tuple[int, int, ProtectedBlock]] = []
        problems: List[CompositionProblem] = []
        tokens = self._tokens(document)

        begins = sum(1 for t in tokens if t[2] == "begin")
        ends = len(tokens) - begins
        if begins != ends:
            problems.append(
                CompositionProblem(
                    message=f"Unmatched protected block markers: {begins} BEGIN, {ends} END",
                    type="protected-block",
                    context={"begin": begins, "end": ends},
                )
            )

        # (start offset, block id) of the block currently open
        current: Optional[Tuple[int, str]] = None
        nested = False
        for start, end, kind, block_id in tokens:
            if kind == "begin":
                if current is None:
                    current, nested = (start, block_id or ""), False
                elif not nested:
                    nested = True
                    open_id = current[1]
                    problems.append(
                        CompositionProblem(
                            message=f"Protected block '{open_id}' contains nested protected blocks",
                            type="protected-block",
                            partial_id=open_id,
                            context={"blockId": open_id, "nestedId": block_id},
                        )
                    )
                continue
            if current is None:
                continue
            open_start, open_id = current
            block = ProtectedBlock(id=open_id, content=document[open_start:end], nested=nested)
            spans.append((open_start, end, block))
            current, nested = None, False

        counts = Counter(block.id for _, _, block in spans)
        for block_id, count in counts.items():
            if count > 1:
                problems.append(
                    CompositionProblem(
                        message=f"Protected block '{block_id}' appears {count} times",
                        type="protected-block",
                        partial_id=block_id,
                        context={"blockId": block_id, "count": count},
                    )
                )

        return spans, problems

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def extract(self, document: Optional[str]) -> ExtractionResult:
        """Return blocks of ``document`` in order, with marker problems.

        Unbalanced marker counts and nested blocks are reported as problems;
        nested blocks are still returned verbatim, flagged ``nested``.
        """
        if not document:
            return ExtractionResult()
        spans, problems = self._scan(document)
        for problem in problems:
            logger.warning(problem.message)
        return ExtractionResult(blocks=[b for _, _, b in spans], problems=problems)

    def validate(self, document: str) -> List[CompositionProblem]:
        """Report unbalanced and nested markers in ``document``."""
        return self._scan(document)[1]

    def remove_blocks(self, document: str) -> str:
        """Strip every complete block, collapsing the blank lines left behind."""
        spans, _ = self._scan(document)
        result = document
        for start, end, _ in reversed(spans):
            result = result[:start] + result[end:]
        return collapse_blank_lines(result)

    def reinsert(self, document: str, blocks: Sequence[ProtectedBlock]) -> str:
        """Fold ``blocks`` into a freshly generated ``document``.

        A block already present in ``document`` with the same id is replaced
        by the first extracted block carrying that id; each such span is
        consumed once. Every other block goes to its placeholder, else after
        the first heading mentioning its id, else to the end.
        """
        remaining = list(blocks)
        replacements: List[Tuple[int, int, ProtectedBlock]] = []
        for start, end, existing in self._scan(document)[0]:
            for i, block in enumerate(remaining):
                if block.id == existing.id:
                    replacements.append((start, end, remaining.pop(i)))
                    break

        result = document
        for start, end, block in reversed(replacements):
            result = result[:start] + block.content + result[end:]

        placed = {block.id for _, _, block in replacements}
        for block in remaining:
            if block.id in placed:
                logger.warning("Protected block '%s' appears more than once; keeping every copy", block.id)
            placed.add(block.id)
            result = self._place(result, block)
        return result

    def _place(self, document: str, block: ProtectedBlock) -> str:
        placeholder = self.placeholder(block.id)
        if placeholder in document:
            return document.replace(placeholder, block.content, 1)

        lines = document.split("\n")
        needle = block.id.lower()
        for i, line in enumerate(lines):
            if line.startswith("#") and needle in line.lower():
                lines[i + 1:i + 1] = ["", block.content, ""]
                return "\n".join(lines)

        logger.info("No placeholder or heading for protected block %s; appending", block.id)
        if not document.strip():
            return block.content
        return f"{document.rstrip(chr(10))}\n\n{block.content}"


__all__ = [
    "ExtractionResult",
    "ProtectedBlock",
    "ProtectedBlockManager",
    "sanitize_block_id",
]
