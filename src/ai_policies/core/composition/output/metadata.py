"""Provenance header embedded at the top of generated documents.

Layout:

    <!--
    AI-POLICIES-META: eyJwYWNrYWdlcyI6ey...
    Generated at: 2026-01-01T00:00:00.000Z
    Packages: @acme/core@1.2.0, @acme/team@0.3.1
    -->

The second line carries the record as base64-encoded JSON; the remaining
lines are a human-readable summary and are ignored when decoding.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from datetime import datetime
from typing import AbstractSet, Any, Dict, Mapping, Optional, Pattern, Sequence

from ai_policies.core.config import CompositionSettings
from ai_policies.core.utils.text import content_hash
from ai_policies.core.utils.time import format_timestamp, utc_now

from ..strategies.base import OrderingStrategy
from ..types import Metadata, Partial, ResolvedConfig

logger = logging.getLogger(__name__)


class MetadataCodec:
    """Build, encode, and decode metadata headers."""

    def __init__(self, settings: CompositionSettings) -> None:
        self.settings = settings
        self.label = settings.metadata_label
        self._payload: Pattern[str] = re.compile(re.escape(self.label) + r":\s*([A-Za-z0-9+/=]+)")
        self._block: Pattern[str] = re.compile(
            r"<!--\s*\n" + re.escape(self.label) + r":.*?-->[ \t]*\n*",
            re.DOTALL,
        )

    def build(
        self,
        partials: Sequence[Partial],
        content: str,
        *,
        strategy: OrderingStrategy,
        config: ResolvedConfig,
        protected_ids: AbstractSet[str],
        generated_at: Optional[datetime] = None,
    ) -> Metadata:
        """Build the metadata record for a composed document.

        Args:
            partials: Partials that produced a section, in document order.
            content: Merged body the hash is computed over.
            strategy: Active strategy; contributes per-partial entries and
                the model-specific fields.
            config: Resolved configuration.
            protected_ids: Effective protected-id set.
            generated_at: Fixed timestamp; defaults to now.
        """
        packages: Dict[str, str] = {}
        for partial in partials:
            packages.setdefault(partial.package_name, partial.package_version)

        moment = generated_at or utc_now(self.settings.time_config)
        extras = strategy.metadata_extras(config, protected_ids)
        return Metadata(
            packages=dict(sorted(packages.items())),
            content_hash=content_hash(content),
            generated_at=format_timestamp(moment, self.settings.time_config),
            partials=[strategy.metadata_entry(p) for p in partials],
            protected_partials=extras.get("protected_partials"),
            settings=extras.get("settings"),
        )

    def encode(self, metadata: Metadata) -> str:
        """Render the header comment block (without trailing blank line)."""
        payload = json.dumps(metadata.to_dict(), separators=(",", ":"), ensure_ascii=False)
        encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
        summary = ", ".join(f"{name}@{version}" for name, version in metadata.packages.items())
        return "\n".join(
            [
                "<!--",
                f"{self.label}: {encoded}",
                f"Generated at: {metadata.generated_at}",
                f"Packages: {summary}",
                "-->",
            ]
        )

    def attach(self, metadata: Metadata, body: str) -> str:
        """Return header, one blank line, then ``body``."""
        header = self.encode(metadata)
        if not body:
            return f"{header}\n"
        return f"{header}\n\n{body}"

    def decode(self, document: Optional[str]) -> Optional[Metadata]:
        """Recover metadata from ``document``; None when absent or malformed."""
        if not document:
            return None
        match = self._payload.search(document)
        if not match:
            return None
        try:
            raw = base64.b64decode(match.group(1), validate=True).decode("utf-8")
            data = json.loads(raw)
            if not isinstance(data, Mapping):
                raise ValueError("metadata payload is not an object")
            return Metadata.from_dict(data)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            logger.debug("Ignoring malformed %s payload: %s", self.label, exc)
            return None

    def strip(self, document: str) -> str:
        """Remove the header block, if any."""
        return self._block.sub("", document, count=1)

    @staticmethod
    def normalized(metadata: Metadata) -> Dict[str, Any]:
        return metadata.normalized()


__all__ = ["MetadataCodec"]
