"""Output helpers: protected blocks and the metadata header."""
from __future__ import annotations

from .metadata import MetadataCodec
from .protected_blocks import ExtractionResult, ProtectedBlock, ProtectedBlockManager, sanitize_block_id

__all__ = [
    "ExtractionResult",
    "MetadataCodec",
    "ProtectedBlock",
    "ProtectedBlockManager",
    "sanitize_block_id",
]
