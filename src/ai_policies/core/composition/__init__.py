"""Policy composition engine.

Usage:
    from ai_policies.core.composition import ResolvedConfig, TargetOptions, compose

    config = ResolvedConfig(outputs={"claude": "CLAUDE.md"}, extends=("@acme/core", "@acme/team"))
    result = compose(partials, config, TargetOptions(target="claude"))
    result.content      # final document with metadata header
    result.metadata     # provenance record
"""
from __future__ import annotations

from .composer import CompositionSession, PolicyComposer, compose, compose_targets
from .conflicts import deduplicate_partials, protected_warning
from .dependencies import (
    detect_cycles,
    find_missing_dependencies,
    get_all_dependencies,
    get_dependents,
    resolve_dependencies,
    validate_dependency_chain,
)
from .errors import (
    CompositionError,
    CompositionSessionError,
    ConfigurationError,
    DependencyResolutionError,
    StrictCompositionError,
    TransformerError,
)
from .merger import Merger, MergeOutput, extract_sections, merge_with_conflict_resolution, remove_duplicate_sections
from .output import ExtractionResult, MetadataCodec, ProtectedBlock, ProtectedBlockManager
from .packages import effective_protected_ids, partials_from_packages
from .report import (
    CompositionReport,
    TargetRunResult,
    composition_summary,
    filter_partials_by_tags,
    group_partials_by_package,
    partial_statistics,
)
from .strategies import OrderingStrategy, PositionalStrategy, PriorityTierStrategy, strategy_for
from .transformers import (
    CollapseBlankLinesTransformer,
    ContentTransformer,
    FunctionTransformer,
    StripTrailingWhitespaceTransformer,
    TransformContext,
    TransformerPipeline,
)
from .types import (
    CompositionProblem,
    CompositionResult,
    ConflictResolution,
    DeduplicationResult,
    DependencyResolution,
    Metadata,
    MissingDependency,
    Package,
    Partial,
    PartialRef,
    ResolvedConfig,
    TargetOptions,
)
from .validation import validate

__all__ = [
    # Entry points
    "compose",
    "compose_targets",
    "validate",
    "PolicyComposer",
    "CompositionSession",
    # Data model
    "Partial",
    "PartialRef",
    "Package",
    "ResolvedConfig",
    "TargetOptions",
    "CompositionResult",
    "CompositionProblem",
    "ConflictResolution",
    "DeduplicationResult",
    "DependencyResolution",
    "Metadata",
    "MissingDependency",
    # Components
    "resolve_dependencies",
    "find_missing_dependencies",
    "detect_cycles",
    "validate_dependency_chain",
    "get_all_dependencies",
    "get_dependents",
    "deduplicate_partials",
    "protected_warning",
    "OrderingStrategy",
    "PositionalStrategy",
    "PriorityTierStrategy",
    "strategy_for",
    "ContentTransformer",
    "FunctionTransformer",
    "TransformContext",
    "TransformerPipeline",
    "CollapseBlankLinesTransformer",
    "StripTrailingWhitespaceTransformer",
    "Merger",
    "MergeOutput",
    "merge_with_conflict_resolution",
    "extract_sections",
    "remove_duplicate_sections",
    "ProtectedBlock",
    "ProtectedBlockManager",
    "ExtractionResult",
    "MetadataCodec",
    "effective_protected_ids",
    "partials_from_packages",
    # Reporting
    "CompositionReport",
    "TargetRunResult",
    "composition_summary",
    "filter_partials_by_tags",
    "group_partials_by_package",
    "partial_statistics",
    # Errors
    "CompositionError",
    "ConfigurationError",
    "DependencyResolutionError",
    "TransformerError",
    "StrictCompositionError",
    "CompositionSessionError",
]
