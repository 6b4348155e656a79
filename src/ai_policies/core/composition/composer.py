"""Policy composition entry points.

``compose`` produces one document for one output target:

1. check the target is configured
2. in strict mode, reject any validation error
3. drop partials that do not apply to the target or are excluded
4. keep one partial per id (strategy decides, protection first)
5. order by dependencies; abort on cycles/missing references unless allowed
6. apply the strategy's final order
7. run the transformer pipeline and merge sections
8. fold protected blocks from the prior document back in
9. attach the metadata header

``CompositionSession`` is the caller-owned context for a run: it holds the
settings and composer for the duration of the run and collects reports.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, List, Mapping, Optional, Sequence

from ai_policies.core.config import CompositionSettings

from .conflicts import deduplicate_partials
from .dependencies import resolve_dependencies
from .errors import (
    CompositionError,
    CompositionSessionError,
    ConfigurationError,
    DependencyResolutionError,
    StrictCompositionError,
)
from .merger import Merger
from .output import MetadataCodec, ProtectedBlockManager
from .packages import effective_protected_ids
from .report import CompositionReport, TargetRunResult
from .strategies import strategy_for
from .transformers import CollapseBlankLinesTransformer, TransformerLike, TransformerPipeline
from .types import CompositionProblem, CompositionResult, Package, Partial, ResolvedConfig, TargetOptions
from .validation import validate

logger = logging.getLogger(__name__)


def _dependency_message(target: str, circular: Sequence[Sequence[str]], missing: Mapping[str, Sequence[str]]) -> str:
    parts: List[str] = []
    for chain in circular:
        parts.append(f"circular dependency {' -> '.join(chain)}")
    for partial_id, deps in missing.items():
        parts.append(f"'{partial_id}' depends on missing {', '.join(deps)}")
    return f"Unresolved dependencies for target '{target}': " + "; ".join(parts)


class PolicyComposer:
    """Compose partials into one document per output target.

    The default blank-line collapsing transformer is installed at
    construction and always runs.
    """

    def __init__(
        self,
        settings: Optional[CompositionSettings] = None,
        *,
        transformers: Iterable[TransformerLike] = (),
    ) -> None:
        self.settings = settings or CompositionSettings()
        self.pipeline = TransformerPipeline(
            [CollapseBlankLinesTransformer(self.settings.collapse_blank_lines_priority)]
        )
        for transformer in transformers:
            self.pipeline.add_transformer(transformer)
        self.blocks = ProtectedBlockManager(self.settings.protected_blocks)
        self.codec = MetadataCodec(self.settings)

    def add_transformer(self, transformer: TransformerLike) -> None:
        self.pipeline.add_transformer(transformer)

    def validate_inputs(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        *,
        packages: Sequence[Package] = (),
        options: Optional[TargetOptions] = None,
    ) -> List[CompositionProblem]:
        """Validate inputs, honouring per-call protected/exclude overrides."""
        return validate(
            partials,
            config,
            packages=packages,
            settings=self.settings,
            protected=options.protected if options else None,
            exclude=options.exclude if options else None,
        )

    def _check_target(self, config: ResolvedConfig, target: str) -> None:
        targets = config.targets
        if not targets:
            raise ConfigurationError("Configuration names no output target")
        if target not in targets:
            raise ConfigurationError(
                f"Target '{target}' is not configured (configured: {', '.join(targets)})",
                context={"target": target, "configured": targets},
            )

    def compose(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        options: TargetOptions,
        *,
        packages: Sequence[Package] = (),
    ) -> CompositionResult:
        """Compose ``partials`` for ``options.target``.

        Args:
            partials: Every candidate partial, in declaration order.
            config: Resolved configuration.
            options: Per-target options.
            packages: Packages the partials came from, for default protections.

        Returns:
            CompositionResult with the final document, metadata, and report.

        Raises:
            ConfigurationError: If no target, or not this target, is configured.
            StrictCompositionError: In strict mode, when validation finds errors.
            DependencyResolutionError: On cycles or missing dependencies,
                unless ``options.allow_unresolved``.
            TransformerError: If a transformer fails.
        """
        target = options.target
        self._check_target(config, target)
        strategy = strategy_for(config, self.settings)
        report = CompositionReport(target=target, model=strategy.name)

        if options.strict:
            problems = self.validate_inputs(partials, config, packages=packages, options=options)
            errors = [p for p in problems if p.is_error]
            if errors:
                raise StrictCompositionError(errors, target=target)
            report.warnings.extend(p.message for p in problems)

        exclude_ids = set(options.exclude) if options.exclude is not None else set(config.exclude)
        if options.protected is not None:
            protected_ids = set(options.protected)
            for package in packages:
                protected_ids.update(package.protected_ids)
        else:
            protected_ids = set(effective_protected_ids(config, packages))

        eligible = [p for p in partials if p.applies_to(target) and p.id not in exclude_ids]
        logger.debug(
            "Target %s: %d of %d partials eligible", target, len(eligible), len(partials)
        )

        deduplicated = deduplicate_partials(eligible, protected_ids, strategy)
        report.conflicts.extend(deduplicated.conflicts)
        report.protected_warnings.extend(deduplicated.protected_warnings)

        resolution = resolve_dependencies(deduplicated.partials)
        report.record_dependencies(resolution)
        if not resolution.ok:
            message = _dependency_message(target, resolution.circular, report.missing)
            if not options.allow_unresolved:
                raise DependencyResolutionError(message, resolution=resolution, target=target)
            logger.warning(message)
            report.add_warning(message)

        ordered = strategy.order(resolution.resolved)

        team_content: Optional[str] = None
        if strategy.name == "priority" and config.team_append:
            team_content = options.team_append_content or config.team_append_content

        pipeline = self.pipeline.extended(options.transformers)
        merged = Merger(pipeline, strategy, self.settings).merge(
            ordered, target, team_append_content=team_content
        )
        report.emitted.extend(p.id for p in merged.emitted)
        report.dropped.extend(p.id for p in merged.dropped)

        extracted = self.blocks.extract(options.prior_document)
        report.block_problems.extend(extracted.problems)
        report.preserved_blocks.extend(b.id for b in extracted.blocks)
        body = self.blocks.reinsert(merged.content, extracted.blocks)

        metadata = self.codec.build(
            merged.emitted,
            merged.content,
            strategy=strategy,
            config=config,
            protected_ids=protected_ids,
            generated_at=options.generated_at,
        )
        content = self.codec.attach(metadata, body)

        logger.info(
            "Composed %s: %d partials, %d conflicts, %d protected blocks",
            target,
            len(merged.emitted),
            len(deduplicated.conflicts),
            len(extracted.blocks),
        )
        return CompositionResult(content=content, metadata=metadata, report=report)

    def compose_targets(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        options_by_target: Optional[Mapping[str, TargetOptions]] = None,
        *,
        packages: Sequence[Package] = (),
    ) -> TargetRunResult:
        """Compose every configured target independently.

        A composition error in one target is recorded in
        ``TargetRunResult.failures`` and the remaining targets still run.

        Raises:
            ConfigurationError: If the configuration names no output target.
        """
        targets = config.targets
        if not targets:
            raise ConfigurationError("Configuration names no output target")

        run = TargetRunResult()
        for target in targets:
            options = (options_by_target or {}).get(target) or TargetOptions(target=target)
            if options.target != target:
                options = dataclasses.replace(options, target=target)
            try:
                run.results[target] = self.compose(partials, config, options, packages=packages)
            except CompositionError as exc:
                logger.error("Composition failed for %s: %s", target, exc)
                run.failures[target] = exc
        return run


def compose(
    partials: Sequence[Partial],
    config: ResolvedConfig,
    options: TargetOptions,
    *,
    settings: Optional[CompositionSettings] = None,
    packages: Sequence[Package] = (),
) -> CompositionResult:
    """Compose one target with a fresh composer."""
    return PolicyComposer(settings).compose(partials, config, options, packages=packages)


def compose_targets(
    partials: Sequence[Partial],
    config: ResolvedConfig,
    options_by_target: Optional[Mapping[str, TargetOptions]] = None,
    *,
    settings: Optional[CompositionSettings] = None,
    packages: Sequence[Package] = (),
) -> TargetRunResult:
    """Compose every configured target with a fresh composer."""
    return PolicyComposer(settings).compose_targets(
        partials, config, options_by_target, packages=packages
    )


class CompositionSession:
    """Caller-owned context for one composition run.

    Usage:
        with CompositionSession() as session:
            session.add_transformer(my_transformer)
            result = session.compose(partials, config, TargetOptions(target="claude"))
        session.reports  # still available after close

    A session must be opened (explicitly or via ``with``) before use and
    cannot be reused once closed.
    """

    def __init__(
        self,
        settings: Optional[CompositionSettings] = None,
        *,
        transformers: Iterable[TransformerLike] = (),
    ) -> None:
        self.settings = settings
        self._transformers = list(transformers)
        self._composer: Optional[PolicyComposer] = None
        self._closed = False
        self.reports: List[CompositionReport] = []

    @property
    def is_open(self) -> bool:
        return self._composer is not None

    def open(self) -> "CompositionSession":
        if self._closed:
            raise CompositionSessionError("Composition session is closed")
        if self._composer is None:
            if self.settings is None:
                self.settings = CompositionSettings()
            self._composer = PolicyComposer(self.settings, transformers=self._transformers)
            logger.debug("Composition session opened")
        return self

    def close(self) -> None:
        if self._composer is not None:
            logger.debug("Composition session closed after %d composition(s)", len(self.reports))
        self._composer = None
        self._closed = True

    def __enter__(self) -> "CompositionSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def composer(self) -> PolicyComposer:
        if self._composer is None:
            state = "closed" if self._closed else "not open"
            raise CompositionSessionError(f"Composition session is {state}")
        return self._composer

    def add_transformer(self, transformer: TransformerLike) -> None:
        self.composer.add_transformer(transformer)

    def validate(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        *,
        packages: Sequence[Package] = (),
    ) -> List[CompositionProblem]:
        return self.composer.validate_inputs(partials, config, packages=packages)

    def compose(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        options: TargetOptions,
        *,
        packages: Sequence[Package] = (),
    ) -> CompositionResult:
        result = self.composer.compose(partials, config, options, packages=packages)
        if result.report is not None:
            self.reports.append(result.report)
        return result

    def compose_targets(
        self,
        partials: Sequence[Partial],
        config: ResolvedConfig,
        options_by_target: Optional[Mapping[str, TargetOptions]] = None,
        *,
        packages: Sequence[Package] = (),
    ) -> TargetRunResult:
        run = self.composer.compose_targets(partials, config, options_by_target, packages=packages)
        self.reports.extend(run.reports)
        return run


__all__ = [
    "CompositionSession",
    "PolicyComposer",
    "compose",
    "compose_targets",
]
