"""Composition reporting.

Provides structured reports for composition runs plus the summary helpers
used when printing what a run did.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

from .types import CompositionProblem, CompositionResult, ConflictResolution, DependencyResolution, Partial

TagMatch = Literal["any", "all"]


@dataclass
class CompositionReport:
    """Report from composing one target.

    Contains everything a caller may want to audit:
    - Conflict resolutions and protected-override warnings
    - Dependency anomalies (cycles, missing references)
    - Protected-block problems found in the prior document
    - Partials dropped because their body came out empty
    """

    target: str
    model: str = "positional"

    conflicts: List[ConflictResolution] = field(default_factory=list)
    protected_warnings: List[str] = field(default_factory=list)
    circular: List[List[str]] = field(default_factory=list)
    missing: Dict[str, List[str]] = field(default_factory=dict)
    block_problems: List[CompositionProblem] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)
    emitted: List[str] = field(default_factory=list)
    preserved_blocks: List[str] = field(default_factory=list)

    warnings: List[str] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        """Check if anything worth a second look happened."""
        return bool(
            self.warnings
            or self.protected_warnings
            or self.circular
            or self.missing
            or self.block_problems
        )

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def record_dependencies(self, resolution: DependencyResolution) -> None:
        """Copy anomalies from a dependency resolution into the report."""
        self.circular.extend(list(c) for c in resolution.circular)
        for entry in resolution.missing:
            self.missing[entry.partial_id] = list(entry.missing_deps)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for serialization."""
        return {
            "target": self.target,
            "model": self.model,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "protectedWarnings": list(self.protected_warnings),
            "circular": [list(c) for c in self.circular],
            "missing": {k: list(v) for k, v in self.missing.items()},
            "blockProblems": [p.to_dict() for p in self.block_problems],
            "dropped": list(self.dropped),
            "emitted": list(self.emitted),
            "preservedBlocks": list(self.preserved_blocks),
            "warnings": list(self.warnings),
        }

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            f"Composition Report: {self.target} ({self.model})",
            f"  Partials: {len(self.emitted)} emitted, {len(self.dropped)} dropped",
            f"  Conflicts: {len(self.conflicts)}",
            f"  Protected blocks preserved: {len(self.preserved_blocks)}",
        ]

        if self.circular:
            lines.append(f"  Circular dependencies: {len(self.circular)}")
            for chain in self.circular[:3]:
                lines.append(f"    - {' -> '.join(chain)}")

        if self.missing:
            lines.append(f"  Missing dependencies: {len(self.missing)}")
            for partial_id, deps in list(self.missing.items())[:3]:
                lines.append(f"    - {partial_id}: {', '.join(deps)}")

        warnings = [*self.protected_warnings, *(p.message for p in self.block_problems), *self.warnings]
        if warnings:
            lines.append(f"  Warnings: {len(warnings)}")
            for w in warnings[:3]:
                lines.append(f"    - {w}")

        return "\n".join(lines)


@dataclass
class TargetRunResult:
    """Outcome of composing several targets in one run.

    A failing target is recorded in ``failures`` and never affects the
    others.
    """

    results: Dict[str, CompositionResult] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def reports(self) -> List[CompositionReport]:
        return [r.report for r in self.results.values() if r.report is not None]

    def summary(self) -> str:
        """Generate batch summary."""
        lines = [
            "Composition Run",
            f"  Targets: {len(self.results) + len(self.failures)}",
            f"  Success: {len(self.results)}",
            f"  Failed: {len(self.failures)}",
        ]
        for target, exc in self.failures.items():
            lines.append(f"    [ERROR] {target}: {exc}")
        return "\n".join(lines)


def filter_partials_by_tags(
    partials: Sequence[Partial],
    tags: Sequence[str],
    mode: TagMatch = "any",
) -> List[Partial]:
    """Keep partials carrying any (or all) of ``tags``; no tags keeps everything."""
    if not tags:
        return list(partials)
    if mode == "all":
        return [p for p in partials if all(t in p.tags for t in tags)]
    return [p for p in partials if any(t in p.tags for t in tags)]


def group_partials_by_package(partials: Iterable[Partial]) -> Dict[str, List[Partial]]:
    groups: Dict[str, List[Partial]] = {}
    for partial in partials:
        groups.setdefault(partial.package_name, []).append(partial)
    return groups


def partial_statistics(partials: Sequence[Partial]) -> Dict[str, Any]:
    """Counts by package and tier plus a few aggregate figures."""
    by_package: Counter[str] = Counter(p.package_name for p in partials)
    by_tier: Counter[str] = Counter(p.tier for p in partials if p.tier)
    tags = sorted({t for p in partials for t in p.tags})
    total_weight = sum(p.weight for p in partials)
    return {
        "total": len(partials),
        "byPackage": dict(by_package),
        "byTier": dict(by_tier),
        "protected": sum(1 for p in partials if p.protected),
        "withDependencies": sum(1 for p in partials if p.depends_on),
        "averageWeight": total_weight / len(partials) if partials else 0.0,
        "totalContentLength": sum(len(p.content) for p in partials),
        "tagsUsed": tags,
    }


def composition_summary(
    partials: Sequence[Partial],
    conflicts: Sequence[ConflictResolution],
    *,
    by_tier: Optional[bool] = None,
) -> str:
    """Multi-line summary of what was composed and which conflicts were resolved.

    Args:
        partials: Surviving partials.
        conflicts: Resolutions recorded during deduplication.
        by_tier: Include the per-tier breakdown; defaults to whether any
            partial carries a tier.
    """
    stats = partial_statistics(partials)
    if by_tier is None:
        by_tier = bool(stats["byTier"])

    lines = ["Composition Summary:", f"  Total partials: {stats['total']}"]
    if by_tier:
        lines.append(f"  Protected partials: {stats['protected']}")
        lines.append(f"  Partials with dependencies: {stats['withDependencies']}")
        lines.append(f"  Average weight: {stats['averageWeight']:.1f}")
        lines.append("")
        lines.append("By layer:")
        for tier, count in stats["byTier"].items():
            lines.append(f"  {tier}: {count}")
    lines.append("")

    lines.append("By package:")
    for package, count in stats["byPackage"].items():
        lines.append(f"  {package}: {count}")

    if conflicts:
        lines.append("")
        lines.append("Conflicts resolved:")
        for conflict in conflicts:
            overridden = ", ".join(conflict.overridden_packages)
            lines.append(
                f"  {conflict.partial_id}: {conflict.winner.package_name} won ({conflict.reason}) over {overridden}"
            )

    return "\n".join(lines)


__all__ = [
    "CompositionReport",
    "TargetRunResult",
    "TagMatch",
    "composition_summary",
    "filter_partials_by_tags",
    "group_partials_by_package",
    "partial_statistics",
]
