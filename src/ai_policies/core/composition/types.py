"""Data model for policy composition.

Partials, packages, and the resolved configuration are immutable inputs
loaded once per invocation. Results are built fresh for every
(target, run) pair and never retained by the engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, List, Literal, Mapping, Optional, Sequence, Tuple, Union

if TYPE_CHECKING:
    from .report import CompositionReport
    from .transformers.base import ContentTransformer, TransformContext


OrderingModel = Literal["positional", "priority"]
ConflictReason = Literal["protected", "last-wins", "layer-priority", "weight", "package-name"]
ProblemType = Literal["validation", "dependency", "circular", "conflict", "protected", "protected-block"]
Severity = Literal["error", "warning"]

TransformerFn = Union[Callable[[str], str], Callable[[str, "TransformContext"], str]]


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class PartialRef:
    """Identifier plus originating package, as recorded in metadata."""

    id: str
    package_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "packageName": self.package_name}


@dataclass(frozen=True)
class Partial:
    """An identified policy fragment with ordering and ownership metadata.

    Attributes:
        id: Identifier, unique within its package.
        content: Markdown body.
        package_name: Originating package.
        package_version: Version of the originating package.
        owner: Free-form owner.
        tags: Category tags.
        providers: Output targets the partial applies to; empty means all.
        depends_on: Ids that must precede this partial.
        tier: Priority tier (priority model only).
        weight: Secondary ordering key within a tier.
        protected: Whether the partial resists later overrides.
        source_index: Position of the originating package in the extension list.
    """

    id: str
    content: str
    package_name: str
    package_version: str = "0.0.0"
    owner: str = ""
    description: str = ""
    tags: Tuple[str, ...] = ()
    providers: FrozenSet[str] = frozenset()
    depends_on: Tuple[str, ...] = ()
    tier: Optional[str] = None
    weight: int = 0
    protected: bool = False
    source_index: int = 0
    file_path: Optional[str] = None

    @property
    def ref(self) -> PartialRef:
        return PartialRef(self.id, self.package_name)

    def applies_to(self, target: str) -> bool:
        """Return True when the partial should be composed for ``target``."""
        return not self.providers or target in self.providers

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        content: str = "",
        package_name: str,
        package_version: str = "0.0.0",
        source_index: int = 0,
        file_path: Optional[str] = None,
    ) -> "Partial":
        """Build a partial from frontmatter-style metadata.

        Accepts both the camelCase keys used in partial frontmatter
        (``dependsOn``, ``layer``) and their snake_case equivalents.
        """
        if not data.get("id"):
            raise ValueError(f"Partial in package {package_name} has no id")
        tier = data.get("tier", data.get("layer"))
        return cls(
            id=str(data["id"]),
            content=str(data.get("content", content) or ""),
            package_name=package_name,
            package_version=package_version,
            owner=str(data.get("owner") or ""),
            description=str(data.get("description") or ""),
            tags=_str_tuple(data.get("tags")),
            providers=frozenset(_str_tuple(data.get("providers"))),
            depends_on=_str_tuple(data.get("dependsOn", data.get("depends_on"))),
            tier=str(tier) if tier else None,
            weight=int(data.get("weight") or 0),
            protected=bool(data.get("protected", False)),
            source_index=source_index,
            file_path=file_path,
        )


@dataclass(frozen=True)
class Package:
    """A versioned, named collection of partials."""

    name: str
    version: str
    partials: Tuple[Partial, ...] = ()
    protected_ids: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class ResolvedConfig:
    """Configuration as resolved by the caller's config loader.

    ``model`` selects the ordering/conflict strategy: ``"positional"`` uses
    ``extends`` order with last-wins; ``"priority"`` uses ``tier_order`` and
    per-partial weights.
    """

    outputs: Mapping[str, str] = field(default_factory=dict)
    extends: Tuple[str, ...] = ()
    requires: Mapping[str, str] = field(default_factory=dict)
    protected: FrozenSet[str] = frozenset()
    exclude: FrozenSet[str] = frozenset()
    model: OrderingModel = "positional"
    tier_order: Tuple[str, ...] = ()
    protected_tiers: Tuple[str, ...] = ()
    team_append: bool = False
    team_append_content: Optional[str] = None

    @property
    def targets(self) -> List[str]:
        """Configured output targets, in declaration order."""
        return [t for t, path in self.outputs.items() if path]

    def settings_snapshot(self) -> Dict[str, Any]:
        """Ordering settings recorded in metadata under the priority model."""
        return {
            "order": list(self.tier_order),
            "protectedLayers": list(self.protected_tiers),
            "teamAppend": self.team_append,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResolvedConfig":
        """Build from the parsed ``.ai-policies.yaml`` mapping.

        Understands both layouts the config loader produces: ``extends`` +
        top-level ``protected``/``exclude`` (positional model) and
        ``requires`` + ``compose`` settings (priority model).
        """
        compose = dict(data.get("compose") or {})
        overrides = dict(data.get("overrides") or {})
        requires = {str(k): str(v) for k, v in (data.get("requires") or {}).items()}
        model = data.get("model") or ("priority" if compose.get("order") else "positional")
        if model not in ("positional", "priority"):
            raise ValueError(f"Unknown ordering model: {model!r}")
        exclude = _str_tuple(data.get("exclude")) + _str_tuple(overrides.get("excludePartials"))
        return cls(
            outputs={str(k): str(v) for k, v in (data.get("output") or data.get("outputs") or {}).items() if v},
            extends=_str_tuple(data.get("extends")),
            requires=requires,
            protected=frozenset(_str_tuple(data.get("protected"))),
            exclude=frozenset(exclude),
            model=model,
            tier_order=_str_tuple(compose.get("order")),
            protected_tiers=_str_tuple(compose.get("protectedLayers")),
            team_append=bool(compose.get("teamAppend", False)),
            team_append_content=overrides.get("teamAppendContent"),
        )


@dataclass
class TargetOptions:
    """Per-target options for one composition."""

    target: str
    transformers: Sequence[Union["ContentTransformer", TransformerFn]] = ()
    prior_document: Optional[str] = None
    strict: bool = False
    allow_unresolved: bool = False
    protected: Optional[Sequence[str]] = None
    exclude: Optional[Sequence[str]] = None
    generated_at: Optional[datetime] = None
    team_append_content: Optional[str] = None


@dataclass(frozen=True)
class MissingDependency:
    """A partial and the dependency ids it declares but nobody provides."""

    partial_id: str
    missing_deps: Tuple[str, ...]


@dataclass
class DependencyResolution:
    """Result of dependency resolution.

    ``circular`` holds closed chains, e.g. ``["a", "b", "a"]``.
    """

    resolved: List[Partial]
    circular: List[List[str]] = field(default_factory=list)
    missing: List[MissingDependency] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.circular and not self.missing


@dataclass
class ConflictResolution:
    """Outcome of deduplicating one identifier."""

    partial_id: str
    winner: Partial
    overridden: List[Partial]
    reason: ConflictReason
    #: Candidates declared after a protected winner, whose overrides were ignored.
    ignored: List[Partial] = field(default_factory=list)

    @property
    def overridden_packages(self) -> List[str]:
        return [p.package_name for p in self.overridden]

    @property
    def ignored_packages(self) -> List[str]:
        return [p.package_name for p in self.ignored]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "partialId": self.partial_id,
            "winner": self.winner.ref.to_dict(),
            "overridden": [p.ref.to_dict() for p in self.overridden],
            "reason": self.reason,
        }


@dataclass
class DeduplicationResult:
    """Deduplicated partials plus the audit trail of resolved conflicts."""

    partials: List[Partial]
    conflicts: List[ConflictResolution] = field(default_factory=list)
    protected_warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CompositionProblem:
    """A problem found while validating or composing."""

    message: str
    type: ProblemType
    partial_id: Optional[str] = None
    severity: Severity = "error"
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "type": self.type,
            "partialId": self.partial_id,
            "severity": self.severity,
            "context": dict(self.context),
        }


@dataclass
class Metadata:
    """Provenance record embedded at the top of a generated document.

    Exactly one of ``protected_partials`` (positional model) and ``settings``
    (priority model) is normally set.
    """

    packages: Dict[str, str]
    content_hash: str
    generated_at: str
    partials: List[Dict[str, Any]] = field(default_factory=list)
    protected_partials: Optional[List[str]] = None
    settings: Optional[Dict[str, Any]] = None

    @property
    def partial_refs(self) -> List[PartialRef]:
        return [PartialRef(str(p["id"]), str(p["packageName"])) for p in self.partials]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "packages": dict(self.packages),
            "contentHash": self.content_hash,
            "generatedAt": self.generated_at,
            "partials": [dict(p) for p in self.partials],
        }
        if self.protected_partials is not None:
            data["protectedPartials"] = list(self.protected_partials)
        if self.settings is not None:
            data["settings"] = dict(self.settings)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Metadata":
        """Build from a decoded payload. Raises ``ValueError`` on bad shape."""
        packages = data.get("packages")
        partials = data.get("partials", [])
        if not isinstance(packages, dict) or not isinstance(partials, list):
            raise ValueError("metadata payload has invalid packages/partials")
        for entry in partials:
            if not isinstance(entry, dict) or "id" not in entry or "packageName" not in entry:
                raise ValueError("metadata partial entry must carry id and packageName")
        protected = data.get("protectedPartials")
        settings = data.get("settings")
        return cls(
            packages={str(k): str(v) for k, v in packages.items()},
            content_hash=str(data.get("contentHash", "")),
            generated_at=str(data.get("generatedAt", "")),
            partials=[dict(p) for p in partials],
            protected_partials=[str(p) for p in protected] if isinstance(protected, list) else None,
            settings=dict(settings) if isinstance(settings, dict) else None,
        )

    def normalized(self) -> Dict[str, Any]:
        """Comparable form without the timestamp and the settings snapshot."""
        data = self.to_dict()
        data.pop("generatedAt", None)
        data.pop("settings", None)
        return data

    def semantically_equal(self, other: "Metadata") -> bool:
        return self.normalized() == other.normalized()


@dataclass
class CompositionResult:
    """Composed document plus its provenance metadata."""

    content: str
    metadata: Metadata
    report: Optional["CompositionReport"] = None


__all__ = [
    "OrderingModel",
    "ConflictReason",
    "ProblemType",
    "Severity",
    "TransformerFn",
    "PartialRef",
    "Partial",
    "Package",
    "ResolvedConfig",
    "TargetOptions",
    "MissingDependency",
    "DependencyResolution",
    "ConflictResolution",
    "DeduplicationResult",
    "CompositionProblem",
    "Metadata",
    "CompositionResult",
]
