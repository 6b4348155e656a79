"""Tests for conflict resolution between partials sharing an id."""
from __future__ import annotations

import logging

import pytest

from ai_policies.core.composition import (
    PositionalStrategy,
    PriorityTierStrategy,
    deduplicate_partials,
    protected_warning,
)
from helpers.partials import make_partial

TIERS = ["core", "domain", "stack", "team"]


def _d(package: str, index: int, **kwargs):
    return make_partial("D", f"D from {package}", package=package, source_index=index, **kwargs)


class TestPositionalConflicts:
    """Last-wins resolution with protection."""

    def test_later_declaration_wins(self) -> None:
        """P2 (position 1) overrides P1 (position 0)."""
        p1, p2 = _d("P1", 0), _d("P2", 1)

        result = deduplicate_partials([p1, p2], frozenset(), PositionalStrategy())

        assert result.partials == [p2]
        assert len(result.conflicts) == 1
        conflict = result.conflicts[0]
        assert conflict.partial_id == "D"
        assert conflict.winner is p2
        assert conflict.overridden == [p1]
        assert conflict.reason == "last-wins"
        assert result.protected_warnings == []

    def test_protected_id_keeps_earliest(self, caplog: pytest.LogCaptureFixture) -> None:
        """A protected id keeps the earliest declaration and warns about the rest."""
        p1, p2 = _d("P1", 0), _d("P2", 1)

        with caplog.at_level(logging.WARNING, logger="ai_policies"):
            result = deduplicate_partials([p1, p2], frozenset({"D"}), PositionalStrategy())

        assert result.partials == [p1]
        assert result.conflicts[0].reason == "protected"
        assert result.protected_warnings == [
            "Protected partial 'D' from 'P1' was preserved. Overrides from P2 were ignored."
        ]
        assert "P2" in caplog.text

    def test_protected_winner_is_earliest_by_position_not_input_order(self) -> None:
        p1, p2 = _d("P1", 0), _d("P2", 1)
        result = deduplicate_partials([p2, p1], frozenset({"D"}), PositionalStrategy())
        assert result.partials == [p1]

    def test_partial_protected_flag(self) -> None:
        """A per-partial protection flag beats a later declaration."""
        p1, p2, p3 = _d("P1", 0, protected=True), _d("P2", 1), _d("P3", 2)

        result = deduplicate_partials([p1, p2, p3], frozenset(), PositionalStrategy())

        assert result.partials == [p1]
        assert result.conflicts[0].overridden_packages == ["P2", "P3"]

    def test_protected_warning_names_only_later_packages(self) -> None:
        """An earlier package that lost to a protected winner was never an override."""
        p1, p2, p3 = _d("P1", 0), _d("P2", 1, protected=True), _d("P3", 2)

        result = deduplicate_partials([p1, p2, p3], frozenset(), PositionalStrategy())

        conflict = result.conflicts[0]
        assert result.partials == [p2]
        assert conflict.overridden_packages == ["P1", "P3"]
        assert conflict.ignored_packages == ["P3"]
        assert result.protected_warnings == [
            "Protected partial 'D' from 'P2' was preserved. Overrides from P3 were ignored."
        ]

    def test_protected_last_declaration_warns_about_nothing(self) -> None:
        p1, p2 = _d("P1", 0), _d("P2", 1, protected=True)

        result = deduplicate_partials([p1, p2], frozenset(), PositionalStrategy())

        assert result.partials == [p2]
        assert result.conflicts[0].reason == "protected"
        assert result.conflicts[0].ignored == []
        assert result.protected_warnings == []

    def test_survivors_keep_first_appearance_order(self) -> None:
        a1 = make_partial("a", package="P1", source_index=0)
        b1 = make_partial("b", package="P1", source_index=0)
        a2 = make_partial("a", package="P2", source_index=1)

        result = deduplicate_partials([a1, b1, a2], frozenset(), PositionalStrategy())

        assert [(p.id, p.package_name) for p in result.partials] == [("a", "P2"), ("b", "P1")]

    def test_unique_ids_produce_no_conflicts(self) -> None:
        partials = [make_partial("a"), make_partial("b")]
        result = deduplicate_partials(partials, frozenset(), PositionalStrategy())
        assert result.partials == partials
        assert result.conflicts == []


class TestPriorityConflicts:
    """Tier, weight, and package-name precedence."""

    def test_higher_tier_wins(self) -> None:
        core = make_partial("x", package="@acme/core", tier="core", weight=99)
        team = make_partial("x", package="@acme/team", tier="team", weight=1)

        result = deduplicate_partials([team, core], frozenset(), PriorityTierStrategy(TIERS))

        assert result.partials == [team]
        assert result.conflicts[0].reason == "layer-priority"

    def test_weight_breaks_tier_ties(self) -> None:
        light = make_partial("x", package="@acme/a", tier="stack", weight=5)
        heavy = make_partial("x", package="@acme/b", tier="stack", weight=20)

        result = deduplicate_partials([heavy, light], frozenset(), PriorityTierStrategy(TIERS))

        assert result.partials == [heavy]
        assert result.conflicts[0].reason == "weight"

    def test_package_name_breaks_remaining_ties(self) -> None:
        first = make_partial("x", package="@acme/alpha", tier="core")
        second = make_partial("x", package="@acme/beta", tier="core")

        result = deduplicate_partials([second, first], frozenset(), PriorityTierStrategy(TIERS))

        assert result.partials == [second]
        assert result.conflicts[0].reason == "package-name"

    def test_protection_beats_tier(self) -> None:
        core = make_partial("x", package="@acme/core", tier="core", protected=True)
        team = make_partial("x", package="@acme/team", tier="team", source_index=1)

        result = deduplicate_partials([core, team], frozenset(), PriorityTierStrategy(TIERS))

        assert result.partials == [core]
        assert result.conflicts[0].reason == "protected"

    def test_unknown_tier_never_outranks_known_tier(self) -> None:
        known = make_partial("x", package="@acme/a", tier="core")
        unknown = make_partial("x", package="@acme/z", tier="mystery", weight=100)

        result = deduplicate_partials([known, unknown], frozenset(), PriorityTierStrategy(TIERS))

        assert result.partials == [known]


def test_protected_warning_lists_every_later_package() -> None:
    p1, p2, p3 = _d("P1", 0), _d("P2", 1), _d("P3", 2)
    resolution = PositionalStrategy().resolve_conflict([p1, p2, p3], frozenset({"D"}))
    assert protected_warning(resolution) == (
        "Protected partial 'D' from 'P1' was preserved. Overrides from P2, P3 were ignored."
    )


def test_conflict_to_dict_uses_refs() -> None:
    p1, p2 = _d("P1", 0), _d("P2", 1)
    resolution = PositionalStrategy().resolve_conflict([p1, p2], frozenset())
    assert resolution.to_dict() == {
        "partialId": "D",
        "winner": {"id": "D", "packageName": "P2"},
        "overridden": [{"id": "D", "packageName": "P1"}],
        "reason": "last-wins",
    }
