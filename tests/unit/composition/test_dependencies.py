"""Tests for dependency ordering, cycle detection, and missing references."""
from __future__ import annotations

from ai_policies.core.composition import (
    MissingDependency,
    detect_cycles,
    find_missing_dependencies,
    get_all_dependencies,
    get_dependents,
    resolve_dependencies,
    validate_dependency_chain,
)
from helpers.partials import make_partial


def _ids(partials) -> list[str]:
    return [p.id for p in partials]


class TestResolveDependencies:
    """resolve_dependencies orders dependencies first and never raises."""

    def test_chain_declared_in_reverse(self) -> None:
        """Dependencies precede dependents regardless of input order."""
        partials = [
            make_partial("c", depends_on=["b"]),
            make_partial("b", depends_on=["a"]),
            make_partial("a"),
        ]

        result = resolve_dependencies(partials)

        assert _ids(result.resolved) == ["a", "b", "c"]
        assert result.circular == []
        assert result.missing == []
        assert result.ok

    def test_diamond_graph(self) -> None:
        """Every edge of an acyclic graph is respected."""
        partials = [
            make_partial("d", depends_on=["b", "c"]),
            make_partial("b", depends_on=["a"]),
            make_partial("c", depends_on=["a"]),
            make_partial("a"),
            make_partial("e"),
        ]

        order = _ids(resolve_dependencies(partials).resolved)

        assert sorted(order) == ["a", "b", "c", "d", "e"]
        for partial in partials:
            for dep in partial.depends_on:
                assert order.index(dep) < order.index(partial.id)

    def test_independent_partials_keep_input_order(self) -> None:
        partials = [make_partial("z"), make_partial("m"), make_partial("a")]
        assert _ids(resolve_dependencies(partials).resolved) == ["z", "m", "a"]

    def test_three_node_cycle_is_reported(self) -> None:
        """A -> B -> C -> A is detected, reported once, and does not hang."""
        partials = [
            make_partial("a", depends_on=["b"]),
            make_partial("b", depends_on=["c"]),
            make_partial("c", depends_on=["a"]),
        ]

        result = resolve_dependencies(partials)

        assert result.circular == [["a", "b", "c", "a"]]
        assert sorted(_ids(result.resolved)) == ["a", "b", "c"]
        assert not result.ok

    def test_cyclic_partials_are_retained_once(self) -> None:
        partials = [
            make_partial("x", depends_on=["y"]),
            make_partial("y", depends_on=["x"]),
            make_partial("z", depends_on=["x"]),
        ]

        result = resolve_dependencies(partials)

        assert len(result.resolved) == 3
        assert len(set(_ids(result.resolved))) == 3
        assert result.circular == [["x", "y", "x"]]

    def test_self_dependency_is_a_cycle(self) -> None:
        result = resolve_dependencies([make_partial("a", depends_on=["a"])])

        assert result.circular == [["a", "a"]]
        assert _ids(result.resolved) == ["a"]

    def test_missing_dependency_is_reported(self) -> None:
        """A dependency on an absent id is reported but does not block ordering."""
        partials = [make_partial("a", depends_on=["ghost", "b"]), make_partial("b")]

        result = resolve_dependencies(partials)

        assert _ids(result.resolved) == ["b", "a"]
        assert result.missing == [MissingDependency(partial_id="a", missing_deps=("ghost",))]

    def test_deep_chain_does_not_exhaust_the_stack(self) -> None:
        """Traversal is iterative, so very long chains resolve."""
        depth = 5000
        partials = [
            make_partial(f"p{i}", depends_on=[f"p{i + 1}"] if i + 1 < depth else [])
            for i in range(depth)
        ]

        order = _ids(resolve_dependencies(partials).resolved)

        assert order[0] == f"p{depth - 1}"
        assert order[-1] == "p0"

    def test_empty_input(self) -> None:
        result = resolve_dependencies([])
        assert result.resolved == []
        assert result.ok


class TestDependencyHelpers:
    """Supplementary dependency queries."""

    def test_find_missing_dependencies(self) -> None:
        partials = [make_partial("a", depends_on=["b", "c"]), make_partial("b")]
        assert find_missing_dependencies(partials) == [MissingDependency("a", ("c",))]

    def test_detect_cycles(self) -> None:
        partials = [make_partial("a", depends_on=["b"]), make_partial("b", depends_on=["a"])]
        assert detect_cycles(partials) == [["a", "b", "a"]]

    def test_validate_dependency_chain(self) -> None:
        assert validate_dependency_chain([make_partial("a"), make_partial("b", depends_on=["a"])])
        assert not validate_dependency_chain([make_partial("b", depends_on=["a"])])

    def test_get_all_dependencies_is_transitive(self) -> None:
        partials = [
            make_partial("a", depends_on=["b", "c"]),
            make_partial("b", depends_on=["d"]),
            make_partial("c", depends_on=["d"]),
            make_partial("d"),
        ]

        deps = get_all_dependencies("a", partials)

        assert sorted(deps) == ["b", "c", "d"]
        assert len(deps) == len(set(deps))

    def test_get_all_dependencies_terminates_on_cycles(self) -> None:
        partials = [make_partial("a", depends_on=["b"]), make_partial("b", depends_on=["a"])]
        assert "b" in get_all_dependencies("a", partials)

    def test_get_all_dependencies_includes_missing_ids(self) -> None:
        partials = [make_partial("a", depends_on=["ghost"])]
        assert get_all_dependencies("a", partials) == ["ghost"]

    def test_get_dependents(self) -> None:
        partials = [
            make_partial("a"),
            make_partial("b", depends_on=["a"]),
            make_partial("c", depends_on=["b"]),
        ]
        assert _ids(get_dependents("a", partials)) == ["b"]
