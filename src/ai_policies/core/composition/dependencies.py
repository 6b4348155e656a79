"""Dependency ordering for partials.

Orders partials so that every partial follows the partials it depends on,
reporting circular chains and dangling references instead of raising.

Traversal is an iterative depth-first search with an explicit stack, so deep
or adversarial dependency graphs cannot exhaust the interpreter stack.

Cycle policy: partials on a cycle are kept, each exactly once, at the position
where the traversal completes them. Their relative order is not meaningful;
callers learn about it through ``DependencyResolution.circular`` and decide
whether to abort.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Set, Tuple

from .types import DependencyResolution, MissingDependency, Partial


def _index(partials: Sequence[Partial]) -> Dict[str, Partial]:
    # Ids are expected to be unique at this stage; when they are not, the
    # last occurrence represents the id.
    by_id: Dict[str, Partial] = {}
    for partial in partials:
        by_id[partial.id] = partial
    return by_id


def _traverse(
    roots: Sequence[str],
    graph: Dict[str, Tuple[str, ...]],
) -> Tuple[List[str], List[List[str]]]:
    """Post-order DFS over ``graph`` from ``roots``.

    Returns the completion order and the cycles found. Dependencies that are
    not nodes of ``graph`` are skipped.
    """
    visited: Set[str] = set()
    visiting: Set[str] = set()
    order: List[str] = []
    cycles: List[List[str]] = []

    for root in roots:
        if root in visited:
            continue

        path: List[str] = [root]
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.get(root, ())))]
        visiting.add(root)

        while stack:
            node, deps = stack[-1]
            descended = False
            for dep in deps:
                if dep not in graph or dep in visited:
                    continue
                if dep in visiting:
                    start = path.index(dep)
                    cycles.append(path[start:] + [dep])
                    continue
                visiting.add(dep)
                path.append(dep)
                stack.append((dep, iter(graph.get(dep, ()))))
                descended = True
                break

            if not descended:
                stack.pop()
                path.pop()
                visiting.discard(node)
                visited.add(node)
                order.append(node)

    return order, cycles


def find_missing_dependencies(partials: Sequence[Partial]) -> List[MissingDependency]:
    """Report every declared dependency that no partial in the set provides."""
    known = {p.id for p in partials}
    missing: List[MissingDependency] = []
    for partial in partials:
        absent = tuple(dep for dep in partial.depends_on if dep not in known)
        if absent:
            missing.append(MissingDependency(partial_id=partial.id, missing_deps=absent))
    return missing


def resolve_dependencies(partials: Sequence[Partial]) -> DependencyResolution:
    """Order partials so dependencies precede dependents.

    Never raises: cycles and missing dependencies are returned as data.

    Args:
        partials: Partials with unique ids (typically after deduplication).

    Returns:
        DependencyResolution with the best-effort order, the cycles found,
        and the missing references.
    """
    by_id = _index(partials)
    graph = {pid: p.depends_on for pid, p in by_id.items()}
    order, cycles = _traverse(list(by_id.keys()), graph)
    return DependencyResolution(
        resolved=[by_id[pid] for pid in order],
        circular=cycles,
        missing=find_missing_dependencies(list(by_id.values())),
    )


def detect_cycles(partials: Sequence[Partial]) -> List[List[str]]:
    """Return the circular dependency chains among ``partials``."""
    return resolve_dependencies(partials).circular


def validate_dependency_chain(partials: Sequence[Partial]) -> bool:
    """True when the partials have neither cycles nor missing dependencies."""
    return resolve_dependencies(partials).ok


def get_all_dependencies(partial_id: str, partials: Sequence[Partial]) -> List[str]:
    """Return the transitive dependencies of ``partial_id``.

    Ids appear once, in discovery order. Dependencies that no partial
    provides are included but not expanded.
    """
    by_id = _index(partials)
    seen: Set[str] = {partial_id}
    result: List[str] = []
    stack: List[str] = [partial_id]
    while stack:
        current = stack.pop()
        partial = by_id.get(current)
        if partial is None:
            continue
        for dep in partial.depends_on:
            if dep not in result:
                result.append(dep)
            if dep not in seen:
                seen.add(dep)
                stack.append(dep)
    return result


def get_dependents(partial_id: str, partials: Sequence[Partial]) -> List[Partial]:
    """Return partials that directly depend on ``partial_id``."""
    return [p for p in partials if partial_id in p.depends_on]


__all__ = [
    "resolve_dependencies",
    "find_missing_dependencies",
    "detect_cycles",
    "validate_dependency_chain",
    "get_all_dependencies",
    "get_dependents",
]
