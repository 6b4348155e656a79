"""Layered merging for composition settings.

Settings are built from layers (bundled defaults, caller overrides); each
layer is folded over the previous one. Lists inside a layer may start with
a directive:

- ``"+"``: keep the lower layer's items and add these after them
- ``"="``: replace the lower layer's list (same as no directive)
"""
from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional

APPEND = "+"
REPLACE = "="


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Fold ``override`` over ``base`` honouring a leading directive.

    Example:
        >>> merge_arrays(["core", "team"], ["stack"])
        ['stack']
        >>> merge_arrays(["core", "team"], ["+", "org"])
        ['core', 'team', 'org']
        >>> merge_arrays(["core", "team"], ["=", "org"])
        ['org']
    """
    if not override:
        return list(base)
    head, rest = override[0], list(override[1:])
    if head == APPEND:
        return [*base, *rest]
    if head == REPLACE:
        return rest
    return list(override)


def deep_merge(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` folded in; neither input is mutated.

    Nested mappings merge key by key, lists go through ``merge_arrays``, and
    anything else in ``override`` replaces the value in ``base``.

    Example:
        >>> deep_merge({"composition": {"metadata": {"label": "A"}, "tierOrder": ["core"]}},
        ...            {"composition": {"metadata": {"label": "B"}}})
        {'composition': {'metadata': {'label': 'B'}, 'tierOrder': ['core']}}
    """
    merged: Dict[str, Any] = deepcopy(dict(base))
    for key, incoming in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(incoming, Mapping):
            merged[key] = deep_merge(current, incoming)
        elif isinstance(current, list) and isinstance(incoming, list):
            merged[key] = merge_arrays(current, incoming)
        else:
            merged[key] = deepcopy(incoming)
    return merged


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fold settings layers lowest priority first; ``None`` layers are skipped."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged


__all__ = ["APPEND", "REPLACE", "deep_merge", "merge_arrays", "merge_layers"]
