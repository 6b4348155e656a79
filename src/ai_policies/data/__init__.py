"""
Bundled composition data.

``config/composition.yaml`` holds the default composition settings and
``schemas/`` the JSON Schemas (written as YAML) that validate them. Both are
read through importlib.resources so they work from wheels and zip imports.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_FILE = "composition.yaml"
SCHEMA_SUFFIX = ".schema.yaml"


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Resolve a bundled data file or directory.

    Example:
        >>> get_data_path("schemas", "composition.schema.yaml")
        PosixPath('/path/to/ai_policies/data/schemas/composition.schema.yaml')
    """
    root = Path(str(resources.files("ai_policies.data") / subpackage))
    return root / filename if filename else root


@lru_cache(maxsize=16)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """
    Parse a bundled YAML mapping (cached; callers must not mutate it).

    Raises:
        FileNotFoundError: If the file is not bundled.
        ValueError: If the document is not a mapping.
    """
    path = get_data_path(subpackage, filename)
    if not path.is_file():
        raise FileNotFoundError(f"Bundled data file not found: {subpackage}/{filename} ({path})")
    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"{subpackage}/{filename} must be a YAML mapping, got {type(document).__name__}")
    return document


def bundled_defaults(filename: str = DEFAULTS_FILE) -> dict[str, Any]:
    """Default settings shipped with the package."""
    return read_yaml("config", filename)


def schema_filename(schema_name: str) -> str:
    """``"composition"`` -> ``"composition.schema.yaml"``; names with an extension pass through."""
    if schema_name.endswith((".yaml", ".yml")):
        return schema_name
    return f"{schema_name}{SCHEMA_SUFFIX}"


__all__ = [
    "DEFAULTS_FILE",
    "bundled_defaults",
    "get_data_path",
    "read_yaml",
    "schema_filename",
]
