"""Schema validation for composition settings.

Schemas are stored as YAML files (JSON Schema expressed in YAML) under
``ai_policies.data/schemas`` and validated with ``jsonschema``.
"""
from __future__ import annotations

from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft202012Validator

from ai_policies.core.exceptions import SettingsValidationError
from ai_policies.data import read_yaml, schema_filename


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict.

    Automatically appends ``.schema.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    schema = read_yaml("schemas", schema_filename(schema_name))
    if not schema:
        raise ValueError(f"Schema '{schema_name}' is empty")
    return schema


def schema_errors(payload: Dict[str, Any], schema_name: str) -> List[str]:
    """Return validation error messages for ``payload`` (empty if valid)."""
    schema = load_schema(schema_name)
    validator = Draft202012Validator(schema)
    errors: List[str] = []
    for err in sorted(validator.iter_errors(payload), key=lambda e: list(e.path)):
        location = ".".join(str(p) for p in err.path) or "<root>"
        errors.append(f"{location}: {err.message}")
    return errors


def validate_payload(payload: Dict[str, Any], schema_name: str) -> None:
    """Validate ``payload`` against a bundled schema.

    Raises:
        SettingsValidationError: If validation fails.
    """
    try:
        jsonschema.validate(instance=payload, schema=load_schema(schema_name))
    except jsonschema.ValidationError:
        errors = schema_errors(payload, schema_name)
        raise SettingsValidationError(
            f"Validation failed against schema '{schema_name}': " + "; ".join(errors),
            context={"schema": schema_name, "errors": errors},
        ) from None


__all__ = ["load_schema", "schema_errors", "validate_payload"]
