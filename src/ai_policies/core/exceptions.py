from __future__ import annotations

from typing import Any, Dict, Mapping


class AiPoliciesError(Exception):
    """Base exception for ai-policies."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class SettingsError(AiPoliciesError, ValueError):
    """Raised when composition settings cannot be loaded."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        AiPoliciesError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class SettingsValidationError(SettingsError):
    """Raised when merged composition settings fail schema validation."""


__all__ = [
    "AiPoliciesError",
    "SettingsError",
    "SettingsValidationError",
]
