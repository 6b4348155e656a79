"""Base class for domain-specific settings accessors.

Settings are layered, lowest priority first:
1. Bundled defaults: ``ai_policies.data/config/composition.yaml``
2. Caller overrides passed to the constructor
3. Environment variables: ``AI_POLICIES_<section>__<key>`` (when enabled)

The merged mapping is validated against a bundled JSON Schema before use.
Instances are constructed explicitly by the caller; nothing is cached
process-wide beyond the parsed bundled YAML.
"""
from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ai_policies.core.exceptions import SettingsError
from ai_policies.core.utils.merge import merge_layers
from ai_policies.data import bundled_defaults

from .validation import validate_payload

logger = logging.getLogger(__name__)

ENV_PREFIX = "AI_POLICIES_"


def _as_bool(v: str) -> Optional[bool]:
    low = v.strip().lower()
    if low in {"true", "false"}:
        return low == "true"
    return None


def _as_int(v: str) -> Optional[int]:
    if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
        return int(v)
    return None


def _as_json(v: str) -> Optional[Any]:
    s = v.strip()
    if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
        try:
            return json.loads(s)
        except ValueError:
            return None
    return None


def coerce_env_value(value: str) -> Any:
    """Coerce an environment string to bool, int, JSON, or stripped text."""
    for caster in (_as_bool, _as_int, _as_json):
        result = caster(value)
        if result is not None:
            return result
    return value.strip()


def iter_env_overrides(environ: Mapping[str, str]) -> Iterator[Tuple[List[str], Any]]:
    """Yield ``(path, value)`` pairs for every ``AI_POLICIES_*`` variable."""
    for key in sorted(environ.keys()):
        if not key.startswith(ENV_PREFIX):
            continue
        raw = key[len(ENV_PREFIX):]
        segments = raw.split("__")
        if not raw or any(seg == "" for seg in segments):
            raise SettingsError(
                f"Malformed {ENV_PREFIX}* key: empty segment in '{key}'",
                context={"key": key},
            )
        yield segments, coerce_env_value(environ[key])


def set_nested(root: Dict[str, Any], path: List[str], value: Any) -> None:
    """Assign ``value`` at ``path``, matching existing keys case-insensitively."""
    cur = root
    for i, part in enumerate(path):
        candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
        key = candidates.get(part.lower(), part)
        if i == len(path) - 1:
            cur[key] = value
            return
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt


class BaseDomainConfig(ABC):
    """Abstract base class for domain-specific settings accessors.

    Usage:
        class MyConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "mySection"

            @cached_property
            def my_setting(self) -> str:
                return self.section.get("mySetting", "default")
    """

    #: Bundled defaults file under ``ai_policies.data/config``.
    defaults_file = "composition.yaml"
    #: Bundled schema used to validate the merged settings.
    schema_name = "composition"

    def __init__(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        use_env: bool = True,
    ) -> None:
        """Initialize settings.

        Args:
            overrides: Mapping deep-merged over the bundled defaults.
            environ: Environment to read overrides from (default: ``os.environ``).
            use_env: Whether ``AI_POLICIES_*`` variables are applied.
        """
        merged = merge_layers(bundled_defaults(self.defaults_file), overrides)
        if use_env:
            env = os.environ if environ is None else environ
            for path, value in iter_env_overrides(env):
                logger.debug("Applying environment override %s", "__".join(path))
                set_nested(merged, path, value)
        validate_payload(merged, self.schema_name)
        self._config = merged

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this domain."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        """Get this domain's configuration section."""
        return self._config.get(self._config_section(), {}) or {}

    @property
    def full_config(self) -> Dict[str, Any]:
        """Return the full merged configuration mapping."""
        return self._config


__all__ = [
    "BaseDomainConfig",
    "ENV_PREFIX",
    "coerce_env_value",
    "iter_env_overrides",
    "set_nested",
]
