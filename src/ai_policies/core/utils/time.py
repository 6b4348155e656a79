from __future__ import annotations

"""Timezone-aware time helpers.

Formatting choices come from the ``time.iso8601`` section of the bundled
composition settings unless the caller passes its own section.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


_REQUIRED_FIELDS = ("timespec", "use_z_suffix", "strip_microseconds")


def _cfg(time_config: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return the ``time.iso8601`` configuration.

    Raises:
        RuntimeError: If the section is missing or incomplete
    """
    if time_config is None:
        from ai_policies.data import bundled_defaults

        full_config = bundled_defaults()
        if "time" not in full_config or "iso8601" not in (full_config["time"] or {}):
            raise RuntimeError(
                "time.iso8601 configuration section is missing from bundled defaults."
            )
        time_config = full_config["time"]["iso8601"]

    missing_fields = [f for f in _REQUIRED_FIELDS if f not in time_config]
    if missing_fields:
        raise RuntimeError(
            f"time.iso8601 configuration missing required fields: {missing_fields}"
        )
    return dict(time_config)


def utc_now(time_config: Optional[Mapping[str, Any]] = None) -> datetime:
    """Return timezone-aware UTC datetime using config-driven precision."""
    cfg = _cfg(time_config)
    now = datetime.now(timezone.utc)
    if cfg["strip_microseconds"]:
        now = now.replace(microsecond=0)
    return now


def format_timestamp(dt: datetime, time_config: Optional[Mapping[str, Any]] = None) -> str:
    """Format ``dt`` as an ISO 8601 UTC string according to configuration.

    Naive datetimes are treated as UTC.
    """
    cfg = _cfg(time_config)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    if cfg["strip_microseconds"]:
        dt = dt.replace(microsecond=0)
    ts = dt.isoformat(timespec=cfg["timespec"]) if cfg["timespec"] else dt.isoformat()
    if cfg["use_z_suffix"]:
        ts = ts.replace("+00:00", "Z")
    return ts


def utc_timestamp(time_config: Optional[Mapping[str, Any]] = None) -> str:
    """Return ISO 8601 UTC timestamp according to configuration."""
    return format_timestamp(utc_now(time_config), time_config)


def parse_iso8601(timestamp_str: str) -> datetime:
    """Parse an ISO 8601 timestamp string into a UTC datetime."""
    ts = timestamp_str.strip()
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    dt = datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt


__all__ = ["utc_now", "utc_timestamp", "format_timestamp", "parse_iso8601"]
