"""Logging configuration for applications embedding ai-policies."""
from __future__ import annotations

from .stdlib_logging import LOG_FORMAT, configure_stdlib_logging, reset_stdlib_logging_for_tests

__all__ = ["LOG_FORMAT", "configure_stdlib_logging", "reset_stdlib_logging_for_tests"]
