"""Tests for routing ai_policies logging to a file."""
from __future__ import annotations

import logging
from pathlib import Path

from ai_policies.core.audit import configure_stdlib_logging, reset_stdlib_logging_for_tests


def _file_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger("ai_policies").handlers if isinstance(h, logging.FileHandler)]


def test_records_land_in_log_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "ai-policies.log"

    configure_stdlib_logging(log_path=log_path, level="DEBUG")
    logging.getLogger("ai_policies.core.composition.composer").debug("composed claude")

    text = log_path.read_text(encoding="utf-8")
    assert "DEBUG ai_policies.core.composition.composer: composed claude" in text


def test_configure_is_idempotent(tmp_path: Path) -> None:
    log_path = tmp_path / "ai-policies.log"

    configure_stdlib_logging(log_path=log_path)
    configure_stdlib_logging(log_path=log_path)

    assert len(_file_handlers()) == 1


def test_reconfigure_switches_files(tmp_path: Path) -> None:
    configure_stdlib_logging(log_path=tmp_path / "one.log")
    configure_stdlib_logging(log_path=tmp_path / "two.log")

    handlers = _file_handlers()
    assert len(handlers) == 1
    assert Path(handlers[0].baseFilename).name == "two.log"


def test_reset_removes_handlers(tmp_path: Path) -> None:
    configure_stdlib_logging(log_path=tmp_path / "ai-policies.log")
    reset_stdlib_logging_for_tests()
    assert _file_handlers() == []
