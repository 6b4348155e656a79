import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'ai_policies' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from ai_policies.core.audit import reset_stdlib_logging_for_tests
from ai_policies.core.config import CompositionSettings
from helpers.partials import make_config, make_partial


FIXED_TIME = datetime(2026, 1, 15, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch) -> None:
    """Drop AI_POLICIES_* variables so settings only see bundled defaults."""
    for key in list(os.environ):
        if key.startswith("AI_POLICIES_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_stdlib_logging_for_tests()


@pytest.fixture
def settings() -> CompositionSettings:
    return CompositionSettings(use_env=False)


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def partial_factory():
    """Return the ``make_partial`` factory."""
    return make_partial


@pytest.fixture
def config_factory():
    """Return the ``make_config`` factory."""
    return make_config
