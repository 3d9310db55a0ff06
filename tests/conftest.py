from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'pipelines.steps.load_items'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs; no real waiting anywhere in tests
    os.environ.setdefault("RUN_ENV", "test")
    os.environ.setdefault("SCROLL_MIN_DELAY", "0")
    os.environ.setdefault("SCROLL_MAX_DELAY", "0")
    os.environ.setdefault("RETRY_BASE_SECONDS", "0")
    os.environ.setdefault("PAUSE_POLL_SECONDS", "0.01")
    os.environ.setdefault("RATE_MIN_DELAY", "0")
    os.environ.setdefault("RATE_MAX_DELAY", "0")
    os.environ.setdefault("WAIT_TIMEOUT_SECONDS", "0")


@pytest.fixture(autouse=True)
def _fresh_settings():
    from config.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "graph.db")
