"""Pytest configuration for test isolation.

Settings are read from FINTRACK_* environment variables and cached by
get_settings(). Each test gets a clean environment, a cache file under
its own temporary directory, and a fresh settings cache.
"""

import os
from pathlib import Path

import pytest
import structlog

from fintrack.config import get_settings


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Strip FINTRACK_* variables and point the cache at tmp_path."""
    for name in list(os.environ):
        if name.startswith("FINTRACK_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FINTRACK_CACHE_PATH", os.fspath(tmp_path / "storage.json"))

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
