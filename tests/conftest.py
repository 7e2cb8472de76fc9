"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

import symbolsweep.storage as storage
from symbolsweep.core.events import EventBus
from symbolsweep.service import CacheService
from symbolsweep.settings import SettingsStore
from symbolsweep.utils import CACHE_FOLDER_NAME


def _make_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.truncate(size)
    return path


@pytest.fixture
def make_file():
    """Create sparse files of a given size (no real disk usage)."""
    return _make_file


@pytest.fixture(autouse=True)
def isolate_storage(tmp_path, monkeypatch):
    """Redirect the audit log to a temp directory."""
    data_dir = tmp_path / "symbolsweep_data"
    data_dir.mkdir()
    audit_log = data_dir / "deletions.log"
    monkeypatch.setattr(storage, "AUDIT_LOG", audit_log)
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    return audit_log


@pytest.fixture
def cache_dir(tmp_path):
    """An existing, empty cache directory with the expected folder name."""
    path = tmp_path / "Caches" / CACHE_FOLDER_NAME
    path.mkdir(parents=True)
    return path


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "config" / "settings.json"


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def store(settings_path, bus):
    return SettingsStore(settings_path, bus)


@pytest.fixture
def service(cache_dir, settings_path):
    return CacheService(cache_dir, settings_path, before_delete=None)
