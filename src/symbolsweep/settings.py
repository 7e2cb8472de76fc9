"""JSON-backed settings store with atomic updates."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable

from symbolsweep.core.errors import PersistenceError
from symbolsweep.core.events import SETTINGS_UPDATED, EventBus
from symbolsweep.models.settings import Settings
from symbolsweep.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "symbolsweep"
_SETTINGS_FILE = "settings.json"


def default_settings_path() -> Path:
    return xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE


class SettingsStore:
    """Owns the process-wide Settings value.

    Reads are lock-free snapshots of an immutable value. Every update is
    a read-modify-write performed under a lock and written to disk before
    the new value becomes visible; subscribers then receive the full new
    value on the ``settings-updated`` topic.
    """

    def __init__(self, path: Path | None = None, bus: EventBus | None = None) -> None:
        self._path = path or default_settings_path()
        self._bus = bus or EventBus()
        # Re-entrant so a subscriber may itself update settings.
        self._lock = threading.RLock()
        self._current = Settings()
        self.load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> Settings:
        """Return the current settings."""
        return self._current

    def load(self) -> Settings:
        """Load settings from disk, falling back to defaults on any problem."""
        with self._lock:
            self._current = self._read()
            return self._current

    def update(self, mutator: Callable[[Settings], Settings]) -> Settings:
        """Apply *mutator* to the current settings and persist the result.

        Raises:
            InvalidSettingsError: The new value has an out-of-range field.
            PersistenceError: The file could not be written; the in-memory
                value is left untouched.
        """
        with self._lock:
            updated = mutator(self._current)
            updated.validate()
            self._write(updated)
            self._current = updated
            self._bus.publish(SETTINGS_UPDATED, updated)
            return updated

    def replace(self, settings: Settings) -> Settings:
        """Store *settings* wholesale."""
        return self.update(lambda _current: settings)

    def subscribe(self, callback: Callable[[Settings], None]) -> Callable[[], None]:
        """Call *callback* with the new value after each successful update."""
        return self._bus.subscribe(SETTINGS_UPDATED, callback)

    def _read(self) -> Settings:
        if not self._path.exists():
            return Settings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return Settings()
        return Settings.from_dict(data)

    def _write(self, settings: Settings) -> None:
        """Write *settings* via a temporary file and an atomic rename."""
        payload = json.dumps(settings.to_dict(), indent=2) + "\n"
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".settings-", suffix=".tmp", dir=self._path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            log.warning("Could not save settings to %s: %s", self._path, e)
            raise PersistenceError(f"Failed to write settings to {self._path}: {e}") from e
