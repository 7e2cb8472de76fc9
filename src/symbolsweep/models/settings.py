"""Persisted user settings."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from symbolsweep.models.status import WARNING_THRESHOLD
from symbolsweep.core.errors import InvalidSettingsError

log = logging.getLogger(__name__)

# Fields that must be at least one second.
_INTERVAL_FIELDS = ("auto_clean_interval_secs", "monitor_interval_secs")

# Intervals are u32 seconds on the wire, sizes and timestamps u64.
_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


@dataclass(frozen=True, slots=True)
class Settings:
    """Auto-clean, monitoring and first-run configuration."""

    auto_clean_on_threshold: bool = False
    auto_clean_threshold: int = WARNING_THRESHOLD
    auto_clean_scheduled: bool = False
    auto_clean_interval_secs: int = 6 * 60 * 60
    show_notifications: bool = True
    launch_at_login: bool = False
    last_clean_timestamp: int = 0
    monitor_interval_secs: int = 60
    debug_mode: bool = False
    debug_simulated_size: int = 0
    first_run_completed: bool = False
    first_clean_confirmed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> Settings:
        """Build settings from persisted data, one field at a time.

        Missing or malformed fields fall back to their defaults instead
        of discarding the whole record. Unknown keys are ignored.
        """
        if not isinstance(data, dict):
            log.warning("Settings data is not an object, using defaults")
            return cls()

        defaults = cls()
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(defaults, f.name)
            if _valid_field(f.name, value, default):
                values[f.name] = value
            else:
                log.warning("Ignoring invalid value for setting '%s': %r", f.name, value)
        return cls(**values)

    def validate(self) -> None:
        """Raise InvalidSettingsError if any field is out of range."""
        defaults = Settings()
        for f in fields(self):
            value = getattr(self, f.name)
            if not _valid_field(f.name, value, getattr(defaults, f.name)):
                raise InvalidSettingsError(f"Invalid value for '{f.name}': {value!r}")


def _valid_field(name: str, value: Any, default: Any) -> bool:
    # bool is a subclass of int, so check it first in both directions.
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    if name in _INTERVAL_FIELDS:
        return 1 <= value <= _U32_MAX
    return 0 <= value <= _U64_MAX
