"""Cache status snapshot and deletion inventory dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Any

from symbolsweep.utils import format_size

WARNING_THRESHOLD = 5 * 1024 * 1024 * 1024
CRITICAL_THRESHOLD = 10 * 1024 * 1024 * 1024


@total_ordering
class CacheState(Enum):
    """Severity of the cache size, ordered Normal < Warning < Critical."""

    NORMAL = "Normal"
    WARNING = "Warning"
    CRITICAL = "Critical"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CacheState):
            return NotImplemented
        return self.severity < other.severity


_SEVERITY = {CacheState.NORMAL: 0, CacheState.WARNING: 1, CacheState.CRITICAL: 2}


@dataclass(frozen=True, slots=True)
class DeletionItem:
    """Direct child of the cache directory that a clean would remove."""

    path: str
    size_bytes: int
    is_directory: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "size_bytes": self.size_bytes,
            "size_display": format_size(self.size_bytes),
            "is_directory": self.is_directory,
        }


@dataclass(frozen=True, slots=True)
class CacheStatus:
    """Snapshot of the cache directory at one point in time.

    A new snapshot is built for every measurement; nothing mutates one
    after construction, so it can be handed to any number of observers.
    """

    total_bytes: int
    state: CacheState
    target_path: str
    exists: bool
    item_count: int
    measured_at: int

    @property
    def size_display(self) -> str:
        return format_size(self.total_bytes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_bytes": self.total_bytes,
            "size_display": self.size_display,
            "state": self.state.value,
            "target_path": self.target_path,
            "exists": self.exists,
            "item_count": self.item_count,
            "measured_at": self.measured_at,
        }
