"""Cleaning result dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from symbolsweep.models.status import DeletionItem
from symbolsweep.utils import format_size


@dataclass(frozen=True, slots=True)
class CleanResult:
    """Result of a single clean or dry-run invocation.

    For a dry run ``bytes_freed`` and ``items_removed`` hold what a real
    clean would free and remove.
    """

    success: bool
    bytes_freed: int
    items_removed: int
    timestamp: int
    message: str
    was_dry_run: bool
    items_found: tuple[DeletionItem, ...] = ()
    errors: tuple[str, ...] = ()

    @property
    def bytes_freed_display(self) -> str:
        return format_size(self.bytes_freed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "bytes_freed": self.bytes_freed,
            "bytes_freed_display": self.bytes_freed_display,
            "items_removed": self.items_removed,
            "timestamp": self.timestamp,
            "message": self.message,
            "was_dry_run": self.was_dry_run,
            "items_found": [item.to_dict() for item in self.items_found],
            "errors": list(self.errors),
        }
