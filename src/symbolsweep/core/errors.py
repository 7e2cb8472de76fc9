"""Named failure conditions returned to callers."""

from __future__ import annotations


class SymbolSweepError(Exception):
    """Base class for whole-operation failures."""


class CleanerBusyError(SymbolSweepError):
    """Raised when a clean is requested while another one is running."""

    def __init__(self, message: str = "A clean operation is already in progress") -> None:
        super().__init__(message)


class PersistenceError(SymbolSweepError):
    """Raised when settings cannot be written to disk."""


class InvalidSettingsError(SymbolSweepError, ValueError):
    """Raised when an update would store an out-of-range setting."""


class UnsafeTargetError(SymbolSweepError):
    """Raised when the cache path does not look like the expected cache."""
