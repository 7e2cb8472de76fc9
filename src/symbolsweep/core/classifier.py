"""Cache size to severity mapping."""

from __future__ import annotations

from symbolsweep.models.status import CRITICAL_THRESHOLD, WARNING_THRESHOLD, CacheState

__all__ = ["CRITICAL_THRESHOLD", "WARNING_THRESHOLD", "classify"]


def classify(size_bytes: int) -> CacheState:
    """Return the severity state for a cache size in bytes."""
    if size_bytes < 0:
        raise ValueError(f"Cache size cannot be negative: {size_bytes}")
    if size_bytes >= CRITICAL_THRESHOLD:
        return CacheState.CRITICAL
    if size_bytes >= WARNING_THRESHOLD:
        return CacheState.WARNING
    return CacheState.NORMAL
