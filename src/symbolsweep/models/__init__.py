"""SymbolSweep data models."""

from symbolsweep.models.status import CacheState, CacheStatus, DeletionItem
from symbolsweep.models.clean_result import CleanResult
from symbolsweep.models.settings import Settings

__all__ = [
    "CacheState",
    "CacheStatus",
    "CleanResult",
    "DeletionItem",
    "Settings",
]
