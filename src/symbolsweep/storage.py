"""Append-only audit log of clean operations."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime

from symbolsweep.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "symbolsweep"

AUDIT_LOG = _DATA_DIR / "deletions.log"


def _ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    _DATA_DIR.mkdir(parents=True, exist_ok=True)


def append_audit(*messages: str) -> None:
    """Append timestamped lines to the audit log.

    The log is the durable record of what was deleted, so a failure to
    write it is logged but never interrupts the clean itself.
    """
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    try:
        _ensure_data_dir()
        with open(AUDIT_LOG, "a", encoding="utf-8") as f:
            for message in messages:
                f.write(f"[{stamp}] {message}\n")
    except OSError:
        log.exception("Failed to write audit log: %s", AUDIT_LOG)


def read_audit(limit: int | None = None) -> list[str]:
    """Return the last *limit* audit lines (all lines if None)."""
    if not AUDIT_LOG.exists():
        return []
    try:
        with open(AUDIT_LOG, encoding="utf-8") as f:
            lines = deque((line.rstrip("\n") for line in f), maxlen=limit)
    except OSError:
        log.exception("Failed to read audit log: %s", AUDIT_LOG)
        return []
    return list(lines)
