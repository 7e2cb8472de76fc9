"""Shared utility functions."""

from __future__ import annotations

import logging
import os
import shutil
import time
from pathlib import Path

log = logging.getLogger(__name__)

CACHE_FOLDER_NAME = "com.apple.coresymbolicationd"

_KB = 1024
_MB = _KB * 1024
_GB = _MB * 1024


def has_command(name: str) -> bool:
    """Check if a command exists on the system."""
    return shutil.which(name) is not None


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def cache_path() -> Path:
    """Return the monitored cache directory.

    ``SYMBOLSWEEP_CACHE_DIR`` overrides the default user cache location.
    """
    override = os.environ.get("SYMBOLSWEEP_CACHE_DIR")
    if override:
        return Path(override)
    return Path.home() / "Library" / "Caches" / CACHE_FOLDER_NAME


def system_cache_path() -> Path:
    """Return the system-wide cache directory, usually readable only by root.

    ``SYMBOLSWEEP_SYSTEM_CACHE_DIR`` overrides the default location.
    """
    override = os.environ.get("SYMBOLSWEEP_SYSTEM_CACHE_DIR")
    if override:
        return Path(override)
    return Path("/System/Library/Caches") / CACHE_FOLDER_NAME


def now_timestamp() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


def format_size(size_bytes: int) -> str:
    """Convert a byte count to a short human-readable string.

    Switches to GB at 1000 MB rather than 1024 so values never read
    as four-digit megabytes; whole gigabytes drop the decimal.
    """
    if size_bytes >= 1000 * _MB:
        value = round(size_bytes / _GB, 1)
        if value == int(value):
            return f"{int(value)} GB"
        return f"{value:.1f} GB"
    if size_bytes >= _MB:
        return f"{size_bytes // _MB} MB"
    if size_bytes >= _KB:
        return f"{size_bytes // _KB} KB"
    if size_bytes > 0:
        return f"{size_bytes} B"
    return "0 B"


def format_duration(seconds: int) -> str:
    """Format a duration as its largest whole unit ('3 hours')."""
    for unit, length in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= length:
            n = seconds // length
            return f"{n} {unit}{'s' if n != 1 else ''}"
    return f"{seconds} second{'s' if seconds != 1 else ''}"


def time_since(timestamp: int, now: int | None = None) -> str:
    """Render a Unix timestamp relative to now; 0 means 'Never'."""
    if timestamp == 0:
        return "Never"
    if now is None:
        now = now_timestamp()
    return f"{format_duration(max(0, now - timestamp))} ago"


def dir_info(path: Path | str) -> tuple[int, int]:
    """Calculate total size and non-empty file count of a directory tree.

    Symbolic links are never followed; unreadable entries are skipped.

    Returns:
        (total_bytes, file_count) tuple.
    """
    total = 0
    count = 0
    stack: list[Path | str] = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                for entry in it:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(entry.path)
                            continue
                        size = entry.stat(follow_symlinks=False).st_size
                        total += size
                        if size > 0:
                            count += 1
                    except OSError:
                        log.debug("Cannot access: %s", entry.path)
        except OSError:
            log.debug("Cannot read directory: %s", current)
    return total, count
