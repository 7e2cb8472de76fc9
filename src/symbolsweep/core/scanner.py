"""Size and inventory scanning of the cache directory."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path

from symbolsweep.core.classifier import classify
from symbolsweep.models.status import CacheStatus, DeletionItem
from symbolsweep.utils import dir_info, now_timestamp

log = logging.getLogger(__name__)

DEBUG_PATH = "[Debug Mode]"

_MB = 1024 * 1024


@dataclass(slots=True)
class Inventory:
    """What a scan found under the cache directory.

    ``items`` lists direct children only; ``file_count`` counts
    non-empty files at any depth.
    """

    path: Path
    exists: bool
    items: list[DeletionItem] = field(default_factory=list)
    total_bytes: int = 0
    file_count: int = 0

    def to_status(self) -> CacheStatus:
        return CacheStatus(
            total_bytes=self.total_bytes,
            state=classify(self.total_bytes),
            target_path=str(self.path),
            exists=self.exists,
            item_count=self.file_count,
            measured_at=now_timestamp(),
        )


def scan(root: Path) -> Inventory:
    """Measure *root* and list its direct children.

    A missing root is reported with ``exists=False``. Entries that
    cannot be read are skipped; a root that cannot be listed at all
    is reported as existing but empty.
    """
    if not root.exists():
        return Inventory(path=root, exists=False)

    inventory = Inventory(path=root, exists=True)
    try:
        children = sorted(root.iterdir())
    except OSError as e:
        log.warning("Cannot read cache directory %s: %s", root, e)
        return inventory

    for child in children:
        try:
            is_dir = child.is_dir() and not child.is_symlink()
            if is_dir:
                size, count = dir_info(child)
            else:
                size = child.lstat().st_size
                count = 1 if size > 0 else 0
        except OSError:
            log.debug("Cannot access: %s", child)
            continue
        inventory.items.append(DeletionItem(path=str(child), size_bytes=size, is_directory=is_dir))
        inventory.total_bytes += size
        inventory.file_count += count

    log.debug(
        "Scanned %s: %d items, %d files, %d bytes",
        root, len(inventory.items), inventory.file_count, inventory.total_bytes,
    )
    return inventory


def simulated_status(size_bytes: int) -> CacheStatus:
    """Build a status for a simulated cache size (debug mode).

    The file count is synthetic, roughly one file per MiB.
    """
    return CacheStatus(
        total_bytes=size_bytes,
        state=classify(size_bytes),
        target_path=DEBUG_PATH,
        exists=True,
        item_count=size_bytes // _MB,
        measured_at=now_timestamp(),
    )


def combined_status(user_root: Path, system_root: Path) -> CacheStatus:
    """Measure the user cache plus the system cache where it is readable.

    The size and state cover both trees; the path, existence and file
    count describe the user cache alone.
    """
    status = scan(user_root).to_status()
    system_bytes = 0
    if system_root.exists():
        system_bytes, _ = dir_info(system_root)
    total = status.total_bytes + system_bytes
    return dataclasses.replace(status, total_bytes=total, state=classify(total))
