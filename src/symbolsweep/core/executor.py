"""Single-flight clean and dry-run execution."""

from __future__ import annotations

import dataclasses
import logging
import shutil
import threading
from pathlib import Path
from typing import Callable

from symbolsweep import storage
from symbolsweep.core import scanner
from symbolsweep.core.errors import CleanerBusyError, PersistenceError, UnsafeTargetError
from symbolsweep.core.events import CLEAN_COMPLETED, EventBus
from symbolsweep.models.clean_result import CleanResult
from symbolsweep.models.status import DeletionItem
from symbolsweep.settings import SettingsStore
from symbolsweep.utils import CACHE_FOLDER_NAME, format_size, now_timestamp

log = logging.getLogger(__name__)

PreDeleteHook = Callable[[], None]


def verify_safe_target(target: Path, folder_name: str = CACHE_FOLDER_NAME) -> None:
    """Refuse to clean anything but the expected cache folder.

    Raises:
        UnsafeTargetError: If *target* is relative, a filesystem root, the
            home directory, or not named *folder_name*.
    """
    if not target.is_absolute():
        raise UnsafeTargetError(f"Cache path must be absolute: {target}")
    resolved = target.resolve()
    if resolved.parent == resolved or resolved == Path.home().resolve():
        raise UnsafeTargetError(f"Refusing to clean {resolved}")
    if target.name != folder_name or resolved.name != folder_name:
        raise UnsafeTargetError(
            f"Path '{target}' does not match expected cache folder '{folder_name}'"
        )


class CleanExecutor:
    """Deletes (or previews deleting) everything inside the cache directory.

    Only one clean runs at a time; a second request while one is in
    flight fails immediately with CleanerBusyError.
    """

    def __init__(
        self,
        target: Path,
        settings: SettingsStore,
        bus: EventBus | None = None,
        *,
        folder_name: str = CACHE_FOLDER_NAME,
        before_delete: PreDeleteHook | None = None,
    ) -> None:
        self.target = target
        self._settings = settings
        self._bus = bus or EventBus()
        self._folder_name = folder_name
        self._before_delete = before_delete
        self._busy = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    def clean(self, dry_run: bool = False) -> CleanResult:
        """Clean the cache directory, or report what would be cleaned.

        Raises:
            CleanerBusyError: Another clean is already running.
        """
        if not self._busy.acquire(blocking=False):
            raise CleanerBusyError()
        try:
            result = self._run(dry_run)
            if result.success and not result.was_dry_run:
                self._record_clean(result.timestamp)
        finally:
            self._busy.release()

        self._bus.publish(CLEAN_COMPLETED, result)
        return result

    def _run(self, dry_run: bool) -> CleanResult:
        label = "DRY RUN" if dry_run else "CLEAN OPERATION"
        storage.append_audit(f"=== {label} STARTED ===", f"Target path: {self.target}")

        try:
            verify_safe_target(self.target, self._folder_name)
        except UnsafeTargetError as exc:
            log.error("Refusing to clean: %s", exc)
            storage.append_audit(f"SAFETY: {exc}", f"=== {label} ABORTED ===")
            return self._result(False, 0, 0, f"Refusing to clean: {exc}", dry_run)

        inventory = scanner.scan(self.target)
        if not inventory.exists:
            message = "Cache directory does not exist - nothing to clean"
            storage.append_audit(message, self._summary(0, 0, dry_run), f"=== {label} COMPLETE ===")
            return self._result(True, 0, 0, message, dry_run)

        items = tuple(inventory.items)
        storage.append_audit(f"Found {len(items)} items totaling {format_size(inventory.total_bytes)}")

        if dry_run:
            storage.append_audit(
                "DRY RUN - No files were deleted",
                self._summary(inventory.total_bytes, len(items), True),
                f"=== {label} COMPLETE ===",
            )
            message = f"Dry run: would delete {format_size(inventory.total_bytes)} ({len(items)} items)"
            return self._result(True, inventory.total_bytes, len(items), message, True, items)

        if self._before_delete is not None:
            try:
                self._before_delete()
            except Exception as exc:
                log.warning("Pre-delete step failed, continuing: %s", exc)
                storage.append_audit(f"Warning: pre-delete step failed: {exc}")

        freed, removed, errors = self._delete_items(items)
        storage.append_audit(self._summary(freed, removed, False), f"=== {label} COMPLETE ===")

        message = f"Cleaned {format_size(freed)} ({removed} items)"
        if errors:
            message += f", {len(errors)} failed"
        log.info("Cleaned %s: %d bytes freed, %d items removed, %d errors", self.target, freed, removed, len(errors))
        return self._result(True, freed, removed, message, False, items, tuple(errors))

    def _delete_items(self, items: tuple[DeletionItem, ...]) -> tuple[int, int, list[str]]:
        """Remove each item on its own; one failure never stops the rest."""
        freed = 0
        removed = 0
        errors: list[str] = []

        for item in items:
            path = Path(item.path)
            if path.parent != self.target:
                errors.append(f"{path}: outside cache directory")
                storage.append_audit(f"SAFETY: Refused to delete path outside cache: {path}")
                continue
            try:
                if item.is_directory and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                errors.append(f"{path}: {e}")
                storage.append_audit(f"FAILED to delete {path}: {e}")
                continue
            freed += item.size_bytes
            removed += 1
            kind = "directory" if item.is_directory else "file"
            storage.append_audit(f"DELETED: {path.name} ({format_size(item.size_bytes)}, {kind})")

        return freed, removed, errors

    def _record_clean(self, timestamp: int) -> None:
        try:
            self._settings.update(lambda s: dataclasses.replace(s, last_clean_timestamp=timestamp))
        except PersistenceError:
            log.exception("Could not record last clean time")

    def _summary(self, freed: int, removed: int, dry_run: bool) -> str:
        verb = "Would free" if dry_run else "Freed"
        return f"{verb} {format_size(freed)} ({freed} bytes), {removed} items removed, path={self.target}"

    @staticmethod
    def _result(
        success: bool,
        freed: int,
        removed: int,
        message: str,
        dry_run: bool,
        items: tuple[DeletionItem, ...] = (),
        errors: tuple[str, ...] = (),
    ) -> CleanResult:
        return CleanResult(
            success=success,
            bytes_freed=freed,
            items_removed=removed,
            timestamp=now_timestamp(),
            message=message,
            was_dry_run=dry_run,
            items_found=items,
            errors=errors,
        )
