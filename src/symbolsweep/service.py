"""Command facade shared by the CLI and the D-Bus bridge."""

from __future__ import annotations

import logging
from pathlib import Path

from symbolsweep import storage
from symbolsweep.core.daemon import is_daemon_running, stop_daemon
from symbolsweep.core.events import CACHE_STATUS_UPDATE, EventBus
from symbolsweep.core.executor import CleanExecutor, PreDeleteHook
from symbolsweep.core.monitor import MonitorLoop
from symbolsweep.models.clean_result import CleanResult
from symbolsweep.models.settings import Settings
from symbolsweep.models.status import CacheStatus
from symbolsweep.settings import SettingsStore
from symbolsweep.core import scanner
from symbolsweep.utils import CACHE_FOLDER_NAME, cache_path, system_cache_path, time_since

log = logging.getLogger(__name__)


class CacheService:
    """Wires the monitor components together behind the public commands.

    Every user-triggered change is also published on the event bus so
    that all observers stay consistent with what the caller sees.
    """

    def __init__(
        self,
        target: Path | None = None,
        settings_path: Path | None = None,
        *,
        folder_name: str = CACHE_FOLDER_NAME,
        before_delete: PreDeleteHook | None = stop_daemon,
    ) -> None:
        self.target = target or cache_path()
        self.system_target = system_cache_path()
        self.bus = EventBus()
        self.settings = SettingsStore(settings_path, self.bus)
        self.executor = CleanExecutor(
            self.target,
            self.settings,
            self.bus,
            folder_name=folder_name,
            before_delete=before_delete,
        )
        self.monitor = MonitorLoop(self.target, self.settings, self.executor, self.bus)

    # ── commands ─────────────────────────────────────────────────────────

    def get_status(self) -> CacheStatus:
        """Measure the cache now (respects debug mode)."""
        return self.monitor.refresh()

    def get_combined_status(self) -> CacheStatus:
        """Measure the user and system caches together.

        In debug mode this is the simulated status, as for get_status.
        """
        settings = self.settings.get()
        if settings.debug_mode:
            return scanner.simulated_status(settings.debug_simulated_size)
        return scanner.combined_status(self.target, self.system_target)

    def clean(self, dry_run: bool = False) -> CleanResult:
        """Clean or preview; raises CleanerBusyError if a clean is running."""
        result = self.executor.clean(dry_run=dry_run)
        if not dry_run:
            try:
                self.bus.publish(CACHE_STATUS_UPDATE, self.monitor.refresh())
            except Exception:
                log.exception("Could not refresh status after clean")
        return result

    def get_last_clean_time(self) -> str:
        return time_since(self.settings.get().last_clean_timestamp)

    def get_settings(self) -> Settings:
        return self.settings.get()

    def update_settings(self, settings: Settings) -> None:
        """Persist *settings*; raises PersistenceError or InvalidSettingsError."""
        self.settings.replace(settings)

    def get_log_path(self) -> str:
        return str(storage.AUDIT_LOG)

    def is_daemon_running(self) -> bool:
        return is_daemon_running()

    # ── lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        self.monitor.start()

    def stop(self) -> None:
        self.monitor.stop()
