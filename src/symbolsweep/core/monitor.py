"""Periodic measurement, auto-clean evaluation and status publishing."""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable

from symbolsweep.core import scanner
from symbolsweep.core.errors import CleanerBusyError
from symbolsweep.core.events import (
    AUTO_CLEAN_FAILED,
    AUTO_CLEAN_TRIGGERED,
    CACHE_STATE_CHANGED,
    CACHE_STATUS_UPDATE,
    EventBus,
)
from symbolsweep.core.executor import CleanExecutor
from symbolsweep.core.policy import AutoCleanPolicy, AutoCleanTrigger
from symbolsweep.models.settings import Settings
from symbolsweep.models.status import CacheStatus
from symbolsweep.settings import SettingsStore
from symbolsweep.utils import now_timestamp

log = logging.getLogger(__name__)

Clock = Callable[[], int]

# Pause after an iteration of the background loop fails unexpectedly.
_RETRY_SECS = 60


class MonitorState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    EVALUATING = "evaluating"


class MonitorLoop:
    """Drives scanning, classification and auto-clean on a fixed period.

    Each tick measures the cache, lets the policy decide whether to clean
    and then publishes a fresh CacheStatus, whether or not anything
    changed. Ticks never overlap: a tick requested while another is
    running is skipped.
    """

    def __init__(
        self,
        target: Path,
        settings: SettingsStore,
        executor: CleanExecutor,
        bus: EventBus,
        policy: AutoCleanPolicy | None = None,
        clock: Clock = now_timestamp,
    ) -> None:
        self.target = target
        self._settings = settings
        self._executor = executor
        self._bus = bus
        self._policy = policy or AutoCleanPolicy()
        self._clock = clock

        self._tick_lock = threading.Lock()
        self._state = MonitorState.IDLE
        self._latest: CacheStatus | None = None
        # State-change detection compares against what ticks published,
        # not against on-demand refreshes.
        self._last_published: CacheStatus | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def latest(self) -> CacheStatus | None:
        """The most recently measured status, if any."""
        return self._latest

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def measure(self, settings: Settings | None = None) -> CacheStatus:
        """Measure the cache now, substituting the simulated size in debug mode."""
        settings = settings or self._settings.get()
        if settings.debug_mode:
            return scanner.simulated_status(settings.debug_simulated_size)
        return scanner.scan(self.target).to_status()

    def refresh(self) -> CacheStatus:
        """Measure and remember a fresh status without evaluating auto-clean."""
        status = self.measure()
        self._latest = status
        return status

    def tick(self) -> CacheStatus | None:
        """Run one Scanning → Evaluating → Idle cycle.

        Returns the published status, or None if the tick was skipped
        because another one was still running.
        """
        if not self._tick_lock.acquire(blocking=False):
            log.debug("Previous tick still running, skipping")
            return None
        try:
            return self._run_tick()
        finally:
            self._state = MonitorState.IDLE
            self._tick_lock.release()

    def _run_tick(self) -> CacheStatus | None:
        previous = self._latest
        settings = self._settings.get()

        self._state = MonitorState.SCANNING
        try:
            status = self.measure(settings)
        except Exception:
            log.exception("Cache measurement failed, republishing last status")
            if previous is not None:
                self._bus.publish(CACHE_STATUS_UPDATE, previous)
            return previous

        self._state = MonitorState.EVALUATING
        try:
            trigger = self._policy.evaluate(status, settings, self._clock())
            if trigger is not None and self._auto_clean(trigger):
                status = self.measure()
        except Exception:
            log.exception("Auto-clean evaluation failed")

        self._latest = status
        published = self._last_published
        self._last_published = status
        if published is not None and published.state != status.state:
            log.info("Cache state changed: %s -> %s", published.state.value, status.state.value)
            self._bus.publish(CACHE_STATE_CHANGED, status)
        self._bus.publish(CACHE_STATUS_UPDATE, status)
        return status

    def _auto_clean(self, trigger: AutoCleanTrigger) -> bool:
        """Run an unattended clean; returns True if anything was attempted."""
        self._bus.publish(AUTO_CLEAN_TRIGGERED, trigger)
        try:
            result = self._executor.clean(dry_run=False)
        except CleanerBusyError:
            log.info("Auto-clean (%s) skipped: a clean is already running", trigger.value)
            if trigger is AutoCleanTrigger.THRESHOLD:
                self._policy.rearm()
            self._bus.publish(AUTO_CLEAN_FAILED, "A clean operation is already in progress")
            return False

        if not result.success:
            log.warning("Auto-clean (%s) failed: %s", trigger.value, result.message)
            self._bus.publish(AUTO_CLEAN_FAILED, result.message)
        else:
            log.info("Auto-clean (%s): %s", trigger.value, result.message)
        return True

    # ── background thread ────────────────────────────────────────────────

    def start(self) -> None:
        """Start ticking on a background thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="symbolsweep-monitor", daemon=True)
        self._thread.start()
        log.info("Monitoring %s", self.target)

    def stop(self, timeout: float | None = None) -> None:
        """Ask the background thread to exit and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        next_fire = time.monotonic()
        while not self._stop.is_set():
            try:
                self.tick()
                # Read after the tick so an interval change applies from the next fire.
                interval = max(1, self._settings.get().monitor_interval_secs)
                next_fire += interval
                now = time.monotonic()
                if next_fire <= now:
                    missed = int((now - next_fire) // interval) + 1
                    log.debug("Tick overran its period, skipping %d fire(s)", missed)
                    next_fire += missed * interval
                self._stop.wait(min(next_fire - now, threading.TIMEOUT_MAX))
            except Exception:
                log.exception("Monitor iteration failed, retrying in %d seconds", _RETRY_SECS)
                next_fire = time.monotonic() + _RETRY_SECS
                self._stop.wait(_RETRY_SECS)
