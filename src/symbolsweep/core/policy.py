"""Decides when the monitor should clean without user action."""

from __future__ import annotations

import logging
from enum import Enum

from symbolsweep.models.settings import Settings
from symbolsweep.models.status import CacheStatus

log = logging.getLogger(__name__)


class AutoCleanTrigger(Enum):
    THRESHOLD = "threshold"
    SCHEDULE = "schedule"


class AutoCleanPolicy:
    """Evaluates the threshold and schedule rules once per monitor tick.

    The threshold rule is edge-triggered: it fires only when the size
    moves from below the configured threshold to at or above it. Before
    the first evaluation the previous size counts as below, so a cache
    that is already too large when monitoring starts is cleaned once.
    """

    def __init__(self) -> None:
        self._previous_bytes: int | None = None
        self._rearm_bytes: int | None = None

    def reset(self) -> None:
        self._previous_bytes = None
        self._rearm_bytes = None

    def rearm(self) -> None:
        """Undo the last evaluation so an unhandled crossing fires again.

        Called when a triggered clean could not run at all.
        """
        self._previous_bytes = self._rearm_bytes

    def evaluate(self, status: CacheStatus, settings: Settings, now: int) -> AutoCleanTrigger | None:
        """Return the rule that fires for *status*, or None.

        At most one trigger is returned per call; the threshold rule
        takes precedence over the schedule.
        """
        previous = self._previous_bytes
        self._rearm_bytes = previous
        self._previous_bytes = status.total_bytes

        if settings.auto_clean_on_threshold:
            threshold = settings.auto_clean_threshold
            was_below = previous is None or previous < threshold
            if status.total_bytes >= threshold and was_below:
                log.info("Cache crossed auto-clean threshold (%d >= %d bytes)", status.total_bytes, threshold)
                return AutoCleanTrigger.THRESHOLD

        if settings.auto_clean_scheduled:
            elapsed = max(0, now - settings.last_clean_timestamp)
            if elapsed >= settings.auto_clean_interval_secs:
                log.info("Scheduled auto-clean due (%d s since last clean)", elapsed)
                return AutoCleanTrigger.SCHEDULE

        return None
