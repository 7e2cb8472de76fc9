"""Tests for the auto-clean policy."""

from __future__ import annotations

import pytest

from symbolsweep.core.classifier import classify
from symbolsweep.core.policy import AutoCleanPolicy, AutoCleanTrigger
from symbolsweep.models.settings import Settings
from symbolsweep.models.status import CacheStatus

GiB = 1024 * 1024 * 1024
NOW = 1_700_000_000


def status(size: int) -> CacheStatus:
    return CacheStatus(
        total_bytes=size,
        state=classify(size),
        target_path="/cache",
        exists=True,
        item_count=1 if size else 0,
        measured_at=NOW,
    )


@pytest.fixture
def policy():
    return AutoCleanPolicy()


THRESHOLD = Settings(auto_clean_on_threshold=True, auto_clean_threshold=10 * GiB)


class TestThresholdTrigger:
    def test_fires_once_while_above(self, policy):
        fired = [policy.evaluate(status(s), THRESHOLD, NOW) for s in (2 * GiB, 11 * GiB, 12 * GiB, 11 * GiB)]
        assert fired == [None, AutoCleanTrigger.THRESHOLD, None, None]

    def test_fires_again_after_dropping_below(self, policy):
        sizes = (11 * GiB, 11 * GiB, 0, 3 * GiB, 10 * GiB, 10 * GiB)
        fired = [policy.evaluate(status(s), THRESHOLD, NOW) for s in sizes]
        assert fired.count(AutoCleanTrigger.THRESHOLD) == 2
        assert fired[0] is AutoCleanTrigger.THRESHOLD
        assert fired[4] is AutoCleanTrigger.THRESHOLD

    def test_first_evaluation_above_fires(self, policy):
        assert policy.evaluate(status(11 * GiB), THRESHOLD, NOW) is AutoCleanTrigger.THRESHOLD

    def test_reset_forgets_previous(self, policy):
        policy.evaluate(status(11 * GiB), THRESHOLD, NOW)
        policy.reset()
        assert policy.evaluate(status(11 * GiB), THRESHOLD, NOW) is AutoCleanTrigger.THRESHOLD

    def test_rearm_lets_crossing_fire_again(self, policy):
        assert policy.evaluate(status(GiB), THRESHOLD, NOW) is None
        assert policy.evaluate(status(11 * GiB), THRESHOLD, NOW) is AutoCleanTrigger.THRESHOLD
        policy.rearm()
        assert policy.evaluate(status(11 * GiB), THRESHOLD, NOW) is AutoCleanTrigger.THRESHOLD
        assert policy.evaluate(status(11 * GiB), THRESHOLD, NOW) is None

    def test_disabled(self, policy):
        settings = Settings(auto_clean_on_threshold=False, auto_clean_threshold=GiB)
        assert policy.evaluate(status(11 * GiB), settings, NOW) is None


class TestScheduleTrigger:
    def test_never_cleaned_is_due(self, policy):
        settings = Settings(auto_clean_scheduled=True, auto_clean_interval_secs=3600)
        assert policy.evaluate(status(0), settings, NOW) is AutoCleanTrigger.SCHEDULE

    def test_not_due_yet(self, policy):
        settings = Settings(
            auto_clean_scheduled=True, auto_clean_interval_secs=3600, last_clean_timestamp=NOW - 3599,
        )
        assert policy.evaluate(status(0), settings, NOW) is None

    def test_due_exactly_at_interval(self, policy):
        settings = Settings(
            auto_clean_scheduled=True, auto_clean_interval_secs=3600, last_clean_timestamp=NOW - 3600,
        )
        assert policy.evaluate(status(0), settings, NOW) is AutoCleanTrigger.SCHEDULE

    def test_disabled(self, policy):
        settings = Settings(auto_clean_scheduled=False, auto_clean_interval_secs=1)
        assert policy.evaluate(status(0), settings, NOW) is None


def test_at_most_one_trigger_per_tick(policy):
    settings = Settings(
        auto_clean_on_threshold=True,
        auto_clean_threshold=GiB,
        auto_clean_scheduled=True,
        auto_clean_interval_secs=1,
    )
    assert policy.evaluate(status(2 * GiB), settings, NOW) is AutoCleanTrigger.THRESHOLD
    # Threshold already crossed, so only the schedule applies on the next tick.
    assert policy.evaluate(status(2 * GiB), settings, NOW) is AutoCleanTrigger.SCHEDULE
