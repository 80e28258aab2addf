"""Tests for AttemptTracker lockout math."""

from datetime import timedelta

import pytest

from parentgate.core.config import LockoutConfig
from parentgate.services.attempt_tracker import AttemptTracker

LOCKOUT = timedelta(minutes=5)


def fail_times(tracker, start, *offsets_seconds):
    state = None
    for offset in offsets_seconds:
        state = tracker.record_failure(start + timedelta(seconds=offset))
    return state


class TestLockoutActivation:
    def test_no_attempts_is_unlocked(self, tracker, t0):
        state = tracker.lockout_state(t0)
        assert state.locked is False
        assert state.consecutive_failures == 0
        assert state.attempts_remaining == 3

    def test_two_failures_do_not_lock(self, tracker, t0):
        state = fail_times(tracker, t0, 0, 10)
        assert state.locked is False
        assert state.consecutive_failures == 2
        assert state.attempts_remaining == 1

    def test_third_failure_locks(self, tracker, t0):
        state = fail_times(tracker, t0, 0, 10, 20)
        assert state.locked is True
        assert state.remaining == LOCKOUT
        assert state.locked_until == t0 + timedelta(seconds=20) + LOCKOUT
        assert state.attempts_remaining == 0

    def test_lockout_ends_exactly_after_duration(self, tracker, t0):
        fail_times(tracker, t0, 0, 10, 20)
        last = t0 + timedelta(seconds=20)

        assert tracker.lockout_state(last + LOCKOUT - timedelta(seconds=1)).locked is True
        after = tracker.lockout_state(last + LOCKOUT)
        assert after.locked is False
        assert after.consecutive_failures == 0
        assert after.attempts_remaining == 3

    def test_remaining_counts_down(self, tracker, t0):
        fail_times(tracker, t0, 0, 10, 20)
        state = tracker.lockout_state(t0 + timedelta(seconds=60))
        assert state.remaining == LOCKOUT - timedelta(seconds=40)


class TestStreakReset:
    def test_success_resets_streak(self, tracker, t0):
        fail_times(tracker, t0, 0, 10)
        state = tracker.record_success(t0 + timedelta(seconds=20))
        assert state.consecutive_failures == 0
        assert state.attempts_remaining == 3

        state = fail_times(tracker, t0, 30, 40)
        assert state.locked is False
        assert state.consecutive_failures == 2

    def test_failures_outside_retention_do_not_count(self, tracker, t0):
        fail_times(tracker, t0, 0, 10)
        state = tracker.record_failure(t0 + timedelta(minutes=6))
        assert state.locked is False
        assert state.consecutive_failures == 1

    def test_reset_session_clears_streak(self, tracker, t0):
        fail_times(tracker, t0, 0, 10)
        assert tracker.reset_session(t0 + timedelta(seconds=15)) is True
        state = tracker.record_failure(t0 + timedelta(seconds=20))
        assert state.consecutive_failures == 1
        assert state.locked is False

    def test_reset_session_never_lifts_lockout(self, tracker, t0):
        fail_times(tracker, t0, 0, 10, 20)
        assert tracker.reset_session(t0 + timedelta(seconds=30)) is False
        assert tracker.lockout_state(t0 + timedelta(seconds=31)).locked is True


class TestDuringLockout:
    def test_failures_while_locked_do_not_extend(self, tracker, t0):
        fail_times(tracker, t0, 0, 10, 20)
        state = tracker.record_failure(t0 + timedelta(seconds=100))
        assert state.locked_until == t0 + timedelta(seconds=20) + LOCKOUT

    def test_streak_is_spent_after_expiry(self, tracker, t0):
        fail_times(tracker, t0, 0, 10, 20)
        expiry = t0 + timedelta(seconds=20) + LOCKOUT
        state = tracker.record_failure(expiry + timedelta(seconds=1))
        assert state.locked is False
        assert state.consecutive_failures == 1


class TestPurge:
    def test_purge_keeps_running_lockout(self, t0):
        tracker = AttemptTracker(lockout_duration=LOCKOUT, retention=LOCKOUT)
        fail_times(tracker, t0, 0, 290, 299)
        now = t0 + timedelta(seconds=500)
        tracker.purge_stale(now)
        assert tracker.lockout_state(now).locked is True

    def test_purge_drops_old_attempts(self, tracker, t0):
        fail_times(tracker, t0, 0, 10)
        purged = tracker.purge_stale(t0 + timedelta(hours=1))
        assert purged == 2
        assert tracker.attempts == ()


class TestConstruction:
    def test_retention_shorter_than_lockout_rejected(self):
        with pytest.raises(ValueError):
            AttemptTracker(lockout_duration=timedelta(minutes=5), retention=timedelta(minutes=1))

    def test_from_config(self, t0):
        tracker = AttemptTracker.from_config(
            LockoutConfig(failure_threshold=2, lockout_seconds=60, retention_seconds=120)
        )
        state = fail_times(tracker, t0, 0, 1)
        assert state.locked is True
        assert state.remaining == timedelta(seconds=60)
