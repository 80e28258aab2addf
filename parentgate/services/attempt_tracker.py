"""
Failed-attempt tracking and lockout math.

The tracker owns the append-only AuthAttempt history. LockoutState is a
pure function of that history and `now`:

    - a streak is the run of failures since the last success (and since the
      last session reset), each within `retention` of the failure that
      extends it
    - the failure that brings the streak to `failure_threshold` at time t
      locks PIN entry for [t, t + lockout_duration)
    - failures recorded while locked are kept but ignored; they neither
      extend the lockout nor start a new streak
    - once a lockout expires its streak is spent and counting restarts

Writes are serialized by a lock; the history is an immutable tuple swapped
on write, and readers snapshot history and session floor together under it.
"""

import threading
from datetime import datetime, timedelta
from typing import Optional

import structlog

from parentgate.core.config import LockoutConfig
from parentgate.domain.models.auth import AuthAttempt, AuthOutcome, LockoutState

log = structlog.get_logger(__name__)


class AttemptTracker:
    """Records PIN attempts and derives the lockout state."""

    def __init__(
        self,
        failure_threshold: int = 3,
        lockout_duration: timedelta = timedelta(minutes=5),
        retention: timedelta = timedelta(minutes=5),
    ):
        if retention < lockout_duration:
            raise ValueError("retention must be >= lockout_duration")
        self.failure_threshold = failure_threshold
        self.lockout_duration = lockout_duration
        self.retention = retention

        self._attempts: tuple[AuthAttempt, ...] = ()
        self._session_floor: Optional[datetime] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: LockoutConfig) -> "AttemptTracker":
        return cls(
            failure_threshold=config.failure_threshold,
            lockout_duration=timedelta(seconds=config.lockout_seconds),
            retention=timedelta(seconds=config.retention_seconds),
        )

    @property
    def attempts(self) -> tuple[AuthAttempt, ...]:
        return self._attempts

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_failure(self, now: datetime) -> LockoutState:
        return self._record(AuthAttempt(timestamp=now, outcome=AuthOutcome.FAILURE), now)

    def record_success(self, now: datetime) -> LockoutState:
        """Record a success; the failure streak restarts from zero."""
        return self._record(AuthAttempt(timestamp=now, outcome=AuthOutcome.SUCCESS), now)

    def reset_session(self, now: datetime) -> bool:
        """Forget the current session's failure streak.

        History is kept. A lockout already in force is never lifted by a
        reset; returns False in that case.
        """
        with self._lock:
            if self._evaluate(self._attempts, self._session_floor, now).locked:
                return False
            self._session_floor = now
        log.debug("attempt_session_reset")
        return True

    def purge_stale(self, now: datetime) -> int:
        """Drop attempts that can no longer influence any lockout.

        A running lockout needs its whole streak, which can reach back
        `retention` before the failure that started it, so the horizon is
        retention + lockout_duration. Never required for correctness.
        """
        horizon = now - (self.retention + self.lockout_duration)
        with self._lock:
            kept = tuple(a for a in self._attempts if a.timestamp >= horizon)
            purged = len(self._attempts) - len(kept)
            if purged:
                self._attempts = kept
        if purged:
            log.debug("stale_attempts_purged", count=purged)
        return purged

    def _record(self, attempt: AuthAttempt, now: datetime) -> LockoutState:
        self.purge_stale(now)
        with self._lock:
            self._attempts = self._attempts + (attempt,)
            state = self._evaluate(self._attempts, self._session_floor, now)
        log.info(
            "auth_attempt_recorded",
            outcome=attempt.outcome.value,
            consecutive_failures=state.consecutive_failures,
            locked=state.locked,
        )
        return state

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lockout_state(self, now: datetime) -> LockoutState:
        """Derive the lockout state at `now` from a snapshot of the history."""
        self.purge_stale(now)
        with self._lock:
            attempts, floor = self._attempts, self._session_floor
        return self._evaluate(attempts, floor, now)

    def _evaluate(
        self,
        attempts: tuple[AuthAttempt, ...],
        floor: Optional[datetime],
        now: datetime,
    ) -> LockoutState:
        streak: list[datetime] = []
        locked_until: Optional[datetime] = None

        for attempt in sorted(attempts, key=lambda a: a.timestamp):
            ts = attempt.timestamp
            if ts > now:
                break
            if not attempt.failed:
                streak.clear()
                locked_until = None
                continue
            if floor is not None and ts < floor:
                continue
            if locked_until is not None:
                if ts < locked_until:
                    continue
                locked_until = None
                streak.clear()
            streak = [t for t in streak if t >= ts - self.retention]
            streak.append(ts)
            if len(streak) >= self.failure_threshold:
                locked_until = ts + self.lockout_duration

        if locked_until is not None and now < locked_until:
            return LockoutState(
                locked=True,
                remaining=locked_until - now,
                locked_until=locked_until,
                consecutive_failures=len(streak),
                attempts_remaining=0,
            )
        if locked_until is not None:
            streak = []

        live = [t for t in streak if t >= now - self.retention]
        return LockoutState(
            locked=False,
            consecutive_failures=len(live),
            attempts_remaining=max(self.failure_threshold - len(live), 0),
        )
