"""
Mode gate: the restricted/unrestricted state machine.

ModeGate is the only writer of the current Mode. A switch into the parent
console is evaluated in this order, inside one critical section:

    1. time-lock schedule       -> TimeLockedError (not an attempt)
    2. credential present       -> MissingCredentialError
    3. attempt lockout          -> LockedOutError (authenticator not called)
    4. PIN format               -> InvalidPinFormatError (not an attempt)
    5. credential store         -> CredentialStoreUnavailableError (not an attempt)
    6. PIN comparison           -> IncorrectCredentialError (recorded failure)
    7. commit UNRESTRICTED, record success, persist, notify

Switching to RESTRICTED always succeeds and needs no credential.

Reads (current_mode, is_locked, time_until_next_unlock, status) do not
take the switch lock; they see the last committed state.

Supplementary behaviour:
    - emergency override: the recovery answer suspends time locks for a
      configured period (attempt lockouts still apply; wrong answers count
      against the separate recovery tracker)
    - inactivity relock: an idle parent console falls back to RESTRICTED
"""

import asyncio
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional

import structlog

from parentgate.core.exceptions import (
    CredentialStoreUnavailableError,
    IncorrectCredentialError,
    InvalidPinFormatError,
    LockedOutError,
    MissingCredentialError,
    PersistenceError,
    RecoveryAnswerMismatchError,
    TimeLockedError,
)
from parentgate.domain.models.auth import LockoutState
from parentgate.domain.models.mode import Mode, ModeStatus
from parentgate.domain.models.notification import NotificationKind
from parentgate.domain.models.schedule import TimeLockSchedule
from parentgate.services.attempt_tracker import AttemptTracker
from parentgate.services.notifications import NotificationHub
from parentgate.services.pin_authenticator import PinAuthenticator
from parentgate.services.protocols import IModeStore

log = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ModeGate:
    """Owns the current mode and arbitrates every switch request."""

    def __init__(
        self,
        authenticator: PinAuthenticator,
        tracker: AttemptTracker,
        schedule: Optional[TimeLockSchedule] = None,
        hub: Optional[NotificationHub] = None,
        mode_store: Optional[IModeStore] = None,
        tz: tzinfo = timezone.utc,
        inactivity_timeout: timedelta = timedelta(minutes=30),
        emergency_override_duration: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = utc_now,
        recovery_tracker: Optional[AttemptTracker] = None,
    ):
        self.authenticator = authenticator
        self.tracker = tracker
        self.recovery_tracker = recovery_tracker or AttemptTracker()
        self.schedule = schedule or TimeLockSchedule()
        self.hub = hub or NotificationHub()
        self.mode_store = mode_store
        self.tz = tz
        self.inactivity_timeout = inactivity_timeout
        self.emergency_override_duration = emergency_override_duration
        self._clock = clock

        started = self._aware(clock())
        self._mode = Mode.RESTRICTED
        self._session_started_at = started
        self._last_activity_at = started
        self._override_expires_at: Optional[datetime] = None
        self._lockout_reported = False
        self._switch_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def restore(self) -> Mode:
        """Load the last committed mode; RESTRICTED if absent or corrupt."""
        persisted = await self.mode_store.load() if self.mode_store else None
        self._mode = persisted or Mode.RESTRICTED
        log.info(
            "mode_restored",
            mode=self._mode.value,
            defaulted=persisted is None,
        )
        return self._mode

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_mode(self) -> Mode:
        return self._mode

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """True if `now` falls in a time-lock window (and no override runs).

        Only switches into UNRESTRICTED are blocked by this.
        """
        now = self._aware(now)
        if self.emergency_override_active(now):
            return False
        return self.schedule.is_locked(self._local(now))

    def time_lock_remaining(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        now = self._aware(now)
        if not self.is_locked(now):
            return None
        until = self.schedule.locked_until(self._local(now))
        if until is None:
            return None
        return until.astimezone(timezone.utc) - now.astimezone(timezone.utc)

    def lockout_state(self, now: Optional[datetime] = None) -> LockoutState:
        return self.tracker.lockout_state(self._aware(now))

    def time_until_next_unlock(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Smaller of the active time-lock and attempt-lockout remainders.

        None when neither lock is active.
        """
        now = self._aware(now)
        remaining = []
        window = self.time_lock_remaining(now)
        if window is not None:
            remaining.append(window)
        lockout = self.tracker.lockout_state(now)
        if lockout.locked:
            remaining.append(lockout.remaining)
        return min(remaining) if remaining else None

    def emergency_override_active(self, now: Optional[datetime] = None) -> bool:
        expires = self._override_expires_at
        return expires is not None and self._aware(now) < expires

    def status(self, now: Optional[datetime] = None) -> ModeStatus:
        now = self._aware(now)
        window = self.time_lock_remaining(now)
        override = self.emergency_override_active(now)
        return ModeStatus(
            mode=self._mode,
            time_locked=window is not None,
            time_locked_until=now + window if window is not None else None,
            lockout=self.tracker.lockout_state(now),
            emergency_override_active=override,
            emergency_override_expires_at=self._override_expires_at if override else None,
            time_until_next_unlock=self.time_until_next_unlock(now),
            session_started_at=self._session_started_at,
            last_activity_at=self._last_activity_at,
        )

    # ------------------------------------------------------------------
    # Switching
    # ------------------------------------------------------------------

    async def request_switch(
        self,
        to: Mode,
        credential: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Mode:
        """Switch modes, authenticating when entering the parent console.

        A request for UNRESTRICTED while already UNRESTRICTED is a no-op: it
        skips the time-lock and credential checks and only counts as activity.

        Returns:
            The mode in force after the request

        Raises:
            TimeLockedError, MissingCredentialError, LockedOutError,
            InvalidPinFormatError, CredentialStoreUnavailableError,
            IncorrectCredentialError
        """
        now = self._aware(now)
        async with self._switch_lock:
            if to is Mode.RESTRICTED:
                return await self._enter_restricted(now, reason="requested")
            return await self._enter_unrestricted(credential, now)

    async def _enter_restricted(self, now: datetime, reason: str) -> Mode:
        # Only a relock from UNRESTRICTED ends the session streak
        if self._mode is Mode.UNRESTRICTED:
            self.tracker.reset_session(now)
        await self._commit(Mode.RESTRICTED, now, reason=reason)
        return self._mode

    async def _enter_unrestricted(self, credential: Optional[str], now: datetime) -> Mode:
        if self._mode is Mode.UNRESTRICTED:
            self._last_activity_at = now
            return self._mode

        window = self.time_lock_remaining(now)
        if window is not None:
            log.info("switch_refused_time_locked", remaining_seconds=window.total_seconds())
            raise TimeLockedError(window, unlocks_at=now + window)

        if credential is None or credential == "":
            raise MissingCredentialError()

        lockout = self.tracker.lockout_state(now)
        self._report_lockout(lockout, now)
        if lockout.locked:
            log.info("switch_refused_locked_out", remaining_seconds=lockout.remaining.total_seconds())
            raise LockedOutError(lockout.remaining)

        try:
            matched = await self.authenticator.validate(credential)
        except InvalidPinFormatError:
            log.info("pin_rejected", reason="invalid_format")
            raise
        except CredentialStoreUnavailableError as e:
            log.error("pin_check_unavailable", error=e.message)
            raise

        if not matched:
            lockout = self.tracker.record_failure(now)
            self._report_lockout(lockout, now)
            log.warning(
                "pin_rejected",
                reason="incorrect",
                attempts_remaining=lockout.attempts_remaining,
            )
            raise IncorrectCredentialError(lockout.attempts_remaining)

        self._report_lockout(self.tracker.record_success(now), now)
        await self._commit(Mode.UNRESTRICTED, now, reason="authenticated")
        return self._mode

    async def _commit(self, mode: Mode, now: datetime, reason: str) -> None:
        self._last_activity_at = now
        previous = self._mode
        if previous is mode:
            return

        self._mode = mode
        self._session_started_at = now

        if self.mode_store is not None:
            try:
                await self.mode_store.save(mode)
            except PersistenceError as e:
                # The in-memory switch stands; a restart falls back to RESTRICTED
                log.error("mode_persist_failed", mode=mode.value, error=e.message)

        log.info("mode_switched", previous=previous.value, mode=mode.value, reason=reason)
        self.hub.publish(
            NotificationKind.MODE_CHANGED,
            now,
            previous=previous.value,
            mode=mode.value,
            reason=reason,
        )

    def _report_lockout(self, state: LockoutState, now: datetime) -> None:
        if state.locked == self._lockout_reported:
            return
        self._lockout_reported = state.locked
        if state.locked:
            log.warning("lockout_started", remaining_seconds=state.remaining.total_seconds())
        else:
            log.info("lockout_cleared")
        self.hub.publish(
            NotificationKind.LOCKOUT_CHANGED,
            now,
            locked=state.locked,
            remaining_seconds=state.remaining.total_seconds(),
        )

    # ------------------------------------------------------------------
    # Emergency override
    # ------------------------------------------------------------------

    async def activate_emergency_override(
        self, recovery_answer: str, now: Optional[datetime] = None
    ) -> datetime:
        """Suspend time locks after verifying the recovery answer.

        Returns:
            When the override expires

        Raises:
            LockedOutError: PIN or recovery-answer lockout in force
            RecoveryAnswerMismatchError: Answer does not match
            CredentialStoreUnavailableError: Credential could not be loaded
        """
        now = self._aware(now)
        async with self._switch_lock:
            lockout = self.tracker.lockout_state(now)
            if lockout.locked:
                raise LockedOutError(lockout.remaining)
            lockout = self.recovery_tracker.lockout_state(now)
            if lockout.locked:
                log.info(
                    "emergency_override_refused_locked_out",
                    remaining_seconds=lockout.remaining.total_seconds(),
                )
                raise LockedOutError(lockout.remaining)
            if not await self.authenticator.verify_recovery_answer(recovery_answer):
                lockout = self.recovery_tracker.record_failure(now)
                log.warning(
                    "emergency_override_rejected",
                    attempts_remaining=lockout.attempts_remaining,
                )
                raise RecoveryAnswerMismatchError("Security answer does not match")
            self.recovery_tracker.record_success(now)

            expires = now + self.emergency_override_duration
            self._override_expires_at = expires

        log.warning("emergency_override_activated", expires_at=expires.isoformat())
        self.hub.publish(
            NotificationKind.EMERGENCY_OVERRIDE,
            now,
            active=True,
            expires_at=expires.isoformat(),
        )
        return expires

    def deactivate_emergency_override(self, now: Optional[datetime] = None) -> None:
        now = self._aware(now)
        if self._override_expires_at is None:
            return
        self._override_expires_at = None
        log.info("emergency_override_deactivated")
        self.hub.publish(NotificationKind.EMERGENCY_OVERRIDE, now, active=False)

    # ------------------------------------------------------------------
    # Inactivity
    # ------------------------------------------------------------------

    def record_activity(self, now: Optional[datetime] = None) -> None:
        self._last_activity_at = self._aware(now)

    async def enforce_inactivity(self, now: Optional[datetime] = None) -> bool:
        """Relock an idle parent console. Returns True if it switched."""
        now = self._aware(now)
        async with self._switch_lock:
            if self._mode is not Mode.UNRESTRICTED:
                return False
            if now - self._last_activity_at <= self.inactivity_timeout:
                return False
            await self._enter_restricted(now, reason="inactivity")
        return True

    # ------------------------------------------------------------------
    # Time helpers
    # ------------------------------------------------------------------

    def _aware(self, now: Optional[datetime]) -> datetime:
        """Timestamp for bookkeeping; naive values are read as gate-local."""
        if now is None:
            now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now

    def _local(self, now: datetime) -> datetime:
        return now.astimezone(self.tz)
