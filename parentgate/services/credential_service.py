"""
PIN setup and recovery.

Covers the credential lifecycle around the authenticator:
    - first-time setup (no PIN yet) or change from the parent console
    - strength rating for the setup screen
    - reset through the security question when the PIN is forgotten

A failed recovery answer is not a PIN attempt and never feeds the PIN
lockout. Wrong answers are counted by a separate recovery tracker, shared
with the emergency override, that locks recovery the same way.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog

from parentgate.core.config import PinConfig
from parentgate.core.exceptions import (
    CredentialNotConfiguredError,
    LockedOutError,
    NotAuthorizedError,
    RecoveryAnswerMismatchError,
    ValidationError,
    WeakPinError,
)
from parentgate.domain.models.auth import HashedCredential, PinStrength
from parentgate.domain.models.mode import Mode
from parentgate.services.attempt_tracker import AttemptTracker
from parentgate.services.pin_authenticator import (
    PinAuthenticator,
    hash_secret,
    new_salt,
    normalize_answer,
    rate_pin_strength,
)
from parentgate.services.protocols import ICredentialStore

log = structlog.get_logger(__name__)


class CredentialService:
    """Creates, rates and resets the parent PIN."""

    def __init__(
        self,
        store: ICredentialStore,
        authenticator: PinAuthenticator,
        pin_config: Optional[PinConfig] = None,
        mode_reader: Optional[Callable[[], Mode]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        recovery_tracker: Optional[AttemptTracker] = None,
    ):
        self.store = store
        self.authenticator = authenticator
        self.pin_config = pin_config or PinConfig()
        self._mode_reader = mode_reader or (lambda: Mode.RESTRICTED)
        self._clock = clock
        self.recovery_tracker = recovery_tracker or AttemptTracker()

    def rate_pin(self, pin: str) -> PinStrength:
        return rate_pin_strength(pin, self.pin_config.length)

    async def has_pin(self) -> bool:
        """True when a credential is stored.

        Store outages propagate; only a genuinely empty store returns False.
        """
        try:
            await self.authenticator.load_credential()
        except CredentialNotConfiguredError:
            return False
        return True

    async def recovery_question(self) -> str:
        credential = await self.authenticator.load_credential()
        return credential.recovery_question

    async def set_pin(
        self, pin: str, recovery_question: str, recovery_answer: str
    ) -> PinStrength:
        """Store a new PIN with its recovery question and answer.

        Allowed when no PIN exists yet or the parent console is unlocked.

        Raises:
            NotAuthorizedError: A PIN exists and the gate is RESTRICTED
            InvalidPinFormatError: PIN is not exactly N digits
            WeakPinError: PIN is too weak and the policy rejects weak PINs
            ValidationError: Recovery question or answer is blank
            CredentialStoreUnavailableError: Store could not be written
        """
        if self._mode_reader() is not Mode.UNRESTRICTED and await self.has_pin():
            raise NotAuthorizedError("Unlock the parent console to change the PIN")
        strength = self._check_new_pin(pin)
        if not recovery_question.strip() or not normalize_answer(recovery_answer):
            raise ValidationError("Recovery question and answer are required")

        await self._save(pin.strip(), recovery_question.strip(), recovery_answer)
        log.info("pin_configured", strength=strength.value)
        return strength

    async def reset_pin(self, recovery_answer: str, new_pin: str) -> PinStrength:
        """Replace a forgotten PIN using the security answer.

        Raises:
            LockedOutError: Too many wrong answers; the answer is not checked
            RecoveryAnswerMismatchError: Answer does not match
            InvalidPinFormatError / WeakPinError: New PIN rejected
            CredentialStoreUnavailableError: Store unreadable or unwritable
        """
        now = self._clock()
        lockout = self.recovery_tracker.lockout_state(now)
        if lockout.locked:
            log.info("pin_reset_refused_locked_out", remaining_seconds=lockout.remaining.total_seconds())
            raise LockedOutError(lockout.remaining)

        strength = self._check_new_pin(new_pin)
        if not await self.authenticator.verify_recovery_answer(recovery_answer):
            lockout = self.recovery_tracker.record_failure(now)
            log.warning("pin_reset_rejected", attempts_remaining=lockout.attempts_remaining)
            raise RecoveryAnswerMismatchError("Security answer does not match")
        self.recovery_tracker.record_success(now)

        current = await self.authenticator.load_credential()
        salt = new_salt()
        await self.store.save(
            current.model_copy(
                update={
                    "pin_hash": hash_secret(new_pin.strip(), salt),
                    "pin_salt": salt,
                    "updated_at": now,
                }
            )
        )
        log.info("pin_reset", strength=strength.value)
        return strength

    def _check_new_pin(self, pin: str) -> PinStrength:
        self.authenticator.normalize(pin)
        strength = self.rate_pin(pin)
        if self.pin_config.reject_weak and strength is PinStrength.TOO_WEAK:
            raise WeakPinError(
                "PIN is too weak. Avoid sequences (123456) or repeated digits (111111).",
                strength=strength.value,
            )
        return strength

    async def _save(self, pin: str, question: str, answer: str) -> None:
        pin_salt = new_salt()
        answer_salt = new_salt()
        await self.store.save(
            HashedCredential(
                pin_hash=hash_secret(pin, pin_salt),
                pin_salt=pin_salt,
                recovery_question=question,
                recovery_answer_hash=hash_secret(normalize_answer(answer), answer_salt),
                recovery_salt=answer_salt,
                updated_at=self._clock(),
            )
        )
