"""
Custom exception hierarchy for the parent gate.

All application exceptions inherit from ParentGateError.
"""

from datetime import datetime, timedelta
from typing import Optional


class ParentGateError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ParentGateError):
    """Invalid or missing configuration."""

    pass


class ValidationError(ParentGateError):
    """Input validation failed."""

    pass


# =============================================================================
# Gate Errors
# =============================================================================


class GateError(ParentGateError):
    """A mode switch request was refused."""

    pass


class TimeLockedError(GateError):
    """Switching into the parent console is blocked by the time-lock schedule.

    Never counts as a failed attempt.
    """

    def __init__(self, remaining: timedelta, unlocks_at: Optional[datetime] = None):
        self.remaining = remaining
        self.unlocks_at = unlocks_at
        super().__init__(
            f"Parent console is time locked for another {int(remaining.total_seconds())}s"
        )


class MissingCredentialError(GateError):
    """Switching into the parent console requires a PIN."""

    def __init__(self, message: str = "A PIN is required to enter the parent console"):
        super().__init__(message)


class IncorrectCredentialError(GateError):
    """PIN did not match. Recorded as a failed attempt."""

    def __init__(self, attempts_remaining: int):
        self.attempts_remaining = attempts_remaining
        super().__init__(f"Incorrect PIN, {attempts_remaining} attempt(s) remaining")


class LockedOutError(GateError):
    """Too many failed attempts; PIN entry is frozen. Never re-recorded."""

    def __init__(self, remaining: timedelta):
        self.remaining = remaining
        super().__init__(
            f"Too many incorrect PINs, try again in {int(remaining.total_seconds())}s"
        )


# =============================================================================
# Authentication Errors
# =============================================================================


class AuthError(ParentGateError):
    """Base for credential validation errors."""

    pass


class InvalidPinFormatError(AuthError):
    """Candidate PIN is not exactly N digits. Does not count as an attempt."""

    pass


class WeakPinError(AuthError):
    """PIN rejected at setup because it is too easy to guess."""

    def __init__(self, message: str, strength: str):
        self.strength = strength
        super().__init__(message)


class CredentialStoreUnavailableError(AuthError):
    """Credential store could not be read or written.

    Fatal to the attempt: the switch fails without touching the mode or
    the failure counter, since it is unknown whether the PIN was right.
    """

    pass


class CredentialNotConfiguredError(CredentialStoreUnavailableError):
    """No PIN has been set up yet."""

    pass


class RecoveryAnswerMismatchError(AuthError):
    """Security answer did not match the stored hash."""

    pass


# =============================================================================
# Redirection Errors
# =============================================================================


class CoordinatorError(ParentGateError):
    """Base for suggestion accept/dismiss errors. Safe to ignore."""

    pass


class SuggestionNotFoundError(CoordinatorError):
    """Suggestion id is unknown."""

    pass


class SuggestionAlreadyResolvedError(CoordinatorError):
    """Suggestion was already accepted, dismissed or superseded."""

    pass


# =============================================================================
# Persistence Errors
# =============================================================================


class PersistenceError(ParentGateError):
    """Durable state could not be read or written."""

    pass


class NotAuthorizedError(ParentGateError):
    """Operation requires the parent console to be unlocked."""

    pass
