"""Authentication domain models.

AuthAttempt records are owned by the AttemptTracker; LockoutState is
derived from them on demand and never stored. HashedCredential is the
opaque record exchanged with the credential store.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class AuthAttempt(BaseModel):
    """Single PIN submission that reached the credential comparison."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    outcome: AuthOutcome

    @property
    def failed(self) -> bool:
        return self.outcome is AuthOutcome.FAILURE


class LockoutState(BaseModel):
    """Derived lockout view: {locked, remaining} plus counters for the UI."""

    model_config = ConfigDict(frozen=True)

    locked: bool = False
    remaining: timedelta = timedelta(0)
    locked_until: Optional[datetime] = None
    consecutive_failures: int = Field(default=0, ge=0)
    attempts_remaining: int = Field(default=0, ge=0)


class PinStrength(str, Enum):
    """Strength rating used when a parent sets up a PIN."""

    INVALID = "invalid"
    TOO_WEAK = "too_weak"
    WEAK = "weak"
    STRONG = "strong"

    @property
    def progress(self) -> float:
        return {
            PinStrength.INVALID: 0.0,
            PinStrength.TOO_WEAK: 0.33,
            PinStrength.WEAK: 0.66,
            PinStrength.STRONG: 1.0,
        }[self]


class HashedCredential(BaseModel):
    """Salted PIN hash plus the recovery question and answer hash.

    Plain PINs and answers never leave the services layer; only this
    record is handed to the credential store.
    """

    model_config = ConfigDict(frozen=True)

    pin_hash: str
    pin_salt: str
    recovery_question: str = ""
    recovery_answer_hash: str = ""
    recovery_salt: str = ""
    updated_at: datetime
