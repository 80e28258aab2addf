"""
API request/response schemas.

Pydantic models for API validation and serialization. Durations are
exposed as float seconds so the presentation layer can count down without
parsing ISO 8601 durations.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from parentgate.domain.models.auth import LockoutState, PinStrength
from parentgate.domain.models.conversation import Speaker
from parentgate.domain.models.intent import IntentLabel, SessionState
from parentgate.domain.models.mode import Mode, ModeStatus
from parentgate.domain.models.notification import NotificationKind
from parentgate.domain.models.suggestion import RedirectionSuggestion, SuggestionState


def _seconds(value: Optional[timedelta]) -> Optional[float]:
    return value.total_seconds() if value is not None else None


# ============ MODE SCHEMAS ============


class ModeSwitchRequest(BaseModel):
    """Request to switch the gate's mode."""

    mode: Mode
    pin: Optional[str] = Field(
        default=None, description="Required when switching to unrestricted"
    )


class LockoutSchema(BaseModel):
    locked: bool
    remaining_seconds: float
    locked_until: Optional[datetime] = None
    consecutive_failures: int
    attempts_remaining: int

    @classmethod
    def from_state(cls, state: LockoutState) -> "LockoutSchema":
        return cls(
            locked=state.locked,
            remaining_seconds=state.remaining.total_seconds(),
            locked_until=state.locked_until,
            consecutive_failures=state.consecutive_failures,
            attempts_remaining=state.attempts_remaining,
        )


class ModeStatusResponse(BaseModel):
    """Status snapshot for badges and banners."""

    mode: Mode
    display_name: str
    time_locked: bool
    time_locked_until: Optional[datetime] = None
    lockout: LockoutSchema
    emergency_override_active: bool
    emergency_override_expires_at: Optional[datetime] = None
    seconds_until_next_unlock: Optional[float] = None
    session_started_at: datetime
    last_activity_at: datetime

    @classmethod
    def from_status(cls, status: ModeStatus) -> "ModeStatusResponse":
        return cls(
            mode=status.mode,
            display_name=status.mode.display_name,
            time_locked=status.time_locked,
            time_locked_until=status.time_locked_until,
            lockout=LockoutSchema.from_state(status.lockout),
            emergency_override_active=status.emergency_override_active,
            emergency_override_expires_at=status.emergency_override_expires_at,
            seconds_until_next_unlock=_seconds(status.time_until_next_unlock),
            session_started_at=status.session_started_at,
            last_activity_at=status.last_activity_at,
        )


class InactivityCheckResponse(BaseModel):
    relocked: bool
    mode: Mode


class EmergencyOverrideRequest(BaseModel):
    recovery_answer: str = Field(..., min_length=1, max_length=200)


class EmergencyOverrideResponse(BaseModel):
    active: bool
    expires_at: Optional[datetime] = None


# ============ CREDENTIAL SCHEMAS ============


class CredentialStatusResponse(BaseModel):
    pin_configured: bool
    recovery_question: Optional[str] = None


class PinSetupRequest(BaseModel):
    """Set or change the parent PIN."""

    pin: str
    recovery_question: str = Field(..., max_length=200)
    recovery_answer: str = Field(..., max_length=200)


class PinResetRequest(BaseModel):
    """Replace a forgotten PIN using the security answer."""

    recovery_answer: str = Field(..., max_length=200)
    new_pin: str


class PinStrengthRequest(BaseModel):
    pin: str


class PinStrengthResponse(BaseModel):
    strength: PinStrength
    progress: float


# ============ SESSION SCHEMAS ============


class TurnRequest(BaseModel):
    """One conversation turn pushed by the chat layer."""

    speaker: Speaker = Speaker.USER
    text: str = Field(..., max_length=5000)
    timestamp: Optional[datetime] = None


class SessionStateSchema(BaseModel):
    current_intent: IntentLabel
    confidence: float
    detected_at: Optional[datetime] = None
    scores: Dict[IntentLabel, float] = Field(default_factory=dict)

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateSchema":
        return cls(
            current_intent=state.current_intent,
            confidence=state.confidence,
            detected_at=state.detected_at,
            scores=dict(state.scores),
        )


class SuggestionSchema(BaseModel):
    id: str
    reason: IntentLabel
    message: str
    confidence: float
    created_at: datetime
    state: SuggestionState
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_suggestion(
        cls, suggestion: Optional[RedirectionSuggestion]
    ) -> Optional["SuggestionSchema"]:
        if suggestion is None:
            return None
        return cls(**suggestion.model_dump())


class TurnResponse(BaseModel):
    """Classification after a turn plus the pending suggestion, if any."""

    state: SessionStateSchema
    suggestion: Optional[SuggestionSchema] = None


class SuggestionResponse(BaseModel):
    suggestion: Optional[SuggestionSchema] = None


# ============ NOTIFICATION SCHEMAS ============


class NotificationSchema(BaseModel):
    kind: NotificationKind
    emitted_at: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)


class NotificationsResponse(BaseModel):
    """Most recent notifications, oldest first, for clients that poll."""

    notifications: List[NotificationSchema]
