"""Domain models package."""

from .auth import AuthAttempt, AuthOutcome, HashedCredential, LockoutState, PinStrength
from .conversation import ConversationTurn, Speaker
from .intent import ACTIONABLE_INTENTS, IntentLabel, SessionState
from .mode import Mode, ModeStatus
from .notification import Notification, NotificationKind
from .schedule import TimeLockSchedule, TimeLockWindow, Weekday
from .suggestion import RedirectionSuggestion, SuggestionState

__all__ = [
    "AuthAttempt",
    "AuthOutcome",
    "HashedCredential",
    "LockoutState",
    "PinStrength",
    "ConversationTurn",
    "Speaker",
    "ACTIONABLE_INTENTS",
    "IntentLabel",
    "SessionState",
    "Mode",
    "ModeStatus",
    "Notification",
    "NotificationKind",
    "TimeLockSchedule",
    "TimeLockWindow",
    "Weekday",
    "RedirectionSuggestion",
    "SuggestionState",
]
