"""Change notifications emitted by the core for the presentation layer."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    MODE_CHANGED = "mode_changed"
    LOCKOUT_CHANGED = "lockout_changed"
    SUGGESTION_CREATED = "suggestion_created"
    SUGGESTION_RESOLVED = "suggestion_resolved"
    EMERGENCY_OVERRIDE = "emergency_override"


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    emitted_at: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)
