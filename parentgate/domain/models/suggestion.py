"""Redirection suggestion models.

Lifecycle:
    PENDING -> ACCEPTED     explicit accept
    PENDING -> DISMISSED    explicit dismiss
    PENDING -> SUPERSEDED   a newer actionable classification replaced it

Only one suggestion is PENDING at a time. Every other state is terminal.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from parentgate.domain.models.intent import IntentLabel


class SuggestionState(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    SUPERSEDED = "superseded"

    @property
    def is_terminal(self) -> bool:
        return self is not SuggestionState.PENDING


class RedirectionSuggestion(BaseModel):
    """Acceptable/dismissible recommendation shown to the supervising adult."""

    model_config = ConfigDict(frozen=True)

    id: str
    reason: IntentLabel
    message: str
    confidence: float = 0.0
    created_at: datetime
    state: SuggestionState = SuggestionState.PENDING
    resolved_at: Optional[datetime] = None
