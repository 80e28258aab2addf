"""Conversation turn models pushed by the chat layer."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Speaker(str, Enum):
    """Speaker role for a conversation turn.

    Values:
        - USER: the child talking to the companion (classified)
        - SYSTEM: the companion's own reply (kept for context only)
    """

    USER = "user"
    SYSTEM = "system"


class ConversationTurn(BaseModel):
    """Single turn in the ordered conversation feed."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_user(self) -> bool:
        return self.speaker is Speaker.USER
