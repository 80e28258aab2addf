"""Session intent models.

IntentLabel is a closed set. Its declaration order is not meaningful; the
tie-break order lives in TIE_BREAK_PRIORITY so new labels can be added
without disturbing the gate or the redirection contract.

Tie-break (first wins on equal confidence):
    DISTRESS > DISENGAGEMENT > REPETITION > OFF_TOPIC > ON_TOPIC > UNKNOWN
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class IntentLabel(str, Enum):
    UNKNOWN = "unknown"
    ON_TOPIC = "on_topic"
    OFF_TOPIC = "off_topic"
    DISTRESS = "distress"
    REPETITION = "repetition"
    DISENGAGEMENT = "disengagement"

    @property
    def is_actionable(self) -> bool:
        return self in ACTIONABLE_INTENTS

    @property
    def priority(self) -> int:
        """Lower value wins ties."""
        return TIE_BREAK_PRIORITY.index(self)


TIE_BREAK_PRIORITY: tuple[IntentLabel, ...] = (
    IntentLabel.DISTRESS,
    IntentLabel.DISENGAGEMENT,
    IntentLabel.REPETITION,
    IntentLabel.OFF_TOPIC,
    IntentLabel.ON_TOPIC,
    IntentLabel.UNKNOWN,
)

ACTIONABLE_INTENTS = frozenset(
    {
        IntentLabel.OFF_TOPIC,
        IntentLabel.DISTRESS,
        IntentLabel.REPETITION,
        IntentLabel.DISENGAGEMENT,
    }
)


class SessionState(BaseModel):
    """Latest classification of the conversation.

    Written only by the SessionIntentClassifier; detected_at is the
    timestamp of the turn that produced it, which keeps classification
    a pure function of the turn sequence.
    """

    model_config = ConfigDict(frozen=True)

    current_intent: IntentLabel = IntentLabel.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detected_at: Optional[datetime] = Field(
        default=None, description="None until the first user turn is classified"
    )
    scores: Dict[IntentLabel, float] = Field(
        default_factory=dict,
        description="Per-label confidence from the last classification",
    )
