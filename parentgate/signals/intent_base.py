"""Base class for intent detectors with auto-registration.

Each detector looks at the recent turn window and reports a confidence in
[0, 1] for exactly one IntentLabel. The classifier runs every registered
detector and applies the decision policy; detectors never see each other.

Subclass pattern:
    class MyDetector(IntentDetector):
        detector_name = "session.my_detector"
        intent = IntentLabel.OFF_TOPIC

        async def detect(self, turns):
            return 0.0

Adding a detector (or a new IntentLabel) needs no change to the gate or
the redirection coordinator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Sequence

from parentgate.core.config import ClassifierConfig
from parentgate.domain.models.conversation import ConversationTurn
from parentgate.domain.models.intent import IntentLabel


class IntentDetector(ABC):
    """Abstract base for intent detectors with auto-registration.

    Attributes:
        detector_name: Namespaced detector name (e.g., "session.distress")
        intent: Label this detector scores
        description: Human-readable description
    """

    detector_name: ClassVar[str]
    intent: ClassVar[IntentLabel]
    description: ClassVar[str] = ""

    _registry: ClassVar[dict[str, type["IntentDetector"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register subclasses that define detector_name.

        Intermediate bases without detector_name are skipped.
        """
        super().__init_subclass__(**kwargs)
        if "detector_name" in cls.__dict__:
            cls._registry[cls.detector_name] = cls

    @classmethod
    def get_registered_detectors(cls) -> dict[str, type["IntentDetector"]]:
        return cls._registry.copy()

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self.config = config or ClassifierConfig()

    @abstractmethod
    async def detect(self, turns: Sequence[ConversationTurn]) -> float:
        """Return this detector's confidence for the window.

        Args:
            turns: Recent turns, oldest first; the last one is a user turn

        Returns:
            Confidence in [0, 1]; 0.0 when the intent is absent
        """
        ...

    @staticmethod
    def user_turns(turns: Sequence[ConversationTurn]) -> list[ConversationTurn]:
        return [t for t in turns if t.is_user]
