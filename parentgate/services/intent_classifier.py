"""
Session intent classifier.

Keeps a bounded window of recent conversation turns and, on every user
turn, runs each registered IntentDetector over that window. The decision
policy picks one label:

    1. per label, keep the highest detector confidence
    2. labels below min_confidence are dropped
    3. highest confidence wins; equal confidence is broken by
       TIE_BREAK_PRIORITY (safety-relevant intents first)
    4. nothing left -> UNKNOWN

System turns are added to the window but do not trigger classification.
Nothing is persisted, and identical turn sequences produce identical
states (confidences are rounded before comparison, detected_at comes
from the turn).
"""

from collections import deque
from typing import Deque, Dict, List, Optional, Sequence

import structlog

from parentgate.core.config import ClassifierConfig
from parentgate.domain.models.conversation import ConversationTurn
from parentgate.domain.models.intent import IntentLabel, SessionState
from parentgate.signals import IntentDetector

log = structlog.get_logger(__name__)

CONFIDENCE_PRECISION = 6


class SessionIntentClassifier:
    """Classifies the conversation trajectory from the recent-turn window."""

    def __init__(
        self,
        config: Optional[ClassifierConfig] = None,
        detectors: Optional[Sequence[IntentDetector]] = None,
    ):
        self.config = config or ClassifierConfig()
        if detectors is None:
            registry = IntentDetector.get_registered_detectors()
            detectors = [registry[name](self.config) for name in sorted(registry)]
        self.detectors: List[IntentDetector] = list(detectors)
        self._window: Deque[ConversationTurn] = deque(maxlen=self.config.window_size)
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        """Latest committed classification."""
        return self._state

    @property
    def window(self) -> List[ConversationTurn]:
        return list(self._window)

    def reset(self) -> None:
        self._window.clear()
        self._state = SessionState()

    async def observe(self, turn: ConversationTurn) -> SessionState:
        """Add a turn to the window and reclassify on user turns.

        Args:
            turn: Next turn of the conversation, in arrival order

        Returns:
            The current SessionState (unchanged for system turns)
        """
        self._window.append(turn)
        if not turn.is_user:
            return self._state

        turns = list(self._window)
        scores: Dict[IntentLabel, float] = {}
        for detector in self.detectors:
            confidence = await detector.detect(turns)
            confidence = round(min(max(confidence, 0.0), 1.0), CONFIDENCE_PRECISION)
            scores[detector.intent] = max(scores.get(detector.intent, 0.0), confidence)

        label, confidence = self._decide(scores)
        self._state = SessionState(
            current_intent=label,
            confidence=confidence,
            detected_at=turn.timestamp,
            scores=scores,
        )

        log.debug(
            "session_intent_classified",
            intent=label.value,
            confidence=confidence,
            scores={k.value: v for k, v in scores.items()},
        )
        return self._state

    def _decide(self, scores: Dict[IntentLabel, float]) -> tuple[IntentLabel, float]:
        candidates = [
            (label, conf)
            for label, conf in scores.items()
            if label is not IntentLabel.UNKNOWN and conf >= self.config.min_confidence and conf > 0
        ]
        if not candidates:
            top = max(scores.values(), default=0.0)
            return IntentLabel.UNKNOWN, top

        candidates.sort(key=lambda item: (-item[1], item[0].priority))
        return candidates[0]
