"""
Redirection coordinator.

Turns actionable session intents into a single pending suggestion for the
supervising adult.

    on_session_state   actionable + confidence > threshold -> create/replace
                       ON_TOPIC / UNKNOWN / below threshold -> no change
    accept / dismiss   pending id -> ACCEPTED / DISMISSED
                       resolved or superseded id -> SuggestionAlreadyResolvedError
                       unknown id -> SuggestionNotFoundError

Every actionable classification above the threshold supersedes the pending
suggestion (last-wins). At most one suggestion is PENDING.
"""

import threading
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Callable, Optional

import structlog

from parentgate.core.config import RedirectionConfig
from parentgate.core.exceptions import (
    SuggestionAlreadyResolvedError,
    SuggestionNotFoundError,
)
from parentgate.domain.models.intent import IntentLabel, SessionState
from parentgate.domain.models.notification import NotificationKind
from parentgate.domain.models.suggestion import RedirectionSuggestion, SuggestionState
from parentgate.services.mode_gate import utc_now
from parentgate.services.notifications import NotificationHub

log = structlog.get_logger(__name__)

DEFAULT_MESSAGE = "It might be a good time to redirect the conversation."


class RedirectionCoordinator:
    """Holds the pending suggestion and its accept/dismiss lifecycle."""

    def __init__(
        self,
        config: Optional[RedirectionConfig] = None,
        hub: Optional[NotificationHub] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or RedirectionConfig()
        self.hub = hub or NotificationHub()
        self._clock = clock
        self._pending: Optional[RedirectionSuggestion] = None
        self._resolved: "OrderedDict[str, RedirectionSuggestion]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def pending(self) -> Optional[RedirectionSuggestion]:
        return self._pending

    def get(self, suggestion_id: str) -> RedirectionSuggestion:
        pending = self._pending
        if pending is not None and pending.id == suggestion_id:
            return pending
        with self._lock:
            resolved = self._resolved.get(suggestion_id)
        if resolved is None:
            raise SuggestionNotFoundError(f"Suggestion {suggestion_id} not found")
        return resolved

    def on_session_state(
        self, state: SessionState, now: Optional[datetime] = None
    ) -> Optional[RedirectionSuggestion]:
        """Create or replace the pending suggestion for an actionable intent.

        Returns:
            The pending suggestion after the update (may be None)
        """
        intent = state.current_intent
        if not intent.is_actionable or state.confidence <= self.config.confidence_threshold:
            return self._pending

        now = now or self._clock()
        with self._lock:
            previous = self._pending
            suggestion = RedirectionSuggestion(
                id=uuid.uuid4().hex,
                reason=intent,
                message=self._message_for(intent),
                confidence=state.confidence,
                created_at=now,
            )
            superseded = None
            if previous is not None:
                superseded = previous.model_copy(
                    update={"state": SuggestionState.SUPERSEDED, "resolved_at": now}
                )
                self._remember(superseded)
            self._pending = suggestion

        if superseded is not None:
            log.info(
                "suggestion_superseded",
                suggestion_id=superseded.id,
                reason=superseded.reason.value,
                replaced_by=suggestion.id,
            )
            self._publish_resolved(superseded, now)

        log.info(
            "suggestion_created",
            suggestion_id=suggestion.id,
            reason=intent.value,
            confidence=state.confidence,
        )
        self.hub.publish(
            NotificationKind.SUGGESTION_CREATED,
            now,
            suggestion_id=suggestion.id,
            reason=intent.value,
            message=suggestion.message,
        )
        return suggestion

    def accept(self, suggestion_id: str, now: Optional[datetime] = None) -> RedirectionSuggestion:
        return self._resolve(suggestion_id, SuggestionState.ACCEPTED, now)

    def dismiss(self, suggestion_id: str, now: Optional[datetime] = None) -> RedirectionSuggestion:
        return self._resolve(suggestion_id, SuggestionState.DISMISSED, now)

    def _resolve(
        self, suggestion_id: str, outcome: SuggestionState, now: Optional[datetime]
    ) -> RedirectionSuggestion:
        now = now or self._clock()
        with self._lock:
            pending = self._pending
            if pending is None or pending.id != suggestion_id:
                previous = self._resolved.get(suggestion_id)
                if previous is not None:
                    raise SuggestionAlreadyResolvedError(
                        f"Suggestion {suggestion_id} is already {previous.state.value}"
                    )
                raise SuggestionNotFoundError(f"Suggestion {suggestion_id} not found")

            resolved = pending.model_copy(update={"state": outcome, "resolved_at": now})
            self._pending = None
            self._remember(resolved)

        log.info(
            "suggestion_resolved",
            suggestion_id=resolved.id,
            reason=resolved.reason.value,
            state=outcome.value,
        )
        self._publish_resolved(resolved, now)
        return resolved

    def _remember(self, suggestion: RedirectionSuggestion) -> None:
        self._resolved[suggestion.id] = suggestion
        while len(self._resolved) > self.config.history_size:
            self._resolved.popitem(last=False)

    def _message_for(self, intent: IntentLabel) -> str:
        return self.config.messages.get(intent, DEFAULT_MESSAGE)

    def _publish_resolved(self, suggestion: RedirectionSuggestion, now: datetime) -> None:
        self.hub.publish(
            NotificationKind.SUGGESTION_RESOLVED,
            now,
            suggestion_id=suggestion.id,
            reason=suggestion.reason.value,
            state=suggestion.state.value,
        )
