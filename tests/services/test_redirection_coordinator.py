"""Tests for RedirectionCoordinator suggestion lifecycle."""

from datetime import timedelta

import pytest

from parentgate.core.config import RedirectionConfig
from parentgate.core.exceptions import (
    SuggestionAlreadyResolvedError,
    SuggestionNotFoundError,
)
from parentgate.domain.models.intent import IntentLabel, SessionState
from parentgate.domain.models.notification import NotificationKind
from parentgate.domain.models.suggestion import SuggestionState
from parentgate.services.redirection_coordinator import DEFAULT_MESSAGE, RedirectionCoordinator


def state(label: IntentLabel, confidence: float) -> SessionState:
    return SessionState(current_intent=label, confidence=confidence)


@pytest.fixture
def coordinator(hub, clock):
    return RedirectionCoordinator(hub=hub, clock=clock)


class TestCreation:
    def test_actionable_intent_creates_pending(self, coordinator, clock):
        suggestion = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        assert suggestion is coordinator.pending
        assert suggestion.reason is IntentLabel.DISTRESS
        assert suggestion.state is SuggestionState.PENDING
        assert suggestion.created_at == clock.now
        assert suggestion.message == RedirectionConfig().messages[IntentLabel.DISTRESS]

    def test_confidence_must_exceed_threshold(self, coordinator):
        assert coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.6)) is None
        assert coordinator.pending is None

    @pytest.mark.parametrize("label", [IntentLabel.ON_TOPIC, IntentLabel.UNKNOWN])
    def test_non_actionable_intents_never_create(self, coordinator, label):
        assert coordinator.on_session_state(state(label, 1.0)) is None

    @pytest.mark.parametrize("label", [IntentLabel.ON_TOPIC, IntentLabel.UNKNOWN])
    def test_non_actionable_intents_leave_pending_untouched(self, coordinator, label):
        pending = coordinator.on_session_state(state(IntentLabel.OFF_TOPIC, 0.8))
        assert coordinator.on_session_state(state(label, 1.0)) is pending
        assert coordinator.pending is pending

    def test_low_confidence_actionable_leaves_pending_untouched(self, coordinator):
        pending = coordinator.on_session_state(state(IntentLabel.OFF_TOPIC, 0.8))
        coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.4))
        assert coordinator.pending is pending

    def test_configured_message(self, hub):
        config = RedirectionConfig(messages={IntentLabel.REPETITION: "Try a new game?"})
        coordinator = RedirectionCoordinator(config, hub=hub)
        assert coordinator.on_session_state(state(IntentLabel.REPETITION, 0.9)).message == "Try a new game?"
        coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        assert coordinator.pending.message == DEFAULT_MESSAGE


class TestReplacement:
    def test_new_actionable_intent_replaces_pending(self, coordinator):
        first = coordinator.on_session_state(state(IntentLabel.OFF_TOPIC, 0.8))
        second = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        assert second.id != first.id
        assert coordinator.pending is second
        assert coordinator.get(first.id).state is SuggestionState.SUPERSEDED

    def test_superseded_id_is_already_resolved(self, coordinator):
        first = coordinator.on_session_state(state(IntentLabel.OFF_TOPIC, 0.8))
        coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        with pytest.raises(SuggestionAlreadyResolvedError):
            coordinator.accept(first.id)
        with pytest.raises(SuggestionAlreadyResolvedError):
            coordinator.dismiss(first.id)

    def test_at_most_one_pending(self, coordinator):
        created = [
            coordinator.on_session_state(state(label, 0.9))
            for label in (IntentLabel.OFF_TOPIC, IntentLabel.REPETITION, IntentLabel.DISTRESS)
        ]
        states = [coordinator.get(s.id).state for s in created]
        assert states.count(SuggestionState.PENDING) == 1
        assert coordinator.pending is created[-1]


class TestResolution:
    def test_accept(self, coordinator, clock):
        suggestion = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        clock.advance(seconds=30)
        accepted = coordinator.accept(suggestion.id)
        assert accepted.state is SuggestionState.ACCEPTED
        assert accepted.resolved_at == clock.now
        assert coordinator.pending is None

    def test_dismiss(self, coordinator):
        suggestion = coordinator.on_session_state(state(IntentLabel.DISENGAGEMENT, 0.9))
        assert coordinator.dismiss(suggestion.id).state is SuggestionState.DISMISSED
        assert coordinator.pending is None

    def test_accept_twice_is_already_resolved(self, coordinator):
        suggestion = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        coordinator.accept(suggestion.id)
        with pytest.raises(SuggestionAlreadyResolvedError):
            coordinator.accept(suggestion.id)
        assert coordinator.get(suggestion.id).state is SuggestionState.ACCEPTED

    def test_dismiss_after_accept_does_not_change_state(self, coordinator):
        suggestion = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        coordinator.accept(suggestion.id)
        with pytest.raises(SuggestionAlreadyResolvedError):
            coordinator.dismiss(suggestion.id)
        assert coordinator.get(suggestion.id).state is SuggestionState.ACCEPTED

    def test_unknown_id(self, coordinator):
        with pytest.raises(SuggestionNotFoundError):
            coordinator.accept("nope")
        with pytest.raises(SuggestionNotFoundError):
            coordinator.dismiss("nope")

    def test_history_is_bounded(self, hub):
        coordinator = RedirectionCoordinator(RedirectionConfig(history_size=2), hub=hub)
        first = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        coordinator.accept(first.id)
        for _ in range(2):
            s = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
            coordinator.dismiss(s.id)
        with pytest.raises(SuggestionNotFoundError):
            coordinator.accept(first.id)


class TestNotifications:
    def test_lifecycle_notifications(self, coordinator, notifications):
        first = coordinator.on_session_state(state(IntentLabel.OFF_TOPIC, 0.8))
        second = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9))
        coordinator.dismiss(second.id)

        kinds = [(n.kind, n.payload["suggestion_id"]) for n in notifications]
        assert kinds == [
            (NotificationKind.SUGGESTION_CREATED, first.id),
            (NotificationKind.SUGGESTION_RESOLVED, first.id),
            (NotificationKind.SUGGESTION_CREATED, second.id),
            (NotificationKind.SUGGESTION_RESOLVED, second.id),
        ]
        assert notifications[1].payload["state"] == "superseded"
        assert notifications[3].payload["state"] == "dismissed"

    def test_explicit_now(self, coordinator, clock):
        now = clock.now + timedelta(hours=1)
        suggestion = coordinator.on_session_state(state(IntentLabel.DISTRESS, 0.9), now=now)
        assert suggestion.created_at == now
