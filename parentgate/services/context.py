"""
Composition root for the gate.

GateContext is built once at application startup and handed to the API
layer through app.state; nothing in the core reaches for a module-level
instance of it. Tests build their own context with in-memory stores.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional, Tuple

import structlog

from parentgate.core.config import GateConfig, Settings
from parentgate.domain.models.conversation import ConversationTurn
from parentgate.domain.models.intent import SessionState
from parentgate.domain.models.suggestion import RedirectionSuggestion
from parentgate.persistence.repositories import SQLiteCredentialStore, SQLiteModeStore
from parentgate.services.attempt_tracker import AttemptTracker
from parentgate.services.credential_service import CredentialService
from parentgate.services.intent_classifier import SessionIntentClassifier
from parentgate.services.mode_gate import ModeGate
from parentgate.services.notifications import NotificationHub
from parentgate.services.pin_authenticator import PinAuthenticator
from parentgate.services.protocols import ICredentialStore, IModeStore
from parentgate.services.redirection_coordinator import RedirectionCoordinator

log = structlog.get_logger(__name__)


@dataclass
class GateContext:
    """Every long-lived component of one running gate."""

    config: GateConfig
    hub: NotificationHub
    gate: ModeGate
    credentials: CredentialService
    classifier: SessionIntentClassifier
    coordinator: RedirectionCoordinator
    recovery_tracker: Optional[AttemptTracker] = None
    db_path: Optional[Path] = None
    _turn_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def observe_turn(
        self, turn: ConversationTurn
    ) -> Tuple[SessionState, Optional[RedirectionSuggestion]]:
        """Feed one conversation turn through classifier and coordinator.

        Returns:
            (session state, pending suggestion after the update)
        """
        async with self._turn_lock:
            state = await self.classifier.observe(turn)
            if turn.is_user:
                self.coordinator.on_session_state(state, now=turn.timestamp)
            return state, self.coordinator.pending


def assemble_context(
    config: GateConfig,
    credential_store: ICredentialStore,
    mode_store: Optional[IModeStore] = None,
    settings: Optional[Settings] = None,
    db_path: Optional[Path] = None,
) -> GateContext:
    """Wire components from explicit stores (no I/O)."""
    settings = settings or Settings()
    hub = NotificationHub()
    authenticator = PinAuthenticator(
        credential_store,
        pin_length=config.pin.length,
        store_timeout_seconds=settings.credential_store_timeout_seconds,
    )
    # Wrong security answers from reset and emergency override share one budget
    recovery_tracker = AttemptTracker.from_config(config.lockout)
    gate = ModeGate(
        authenticator,
        AttemptTracker.from_config(config.lockout),
        schedule=config.time_lock.schedule(),
        hub=hub,
        mode_store=mode_store,
        tz=settings.tzinfo,
        inactivity_timeout=timedelta(seconds=config.session.inactivity_timeout_seconds),
        emergency_override_duration=timedelta(
            seconds=config.time_lock.emergency_override_seconds
        ),
        recovery_tracker=recovery_tracker,
    )
    credentials = CredentialService(
        credential_store,
        authenticator,
        pin_config=config.pin,
        mode_reader=gate.current_mode,
        recovery_tracker=recovery_tracker,
    )
    return GateContext(
        config=config,
        hub=hub,
        gate=gate,
        credentials=credentials,
        classifier=SessionIntentClassifier(config.classifier),
        coordinator=RedirectionCoordinator(config.redirection, hub=hub),
        recovery_tracker=recovery_tracker,
        db_path=db_path,
    )


async def build_context(settings: Settings, config: GateConfig) -> GateContext:
    """Build the production context on the SQLite stores and restore the mode."""
    db_path = Path(settings.database_path)
    context = assemble_context(
        config,
        SQLiteCredentialStore(str(db_path)),
        SQLiteModeStore(str(db_path)),
        settings=settings,
        db_path=db_path,
    )
    await context.gate.restore()
    log.info(
        "gate_context_built",
        database=str(db_path),
        time_lock_windows=len(config.time_lock.windows),
        detectors=[d.detector_name for d in context.classifier.detectors],
    )
    return context
