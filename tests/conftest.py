"""
Shared test fixtures.

In-memory stores stand in for the SQLite repositories so service tests
need no database; time is always passed explicitly.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from unittest.mock import patch

import pytest

from parentgate.core.config import GateConfig
from parentgate.core.exceptions import (
    CredentialNotConfiguredError,
    CredentialStoreUnavailableError,
)
from parentgate.domain.models.auth import HashedCredential
from parentgate.domain.models.mode import Mode
from parentgate.persistence.database import init_database
from parentgate.services.attempt_tracker import AttemptTracker
from parentgate.services.mode_gate import ModeGate
from parentgate.services.notifications import NotificationHub
from parentgate.services.pin_authenticator import (
    PinAuthenticator,
    hash_secret,
    new_salt,
    normalize_answer,
)

PIN = "482916"
RECOVERY_QUESTION = "First pet's name?"
RECOVERY_ANSWER = "Rex"

# Monday, 2 March 2026, noon UTC
T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_credential(pin: str = PIN, answer: str = RECOVERY_ANSWER) -> HashedCredential:
    pin_salt = new_salt()
    answer_salt = new_salt()
    return HashedCredential(
        pin_hash=hash_secret(pin, pin_salt),
        pin_salt=pin_salt,
        recovery_question=RECOVERY_QUESTION,
        recovery_answer_hash=hash_secret(normalize_answer(answer), answer_salt),
        recovery_salt=answer_salt,
        updated_at=T0,
    )


class InMemoryCredentialStore:
    """ICredentialStore double that counts loads and can be switched off."""

    def __init__(self, credential: Optional[HashedCredential] = None):
        self.credential = credential
        self.available = True
        self.loads = 0

    async def load(self) -> HashedCredential:
        self.loads += 1
        if not self.available:
            raise CredentialStoreUnavailableError("store offline")
        if self.credential is None:
            raise CredentialNotConfiguredError("No PIN has been configured")
        return self.credential

    async def save(self, credential: HashedCredential) -> None:
        if not self.available:
            raise CredentialStoreUnavailableError("store offline")
        self.credential = credential


class InMemoryModeStore:
    def __init__(self, mode: Optional[Mode] = None):
        self.mode = mode
        self.saves = []

    async def load(self) -> Optional[Mode]:
        return self.mode

    async def save(self, mode: Mode) -> None:
        self.mode = mode
        self.saves.append(mode)


class FakeClock:
    """Manually advanced clock for components that read time themselves."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def credential_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore(make_credential())


@pytest.fixture
def mode_store() -> InMemoryModeStore:
    return InMemoryModeStore()


@pytest.fixture
def hub() -> NotificationHub:
    return NotificationHub()


@pytest.fixture
def notifications(hub):
    """List that collects every notification published on the hub."""
    received = []
    hub.subscribe(received.append)
    return received


@pytest.fixture
def authenticator(credential_store) -> PinAuthenticator:
    return PinAuthenticator(credential_store, pin_length=6)


@pytest.fixture
def tracker() -> AttemptTracker:
    return AttemptTracker()


@pytest.fixture
def gate(authenticator, tracker, hub, mode_store, clock) -> ModeGate:
    return ModeGate(authenticator, tracker, hub=hub, mode_store=mode_store, clock=clock)


@pytest.fixture
def gate_config() -> GateConfig:
    return GateConfig()


@pytest.fixture
async def test_db(tmp_path):
    """Create and initialize a test database; settings point at it."""
    db_path = Path(tmp_path) / "test.db"
    await init_database(db_path)

    from parentgate.core import config

    original_path = config.settings.database_path
    config.settings.database_path = db_path

    with patch("parentgate.persistence.database.settings", config.settings):
        yield db_path

    config.settings.database_path = original_path
