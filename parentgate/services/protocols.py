"""
Service protocol definitions (interfaces).

Defines the boundaries to external collaborators using typing.Protocol,
so the SQLite repositories, in-memory fakes and any future keychain
backend are interchangeable.
"""

from typing import Optional, Protocol

from parentgate.domain.models.auth import HashedCredential
from parentgate.domain.models.mode import Mode


class ICredentialStore(Protocol):
    """
    Protocol for credential storage.

    Implementations raise CredentialStoreUnavailableError on any I/O or
    integrity failure and CredentialNotConfiguredError when no PIN exists.
    """

    async def load(self) -> HashedCredential:
        ...

    async def save(self, credential: HashedCredential) -> None:
        ...


class IModeStore(Protocol):
    """
    Protocol for mode persistence.

    load() returns None when nothing usable is stored; save() raises
    PersistenceError on failure.
    """

    async def load(self) -> Optional[Mode]:
        ...

    async def save(self, mode: Mode) -> None:
        ...
