"""Repository implementations."""

from parentgate.persistence.repositories.credential_repo import SQLiteCredentialStore
from parentgate.persistence.repositories.mode_repo import SQLiteModeStore

__all__ = [
    "SQLiteCredentialStore",
    "SQLiteModeStore",
]
