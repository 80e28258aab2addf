"""Credential repository backed by SQLite."""

from datetime import datetime

import aiosqlite
import structlog

from parentgate.core.exceptions import (
    CredentialNotConfiguredError,
    CredentialStoreUnavailableError,
)
from parentgate.domain.models.auth import HashedCredential

log = structlog.get_logger(__name__)


class SQLiteCredentialStore:
    """Persists the single hashed credential record.

    Every failure surfaces as CredentialStoreUnavailableError; callers
    never see a raw sqlite error or a silent default.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def load(self) -> HashedCredential:
        """Load the stored credential.

        Raises:
            CredentialNotConfiguredError: No PIN has been set up
            CredentialStoreUnavailableError: Database unreadable or row corrupt
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute("SELECT * FROM credentials WHERE id = 1")
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            log.error("credential_load_failed", error=str(e))
            raise CredentialStoreUnavailableError(f"Credential store unreadable: {e}") from e

        if row is None:
            raise CredentialNotConfiguredError("No PIN has been configured")

        return self._row_to_credential(row)

    async def save(self, credential: HashedCredential) -> None:
        """Insert or replace the credential record."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT OR REPLACE INTO credentials (id, pin_hash, pin_salt, "
                    "recovery_question, recovery_answer_hash, recovery_salt, updated_at) "
                    "VALUES (1, ?, ?, ?, ?, ?, ?)",
                    (
                        credential.pin_hash,
                        credential.pin_salt,
                        credential.recovery_question,
                        credential.recovery_answer_hash,
                        credential.recovery_salt,
                        credential.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            log.error("credential_save_failed", error=str(e))
            raise CredentialStoreUnavailableError(f"Credential store unwritable: {e}") from e

        log.info("credential_saved")

    def _row_to_credential(self, row: aiosqlite.Row) -> HashedCredential:
        if not row["pin_hash"] or not row["pin_salt"]:
            log.error("credential_row_corrupt")
            raise CredentialStoreUnavailableError("Stored credential is corrupt")
        try:
            updated_at = datetime.fromisoformat(row["updated_at"])
        except (TypeError, ValueError) as e:
            log.error("credential_row_corrupt", field="updated_at")
            raise CredentialStoreUnavailableError("Stored credential is corrupt") from e

        return HashedCredential(
            pin_hash=row["pin_hash"],
            pin_salt=row["pin_salt"],
            recovery_question=row["recovery_question"],
            recovery_answer_hash=row["recovery_answer_hash"],
            recovery_salt=row["recovery_salt"],
            updated_at=updated_at,
        )
