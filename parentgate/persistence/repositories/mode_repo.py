"""Mode persistence repository (key-value row in app_state)."""

from typing import Optional

import aiosqlite
import structlog

from parentgate.core.exceptions import PersistenceError
from parentgate.domain.models.mode import Mode

log = structlog.get_logger(__name__)

MODE_KEY = "current_mode"


class SQLiteModeStore:
    """Durable record of the last committed mode."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def load(self) -> Optional[Mode]:
        """Return the persisted mode, or None when absent or unreadable.

        None lets the gate fall back to RESTRICTED.
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "SELECT value FROM app_state WHERE key = ?", (MODE_KEY,)
                )
                row = await cursor.fetchone()
        except (aiosqlite.Error, OSError) as e:
            log.warning("mode_load_failed", error=str(e))
            return None

        if row is None:
            return None

        try:
            return Mode(row[0])
        except ValueError:
            log.warning("mode_value_corrupt", value=row[0])
            return None

    async def save(self, mode: Mode) -> None:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT OR REPLACE INTO app_state (key, value, updated_at) "
                    "VALUES (?, ?, datetime('now'))",
                    (MODE_KEY, mode.value),
                )
                await db.commit()
        except (aiosqlite.Error, OSError) as e:
            raise PersistenceError(f"Could not persist mode: {e}") from e
