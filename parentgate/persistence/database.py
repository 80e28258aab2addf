"""
SQLite database for the gate's durable state.

Two tables live here: the single credential record and the app_state
key-value rows (the last committed mode). The schema in schema.sql is
idempotent, so init runs on every start.
"""

from pathlib import Path

import aiosqlite
import structlog

from parentgate.core.config import settings

log = structlog.get_logger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"


async def init_database(db_path: Path | None = None) -> None:
    """
    Create the database file and tables if missing.

    Args:
        db_path: Database file. Uses settings.database_path if not provided.

    Raises:
        FileNotFoundError: schema.sql is missing from the installed package
    """
    db_path = Path(db_path or settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if not SCHEMA_FILE.exists():
        log.error("schema_file_not_found", path=str(SCHEMA_FILE))
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_FILE}")

    async with aiosqlite.connect(db_path) as db:
        # WAL keeps status reads from blocking behind a credential write
        await db.execute("PRAGMA journal_mode = WAL")
        await db.executescript(SCHEMA_FILE.read_text())
        await db.commit()

    log.info("database_initialized", path=str(db_path))


async def check_database_health(db_path: Path | None = None) -> dict:
    """
    Probe the database for the health endpoints.

    Returns:
        {"status": "healthy", pin_configured, persisted_mode, integrity, path}
        or {"status": "unhealthy", "error": ...}. Never raises.
    """
    db_path = Path(db_path or settings.database_path)
    try:
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM credentials")
            (credential_rows,) = await cursor.fetchone()

            cursor = await db.execute(
                "SELECT value FROM app_state WHERE key = 'current_mode'"
            )
            mode_row = await cursor.fetchone()

            cursor = await db.execute("PRAGMA integrity_check")
            integrity = await cursor.fetchone()
    except Exception as e:
        log.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

    return {
        "status": "healthy",
        "pin_configured": credential_rows > 0,
        "persisted_mode": mode_row[0] if mode_row else None,
        "integrity": integrity[0] if integrity else "unknown",
        "path": str(db_path),
    }
