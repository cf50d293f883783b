"""SQLite connection management for the Kindle vocabulary database.

The schema of vocab.db is owned by the Kindle device. Nothing here creates or
migrates tables; this module only opens connections to an existing file.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

logger = structlog.get_logger(__name__)

# Default database location (Kindle mounted on macOS)
DEFAULT_DB_PATH = Path("/Volumes/Kindle/system/vocabulary/vocab.db")

# Tables written by the device
WORDS_TABLE = "WORDS"
LOOKUPS_TABLE = "LOOKUPS"
BOOK_INFO_TABLE = "BOOK_INFO"


async def open_connection(db_path: Path | str) -> aiosqlite.Connection:
    """Open an aiosqlite connection to vocab.db.

    The connection runs in autocommit mode so every statement is committed
    on its own, and rows come back as aiosqlite.Row.

    Args:
        db_path: Path to the vocab.db file. SQLite creates it if missing.

    Returns:
        Open aiosqlite connection

    Raises:
        sqlite3.Error: If SQLite cannot open the file
    """
    conn = await aiosqlite.connect(str(db_path), isolation_level=None)
    conn.row_factory = aiosqlite.Row

    logger.debug("database.connected", path=str(db_path))
    return conn
