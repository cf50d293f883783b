"""Read/delete access to the Kindle vocabulary database.

VocabStore wraps a single aiosqlite connection to vocab.db and exposes
queries over the three device tables:

- WORDS: looked-up words (id, word, stem)
- LOOKUPS: one row per lookup event (word_key, book_key, usage, timestamp)
- BOOK_INFO: book metadata (id, title, lang, authors, asin)

The store must be opened before use:

    store = VocabStore(path)
    await store.open()
    lookups = await store.list_all_lookups()

Every caller-supplied identifier is passed as a bound parameter.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from kindle_vocab.db.database import open_connection

logger = structlog.get_logger(__name__)


# =============================================================================
# Errors
# =============================================================================


class VocabStoreError(Exception):
    """Base error for VocabStore operations."""


class NotInitializedError(VocabStoreError):
    """Raised when an operation is used before open() succeeded."""

    def __init__(self) -> None:
        super().__init__(
            "VocabStore is not open. Await 'open()' before using it."
        )


class OpenError(VocabStoreError):
    """Raised when the database file cannot be opened."""

    def __init__(self, db_path: Path, reason: str):
        self.db_path = db_path
        super().__init__(f"Cannot open vocabulary database {db_path}: {reason}")


class QueryError(VocabStoreError):
    """Raised when a statement fails at the engine."""


class CascadeDeleteError(QueryError):
    """Raised when one step of delete_book_cascade fails.

    Steps that already ran stay committed; later steps are not attempted.
    """

    def __init__(self, book_id: str, step: str, completed_steps: list[str]):
        self.book_id = book_id
        self.step = step
        self.completed_steps = completed_steps
        super().__init__(
            f"Cascade delete of book '{book_id}' failed at step '{step}' "
            f"(completed: {', '.join(completed_steps) or 'none'})"
        )


# =============================================================================
# Records
# =============================================================================


@dataclass
class Lookup:
    """Lookup joined with its word (and optionally its book title)."""

    id: str
    word_key: str
    book_key: str
    usage: str
    timestamp: int
    word: str
    stem: str
    book_title: str | None = None


@dataclass
class Book:
    """Book record from BOOK_INFO."""

    id: str
    title: str
    lang: str
    authors: str
    asin: str | None = None


# =============================================================================
# Queries
# =============================================================================

_LOOKUP_COLUMNS = """
    LOOKUPS.id AS id, LOOKUPS.word_key AS word_key, LOOKUPS.book_key AS book_key,
    LOOKUPS.usage AS usage, LOOKUPS.timestamp AS timestamp,
    WORDS.word AS word, WORDS.stem AS stem
"""

_SELECT_LOOKUPS = f"""
    SELECT {_LOOKUP_COLUMNS}, NULL AS book_title
    FROM LOOKUPS
    INNER JOIN WORDS ON WORDS.id = LOOKUPS.word_key
    ORDER BY LOOKUPS.timestamp
"""

_SELECT_LOOKUPS_WITH_BOOK = f"""
    SELECT {_LOOKUP_COLUMNS}, BOOK_INFO.title AS book_title
    FROM LOOKUPS
    INNER JOIN WORDS ON WORDS.id = LOOKUPS.word_key
    INNER JOIN BOOK_INFO ON BOOK_INFO.id = LOOKUPS.book_key
    ORDER BY LOOKUPS.timestamp
"""

_SELECT_LOOKUPS_FOR_BOOK = f"""
    SELECT {_LOOKUP_COLUMNS}, BOOK_INFO.title AS book_title
    FROM LOOKUPS
    INNER JOIN WORDS ON WORDS.id = LOOKUPS.word_key
    INNER JOIN BOOK_INFO ON BOOK_INFO.id = LOOKUPS.book_key
    WHERE LOOKUPS.book_key = ?
    ORDER BY LOOKUPS.timestamp
"""

# Bare columns with GROUP BY: SQLite picks the surviving row per asin
_SELECT_BOOKS = "SELECT id, title, lang, authors, asin FROM BOOK_INFO GROUP BY asin"

_DELETE_WORDS_FOR_BOOK = """
    DELETE FROM WORDS
    WHERE id IN (SELECT word_key FROM LOOKUPS WHERE LOOKUPS.book_key = ?)
"""


class VocabStore:
    """Client for a Kindle vocab.db file.

    States: uninitialized until open() succeeds, then ready. close() returns
    the store to uninitialized.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._initialized = False

    @property
    def is_open(self) -> bool:
        return self._initialized and self._conn is not None

    async def open(self) -> None:
        """Open the connection to vocab.db.

        Must be awaited before any other operation. An already open store
        closes its previous connection first.

        Raises:
            OpenError: If SQLite cannot open the file. The store stays
                uninitialized and open() may be retried.
        """
        if self._conn is not None:
            await self.close()

        self._initialized = False
        try:
            self._conn = await open_connection(self.db_path)
        except (sqlite3.Error, OSError) as e:
            logger.error("vocab_store.open_failed", path=str(self.db_path), error=str(e))
            raise OpenError(self.db_path, str(e)) from e

        self._initialized = True
        logger.info("vocab_store.opened", path=str(self.db_path))

    async def close(self) -> None:
        """Close the connection, if any."""
        conn, self._conn = self._conn, None
        self._initialized = False
        if conn is not None:
            await conn.close()
            logger.debug("vocab_store.closed", path=str(self.db_path))

    async def __aenter__(self) -> VocabStore:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_all_lookups(self, with_book_title: bool = True) -> list[Lookup]:
        """Return all lookups ordered by timestamp (ascending).

        Lookups whose word is missing from WORDS are not returned. With
        with_book_title, lookups whose book is missing from BOOK_INFO are
        not returned either.

        Args:
            with_book_title: Join BOOK_INFO to fill Lookup.book_title

        Returns:
            List of Lookup records
        """
        conn = self._require_connection()
        sql = _SELECT_LOOKUPS_WITH_BOOK if with_book_title else _SELECT_LOOKUPS
        rows = await self._fetch_all(conn, sql, ())

        logger.debug("lookups.listed", count=len(rows), with_book_title=with_book_title)
        return [_row_to_lookup(row) for row in rows]

    async def list_lookups_for_book(self, book_id: str) -> list[Lookup]:
        """Return lookups of one book ordered by timestamp (ascending).

        Args:
            book_id: BOOK_INFO id. Could be found as Book.id

        Returns:
            List of Lookup records, empty if the book is unknown
        """
        conn = self._require_connection()
        rows = await self._fetch_all(conn, _SELECT_LOOKUPS_FOR_BOOK, (book_id,))

        logger.debug("lookups.listed_for_book", book_id=book_id, count=len(rows))
        return [_row_to_lookup(row) for row in rows]

    async def list_all_books(self) -> list[Book]:
        """Return books, one per asin."""
        conn = self._require_connection()
        rows = await self._fetch_all(conn, _SELECT_BOOKS, ())

        logger.debug("books.listed", count=len(rows))
        return [_row_to_book(row) for row in rows]

    # -------------------------------------------------------------------------
    # Deletes
    # -------------------------------------------------------------------------

    async def delete_book_cascade(self, book_id: str) -> dict[str, int]:
        """Delete a book together with its words and lookups.

        Runs three statements in order: words referenced by the book's
        lookups, the book's lookups, the BOOK_INFO row. Words go first
        because their selection reads LOOKUPS. The steps are not atomic.

        Args:
            book_id: BOOK_INFO id

        Returns:
            Rows deleted per step ("words", "lookups", "book")

        Raises:
            CascadeDeleteError: If a step fails. Earlier steps stay committed.
        """
        self._require_connection()

        steps = (
            ("words", self.delete_words_for_book),
            ("lookups", self.delete_lookups_for_book),
            ("book", self.delete_book_by_id),
        )
        deleted: dict[str, int] = {}
        for step, operation in steps:
            try:
                deleted[step] = await operation(book_id)
            except QueryError as e:
                logger.error(
                    "books.cascade_failed",
                    book_id=book_id,
                    step=step,
                    completed=list(deleted),
                    error=str(e),
                )
                raise CascadeDeleteError(book_id, step, list(deleted)) from e

        logger.info("books.cascade_deleted", book_id=book_id, **deleted)
        return deleted

    async def delete_words_for_book(self, book_id: str) -> int:
        """Delete every word referenced by a lookup of the given book.

        Returns:
            Number of WORDS rows deleted
        """
        conn = self._require_connection()
        return await self._execute(conn, _DELETE_WORDS_FOR_BOOK, (book_id,), "words.deleted_for_book")

    async def delete_all_words(self) -> int:
        conn = self._require_connection()
        return await self._execute(conn, "DELETE FROM WORDS", (), "words.deleted_all")

    async def delete_all_books(self) -> int:
        conn = self._require_connection()
        return await self._execute(conn, "DELETE FROM BOOK_INFO", (), "books.deleted_all")

    async def delete_book_by_id(self, book_id: str) -> int:
        """Delete a single BOOK_INFO row. Unknown ids delete nothing."""
        conn = self._require_connection()
        return await self._execute(
            conn, "DELETE FROM BOOK_INFO WHERE BOOK_INFO.id = ?", (book_id,), "books.deleted"
        )

    async def delete_all_lookups(self) -> int:
        conn = self._require_connection()
        return await self._execute(conn, "DELETE FROM LOOKUPS", (), "lookups.deleted_all")

    async def delete_lookup_by_id(self, lookup_id: str) -> int:
        """Delete a single LOOKUPS row. Unknown ids delete nothing."""
        conn = self._require_connection()
        return await self._execute(
            conn, "DELETE FROM LOOKUPS WHERE LOOKUPS.id = ?", (lookup_id,), "lookups.deleted"
        )

    async def delete_lookups_for_book(self, book_id: str) -> int:
        """Delete every lookup that references the given book."""
        conn = self._require_connection()
        return await self._execute(
            conn,
            "DELETE FROM LOOKUPS WHERE LOOKUPS.book_key = ?",
            (book_id,),
            "lookups.deleted_for_book",
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._initialized or self._conn is None:
            raise NotInitializedError()
        return self._conn

    async def _fetch_all(
        self, conn: aiosqlite.Connection, sql: str, params: tuple[Any, ...]
    ) -> list[aiosqlite.Row]:
        try:
            async with conn.execute(sql, params) as cursor:
                return list(await cursor.fetchall())
        except sqlite3.Error as e:
            logger.error("vocab_store.query_failed", error=str(e))
            raise QueryError(str(e)) from e

    async def _execute(
        self,
        conn: aiosqlite.Connection,
        sql: str,
        params: tuple[Any, ...],
        event: str,
    ) -> int:
        try:
            async with conn.execute(sql, params) as cursor:
                deleted = cursor.rowcount
        except sqlite3.Error as e:
            logger.error("vocab_store.statement_failed", operation=event, error=str(e))
            raise QueryError(str(e)) from e

        logger.debug(event, params=params, rowcount=deleted)
        return deleted


def _row_to_lookup(row: aiosqlite.Row) -> Lookup:
    """Convert a joined LOOKUPS/WORDS row to Lookup."""
    return Lookup(
        id=str(row["id"]),
        word_key=str(row["word_key"]),
        book_key=str(row["book_key"]) if row["book_key"] is not None else "",
        usage=row["usage"] or "",
        timestamp=int(row["timestamp"] or 0),
        word=row["word"] or "",
        stem=row["stem"] or "",
        book_title=row["book_title"],
    )


def _row_to_book(row: aiosqlite.Row) -> Book:
    """Convert a BOOK_INFO row to Book."""
    return Book(
        id=str(row["id"]),
        title=row["title"] or "",
        lang=row["lang"] or "",
        authors=row["authors"] or "",
        asin=row["asin"],
    )
