"""Pytest configuration for phased testing and shared vocab.db fixtures.

Tests are organized by phase (f1, f2, ...).
Future phase tests are automatically skipped.
"""

import sqlite3
from pathlib import Path

import pytest

# Current implementation phase
CURRENT_PHASE = 2

# Kindle vocab.db schema (as written by the device)
KINDLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS WORDS (
    id TEXT PRIMARY KEY NOT NULL,
    word TEXT,
    stem TEXT,
    lang TEXT,
    category INTEGER DEFAULT 0,
    timestamp INTEGER DEFAULT 0,
    profileid TEXT
);
CREATE TABLE IF NOT EXISTS LOOKUPS (
    id TEXT PRIMARY KEY NOT NULL,
    word_key TEXT,
    book_key TEXT,
    dict_key TEXT,
    pos TEXT,
    usage TEXT,
    timestamp INTEGER DEFAULT 0
);
CREATE TABLE IF NOT EXISTS BOOK_INFO (
    id TEXT PRIMARY KEY NOT NULL,
    asin TEXT,
    guid TEXT,
    lang TEXT,
    title TEXT,
    authors TEXT
);
"""

# (id, word, stem)
WORDS = [
    ("en:ephemeral", "ephemeral", "ephemeral"),
    ("en:serendipity", "serendipity", "serendipity"),
    ("en:obsequious", "obsequious", "obsequious"),
    ("en:running", "running", "run"),
]

# (id, asin, lang, title, authors)
BOOKS = [
    ("gatsby-1", "B000FC0PDA", "en", "The Great Gatsby", "F. Scott Fitzgerald"),
    ("orwell-1", "B003JTHWKU", "en", "1984", "George Orwell"),
    # Second row for the same asin (e.g. a sample download)
    ("gatsby-2", "B000FC0PDA", "en", "The Great Gatsby", "F. Scott Fitzgerald"),
]

# (id, word_key, book_key, usage, timestamp)
LOOKUPS = [
    ("gatsby-1:100", "en:ephemeral", "gatsby-1", "The ephemeral glow of the party.", 1700000300000),
    ("gatsby-1:200", "en:serendipity", "gatsby-1", "It was pure serendipity that we met.", 1700000100000),
    ("orwell-1:300", "en:obsequious", "orwell-1", "His obsequious smile never faded.", 1700000200000),
    ("orwell-1:400", "en:running", "orwell-1", "They were running out of time.", 1700000400000),
]


def create_vocab_db(db_path: Path) -> Path:
    """Create an empty, schema-valid vocab.db."""
    conn = sqlite3.connect(db_path)
    conn.executescript(KINDLE_SCHEMA)
    conn.commit()
    conn.close()
    return db_path


def insert_rows(
    db_path: Path,
    words: list[tuple] = (),
    books: list[tuple] = (),
    lookups: list[tuple] = (),
) -> None:
    """Insert test rows directly with sqlite3."""
    conn = sqlite3.connect(db_path)
    conn.executemany("INSERT INTO WORDS (id, word, stem) VALUES (?, ?, ?)", words)
    conn.executemany(
        "INSERT INTO BOOK_INFO (id, asin, lang, title, authors) VALUES (?, ?, ?, ?, ?)",
        books,
    )
    conn.executemany(
        "INSERT INTO LOOKUPS (id, word_key, book_key, usage, timestamp) VALUES (?, ?, ?, ?, ?)",
        lookups,
    )
    conn.commit()
    conn.close()


def count_rows(db_path: Path, table: str) -> int:
    conn = sqlite3.connect(db_path)
    count = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    conn.close()
    return count


@pytest.fixture
def insert():
    """Direct row insertion for test setup."""
    return insert_rows


@pytest.fixture
def row_count():
    return count_rows


@pytest.fixture
def empty_db(tmp_path) -> Path:
    """Schema-valid vocab.db without rows."""
    return create_vocab_db(tmp_path / "vocab.db")


@pytest.fixture
def populated_db(empty_db) -> Path:
    """vocab.db with two books (plus a duplicate asin row) and four lookups."""
    insert_rows(empty_db, words=WORDS, books=BOOKS, lookups=LOOKUPS)
    return empty_db


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases that haven't been implemented yet."""
    for item in items:
        # Extract phase from path (tests/f2/... -> 2)
        parts = item.fspath.strpath.split("/")
        for part in parts:
            if part.startswith("f") and part[1:].isdigit():
                test_phase = int(part[1:])
                if test_phase > CURRENT_PHASE:
                    item.add_marker(
                        pytest.mark.skip(
                            reason=f"Phase F{test_phase} not yet implemented (current: F{CURRENT_PHASE})"
                        )
                    )
                break
