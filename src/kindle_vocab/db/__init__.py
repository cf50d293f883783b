"""Database module for the Kindle vocab.db store.

Provides:
- Connection management (database)
- VocabStore with read/delete operations over WORDS, LOOKUPS and BOOK_INFO
"""

from kindle_vocab.db.database import DEFAULT_DB_PATH, open_connection
from kindle_vocab.db.vocab_store import (
    Book,
    CascadeDeleteError,
    Lookup,
    NotInitializedError,
    OpenError,
    QueryError,
    VocabStore,
    VocabStoreError,
)

__all__ = [
    "DEFAULT_DB_PATH",
    "open_connection",
    "Book",
    "CascadeDeleteError",
    "Lookup",
    "NotInitializedError",
    "OpenError",
    "QueryError",
    "VocabStore",
    "VocabStoreError",
]
