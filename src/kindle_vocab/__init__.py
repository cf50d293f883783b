"""Read/delete access to the Kindle vocabulary database (vocab.db)."""

from kindle_vocab.db.vocab_store import Book, Lookup, VocabStore

__all__ = ["Book", "Lookup", "VocabStore"]

__version__ = "0.1.0"
