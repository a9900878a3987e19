"""In-memory transaction store."""

from fintrack.store.entry_store import EntryStore

__all__ = ["EntryStore"]
