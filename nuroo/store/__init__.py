"""Remote document store - child profiles, tasks and daily task sets

Components:
    base.py: async DocumentStore interface
    sqlite_store.py: SQLite implementation used on a single device and in tests
"""

from nuroo.store.base import DocumentStore
from nuroo.store.sqlite_store import SQLiteDocumentStore

__all__ = ["DocumentStore", "SQLiteDocumentStore"]
