"""Storage backends for companion memory."""

from .sqlite_store import SERVER_TIMESTAMP, IfMissing, Increment, SQLiteDocumentStore, WriteBatch

__all__ = ["SERVER_TIMESTAMP", "IfMissing", "Increment", "SQLiteDocumentStore", "WriteBatch"]
