"""
Key/value storage backends for Tapestry.

Available backends:
- SQLiteStorageBackend: Durable local storage (aiosqlite)
- InMemoryStorageBackend: Process-local storage for tests and embedding
"""

from tapestry.core.storage.base import StorageBackend
from tapestry.core.storage.memory_backend import InMemoryStorageBackend
from tapestry.core.storage.sqlite_backend import SQLiteStorageBackend

__all__ = [
    "StorageBackend",
    "InMemoryStorageBackend",
    "SQLiteStorageBackend",
]
