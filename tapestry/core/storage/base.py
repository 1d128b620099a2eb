"""
Base interface for the local key/value medium.

The Model Store and Model Registry lay out three logical namespaces on top
of it: the registry blob, one payload blob per model, and the last-opened
pointer.
"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract base class for key/value storage implementations."""

    def __init__(self, quota_bytes: int | None = None):
        """
        Args:
            quota_bytes: Maximum total size of stored values (None = unlimited)
        """
        self.quota_bytes = quota_bytes

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the medium (create tables/schema)."""
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: Serialized value

        Raises:
            StorageWriteFailure: If the medium rejects the write. The previous
                value for ``key`` is left intact.
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key if present."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with ``prefix``."""
        pass

    @abstractmethod
    async def usage_bytes(self) -> int:
        """Total size of stored values in bytes."""
        pass

    async def close(self) -> None:
        """Release resources."""
        pass

    def _would_exceed_quota(self, current_total: int, old_size: int, new_size: int) -> bool:
        if self.quota_bytes is None:
            return False
        return current_total - old_size + new_size > self.quota_bytes
