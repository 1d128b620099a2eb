"""
Factory for creating storage backends.
"""

from tapestry.config import StorageConfig
from tapestry.core.storage.base import StorageBackend
from tapestry.core.storage.memory_backend import InMemoryStorageBackend
from tapestry.core.storage.sqlite_backend import SQLiteStorageBackend
from tapestry.utils.exceptions import ConfigurationError


class StorageFactory:
    """Factory for creating storage backends from configuration."""

    @staticmethod
    def create(config: StorageConfig) -> StorageBackend:
        """
        Create storage backend from configuration.

        Args:
            config: Storage configuration

        Returns:
            Storage backend instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "sqlite":
            return SQLiteStorageBackend(db_path=config.db_path, quota_bytes=config.quota_bytes)
        elif config.backend == "memory":
            return InMemoryStorageBackend(quota_bytes=config.quota_bytes)
        else:
            raise ConfigurationError(f"Unsupported storage backend: {config.backend}")
