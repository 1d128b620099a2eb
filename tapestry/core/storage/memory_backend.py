"""
In-process storage backend.

Useful for tests and for hosts that persist elsewhere. Honors the same
quota semantics as the SQLite backend.
"""

from tapestry.core.storage.base import StorageBackend
from tapestry.utils.exceptions import StorageWriteFailure


class InMemoryStorageBackend(StorageBackend):
    """Dictionary-backed key/value store."""

    def __init__(self, quota_bytes: int | None = None):
        super().__init__(quota_bytes=quota_bytes)
        self.values: dict[str, str] = {}
        self.write_count = 0

    async def initialize(self) -> None:
        pass

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        old_size = len(self.values.get(key, "").encode("utf-8"))
        new_size = len(value.encode("utf-8"))
        if self._would_exceed_quota(await self.usage_bytes(), old_size, new_size):
            raise StorageWriteFailure(
                f"Storage quota exceeded writing '{key}'",
                context={"key": key, "quota_bytes": self.quota_bytes, "size": new_size},
            )
        self.values[key] = value
        self.write_count += 1

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self.values if k.startswith(prefix))

    async def usage_bytes(self) -> int:
        return sum(len(v.encode("utf-8")) for v in self.values.values())
