"""
Persistence session state.

Everything the engine needs to remember between calls lives here instead of
in module-level globals: the load lifecycle, the active model, the file
handle retained for it, and a pending import conflict.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import Enum

from tapestry.core.file_bridge.base import FileHandle
from tapestry.models.results import Conflict
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class Lifecycle(str, Enum):
    """Load lifecycle gating autosave."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class PersistenceSession:
    """Mutable session owned by one PersistenceEngine."""

    def __init__(self):
        self.lifecycle = Lifecycle.UNINITIALIZED
        self.active_model_id: str | None = None
        self.retained_file_handle: FileHandle | None = None
        self.retained_handle_model_id: str | None = None
        self.pending_conflict: Conflict | None = None
        self.pending_conflict_handle: FileHandle | None = None
        self.schema_changes: list[str] = []
        self._commit_locks: dict[str, asyncio.Lock] = {}

    @property
    def is_ready(self) -> bool:
        return self.lifecycle == Lifecycle.READY

    @asynccontextmanager
    async def loading(self) -> AsyncIterator[None]:
        """
        Hold the LOADING state for the duration of a load/import/migration.

        Nested use keeps the outer block in charge of the final transition.
        """
        if self.lifecycle == Lifecycle.LOADING:
            yield
            return

        self.lifecycle = Lifecycle.LOADING
        try:
            yield
        finally:
            self.lifecycle = Lifecycle.READY

    def handle_for(self, model_id: str) -> FileHandle | None:
        """The retained handle, if it belongs to ``model_id``."""
        if self.retained_handle_model_id == model_id:
            return self.retained_file_handle
        return None

    def retain_handle(self, model_id: str, handle: FileHandle) -> None:
        self.retained_file_handle = handle
        self.retained_handle_model_id = model_id
        logger.debug(f"Retained file handle {handle.name} for model {model_id}")

    def clear_handle(self) -> None:
        self.retained_file_handle = None
        self.retained_handle_model_id = None

    def set_pending_conflict(self, conflict: Conflict, handle: FileHandle | None = None) -> None:
        self.pending_conflict = conflict
        self.pending_conflict_handle = handle

    def clear_pending_conflict(self) -> None:
        self.pending_conflict = None
        self.pending_conflict_handle = None

    def commit_lock(self, model_id: str) -> asyncio.Lock:
        """Lock held while a payload and its registry record are written together."""
        return self._commit_locks.setdefault(model_id, asyncio.Lock())
