"""
Model Registry: the ordered listing of every known model.

Stored as a single blob separate from payloads so listing models never
requires loading them. The "last opened" pointer lives under its own key.
"""

import asyncio
import json
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tapestry.core.storage.base import StorageBackend
from tapestry.models.metadata import ModelMetadata
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)

MODELS_INDEX_KEY = "tapestry_models_index"
LAST_OPENED_MODEL_ID_KEY = "tapestry_last_opened_model_id"

_metadata_list = TypeAdapter(list[ModelMetadata])


class ModelRegistry:
    """
    Single source of truth for which models exist.

    The in-memory list changes only after the backend accepted the write,
    so a rejected upsert leaves both the medium and the listing as they were.
    Writers are serialized, so overlapping upserts never drop each other.
    """

    def __init__(self, backend: StorageBackend):
        """
        Args:
            backend: Key/value medium
        """
        self.backend = backend
        self._entries: list[ModelMetadata] = []
        # Serializes read-copy-persist-swap of the entry list
        self._lock = asyncio.Lock()

    async def load(self) -> list[ModelMetadata]:
        """
        Read the registry blob.

        A corrupt blob is logged and treated as an empty registry.

        Returns:
            Registered models in insertion order
        """
        raw = await self.backend.get(MODELS_INDEX_KEY)
        if raw is None:
            self._entries = []
        else:
            try:
                self._entries = _metadata_list.validate_python(json.loads(raw))
            except (json.JSONDecodeError, PydanticValidationError) as e:
                logger.error(f"Failed to load models index: {e}")
                self._entries = []
        logger.info(f"Loaded registry with {len(self._entries)} model(s)")
        return self.list_models()

    def list_models(self) -> list[ModelMetadata]:
        """Copies of every registry entry, in order."""
        return [entry.model_copy() for entry in self._entries]

    def get(self, model_id: str) -> ModelMetadata | None:
        for entry in self._entries:
            if entry.id == model_id:
                return entry.model_copy()
        return None

    def contains(self, model_id: str) -> bool:
        return any(entry.id == model_id for entry in self._entries)

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def find_by_name(self, name: str) -> ModelMetadata | None:
        for entry in self._entries:
            if entry.name == name:
                return entry.model_copy()
        return None

    async def upsert(self, metadata: ModelMetadata) -> ModelMetadata:
        """
        Replace the entry with the same ID, or append a new one.

        Fields explicitly set on ``metadata`` overwrite the stored record;
        fields it leaves unset keep their stored values.

        Args:
            metadata: Record to store

        Returns:
            The stored record

        Raises:
            StorageWriteFailure: If the registry blob cannot be written
        """
        async with self._lock:
            updated = list(self._entries)
            for i, entry in enumerate(updated):
                if entry.id == metadata.id:
                    metadata = entry.model_copy(update=metadata.model_dump(exclude_unset=True))
                    updated[i] = metadata
                    break
            else:
                updated.append(metadata.model_copy())

            await self._persist(updated)
            self._entries = updated
            return metadata.model_copy()

    async def update(self, model_id: str, **changes: Any) -> ModelMetadata | None:
        """
        Change selected fields of a registered model.

        The fields are applied to the record as stored when the write
        happens, so concurrent updates of other fields are kept.

        Returns:
            The stored record, or None if ``model_id`` is not registered

        Raises:
            StorageWriteFailure: If the registry blob cannot be written
        """
        async with self._lock:
            updated = list(self._entries)
            for i, entry in enumerate(updated):
                if entry.id == model_id:
                    updated[i] = entry.model_copy(update=changes)
                    break
            else:
                return None

            await self._persist(updated)
            self._entries = updated
            return updated[i].model_copy()

    async def set_last_opened(self, model_id: str) -> None:
        await self.backend.set(LAST_OPENED_MODEL_ID_KEY, model_id)

    async def get_last_opened(self) -> str | None:
        return await self.backend.get(LAST_OPENED_MODEL_ID_KEY)

    async def _persist(self, entries: list[ModelMetadata]) -> None:
        payload = json.dumps([entry.to_json_dict() for entry in entries])
        await self.backend.set(MODELS_INDEX_KEY, payload)
