"""
Model Store: full payload persistence keyed by model ID.
"""

import json

from pydantic import ValidationError as PydanticValidationError

from tapestry.core.storage.base import StorageBackend
from tapestry.models.model_data import ModelData
from tapestry.utils.exceptions import StoreError
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)

MODEL_DATA_PREFIX = "tapestry_model_data_"


class ModelStore:
    """
    Persists one payload blob per model.

    ``save`` is idempotent; deciding *when* to save (and skipping redundant
    writes) is the autosave controller's job.
    """

    def __init__(self, backend: StorageBackend):
        """
        Args:
            backend: Key/value medium
        """
        self.backend = backend

    @staticmethod
    def key_for(model_id: str) -> str:
        return f"{MODEL_DATA_PREFIX}{model_id}"

    async def load(self, model_id: str) -> ModelData | None:
        """
        Load a model payload.

        Args:
            model_id: Model identifier

        Returns:
            Normalized payload, or None if nothing is stored for this ID

        Raises:
            StoreError: If the stored blob cannot be decoded
        """
        raw = await self.backend.get(self.key_for(model_id))
        if raw is None:
            return None
        try:
            return ModelData.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise StoreError(
                f"Stored payload for model {model_id} is unreadable: {e}",
                context={"model_id": model_id},
            ) from e

    async def save(self, model_id: str, data: ModelData) -> None:
        """
        Commit a payload.

        Raises:
            StorageWriteFailure: If the medium rejects the write; the
                previously committed payload is untouched.
        """
        await self.backend.set(self.key_for(model_id), json.dumps(data.to_json_dict()))
        logger.debug(f"Saved payload for model {model_id}")

    async def exists(self, model_id: str) -> bool:
        return await self.backend.get(self.key_for(model_id)) is not None

    async def model_ids(self) -> list[str]:
        """IDs of every stored payload."""
        keys = await self.backend.keys(MODEL_DATA_PREFIX)
        return [key[len(MODEL_DATA_PREFIX) :] for key in keys]
