"""
Import Reconciler - decides what an external file means for the local store.

Pipeline:
1. Parse bytes into one of two accepted shapes:
   - envelope ``{"metadata": {...}, "data": {...}}`` (canonical export)
   - bare payload carrying ``elements`` and/or ``relationships`` lists
2. Normalize the payload and hash it
3. Decide:
   - unknown ID (or no ID): register as a new model with a unique name
   - known ID, same hash: no-op re-open
   - known ID, different hash: Conflict, nothing written

Every call returns exactly one of Loaded, Conflict or Failed.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tapestry.core.hasher import compute_content_hash
from tapestry.core.model_store.model_store import ModelStore
from tapestry.core.model_store.registry import ModelRegistry
from tapestry.models.metadata import ModelMetadata
from tapestry.models.model_data import ModelData
from tapestry.models.results import Conflict, Failed, ImportOutcome, Loaded
from tapestry.utils.exceptions import MalformedImport, StoreError
from tapestry.utils.id_generator import dedupe_name, generate_model_id
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_IMPORT_NAME = "Imported Model"


class ParsedImport(BaseModel):
    """A recognized, normalized import before any decision is made."""

    declared_id: str | None = None
    metadata: ModelMetadata
    data: ModelData
    content_hash: str


class ImportReconciler:
    """
    Reconciles external files against the registry and store.

    Only writes for outcomes that need no user decision (new model,
    identical re-open). Conflicts are returned untouched.
    """

    def __init__(self, registry: ModelRegistry, store: ModelStore):
        """
        Args:
            registry: Model registry (for ID and name lookups)
            store: Model store (for local payloads)
        """
        self.registry = registry
        self.store = store

    def parse(self, raw: bytes | str, filename: str | None = None) -> ParsedImport:
        """
        Parse and normalize external bytes.

        Args:
            raw: File contents
            filename: Name of the file the bytes came from, if known

        Returns:
            ParsedImport with normalized payload, incoming metadata and hash

        Raises:
            MalformedImport: If the shape is not recognized
        """
        try:
            text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
            imported = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedImport(f"File is not valid JSON: {e}", context={"filename": filename}) from e

        if not isinstance(imported, dict):
            raise MalformedImport(
                "Invalid file format. JSON structure not recognized.",
                context={"filename": filename},
            )

        raw_metadata: dict[str, Any]
        if isinstance(imported.get("metadata"), dict) and isinstance(imported.get("data"), dict):
            raw_metadata = imported["metadata"]
            raw_data = imported["data"]
        elif isinstance(imported.get("elements"), list) or isinstance(
            imported.get("relationships"), list
        ):
            raw_metadata = {}
            raw_data = imported
        else:
            raise MalformedImport(
                "Invalid file format. JSON structure not recognized.",
                context={"filename": filename},
            )

        try:
            data = ModelData.model_validate(raw_data)
            content_hash = compute_content_hash(data)
            now = datetime.now()
            metadata = ModelMetadata.model_validate(
                {
                    **raw_metadata,
                    "id": raw_metadata.get("id") or generate_model_id(),
                    "name": raw_metadata.get("name") or DEFAULT_IMPORT_NAME,
                    "description": raw_metadata.get("description") or "",
                    "createdAt": raw_metadata.get("createdAt") or now,
                    "updatedAt": raw_metadata.get("updatedAt") or now,
                    "filename": filename or raw_metadata.get("filename"),
                    "contentHash": content_hash,
                    "lastDiskHash": content_hash,
                }
            )
        except PydanticValidationError as e:
            raise MalformedImport(
                f"Invalid file contents: {e.error_count()} validation error(s)",
                context={"filename": filename, "errors": e.errors(include_url=False)},
            ) from e

        return ParsedImport(
            declared_id=metadata.id if raw_metadata.get("id") else None,
            metadata=metadata,
            data=data,
            content_hash=content_hash,
        )

    async def reconcile(self, raw: bytes | str, filename: str | None = None) -> ImportOutcome:
        """
        Parse an external file and decide its outcome.

        Args:
            raw: File contents
            filename: Name of the file the bytes came from, if known

        Returns:
            Loaded (new model or identical re-open), Conflict (same ID,
            different content; nothing written) or Failed (nothing mutated)
        """
        try:
            parsed = self.parse(raw, filename)
        except MalformedImport as e:
            logger.warning(f"Import rejected: {e.message}")
            return Failed(error_type=type(e).__name__, message=e.message)

        try:
            if parsed.declared_id and self.registry.contains(parsed.declared_id):
                return await self._reconcile_existing(parsed, filename)
            return await self._register_new(parsed)
        except StoreError as e:
            logger.error(f"Import failed while writing: {e.message}")
            return Failed(error_type=type(e).__name__, message=e.message)

    async def _reconcile_existing(self, parsed: ParsedImport, filename: str | None) -> ImportOutcome:
        model_id = parsed.declared_id
        local_metadata = self.registry.get(model_id)
        local_data = await self.store.load(model_id)

        if local_data is None:
            # Registered but no payload: nothing local to conflict with
            logger.warning(f"Model {model_id} has no stored payload; adopting imported file")
            await self.store.save(model_id, parsed.data)
            metadata = await self.registry.upsert(parsed.metadata)
            return Loaded(metadata=metadata, data=parsed.data)

        local_hash = compute_content_hash(local_data)
        if local_hash == parsed.content_hash:
            logger.info(f"Import of {model_id} matches local copy; re-opening")
            reopened = local_metadata.model_copy(
                update={
                    "content_hash": local_hash,
                    "last_disk_hash": local_hash,
                    "filename": filename or local_metadata.filename,
                }
            )
            metadata = await self.registry.upsert(reopened)
            return Loaded(metadata=metadata, data=local_data)

        logger.bind(local_hash=local_hash, incoming_hash=parsed.content_hash).info(
            f"Import conflict for model {model_id}"
        )
        return Conflict(
            local_metadata=local_metadata,
            incoming_metadata=parsed.metadata,
            local_data=local_data,
            incoming_data=parsed.data,
        )

    async def _register_new(self, parsed: ParsedImport) -> Loaded:
        name = dedupe_name(parsed.metadata.name, self.registry.names())
        metadata = parsed.metadata.model_copy(update={"name": name})

        await self.store.save(metadata.id, parsed.data)
        metadata = await self.registry.upsert(metadata)
        logger.info(f"Imported new model {metadata.id} as '{name}'")
        return Loaded(metadata=metadata, data=parsed.data, is_new=True)
