"""
Persistence Engine - the single entry point a host UI talks to.

Brings together:
- Model Registry & Model Store (local persistence)
- Schema Migrator (taxonomy upgrades on every load)
- Import Reconciler (external files in)
- File Bridge (external files out)
- Autosave Controller (hash-gated commits)

The engine never mutates the working copy when a store or file write fails;
store-side writes always happen before the working copy is replaced.
"""

import asyncio
from datetime import datetime
from pathlib import Path

from tapestry.config import Config
from tapestry.core.defaults import default_scheme_id, merge_system_prompt_config, new_model_data
from tapestry.core.factory import FileBridgeFactory, StorageFactory
from tapestry.core.file_bridge.base import FileBridge, FileHandle, FilePicker
from tapestry.core.hasher import compute_content_hash
from tapestry.core.migration.migrator import SchemaMigrator
from tapestry.core.model_store.model_store import ModelStore
from tapestry.core.model_store.registry import ModelRegistry
from tapestry.core.storage.base import StorageBackend
from tapestry.models.metadata import ModelMetadata
from tapestry.models.model_data import ModelData
from tapestry.models.results import (
    Conflict,
    ConflictResolution,
    Failed,
    ImportOutcome,
    Loaded,
    SaveOutcome,
    SaveStatus,
)
from tapestry.services.autosave import AutosaveController
from tapestry.services.import_reconciler import ImportReconciler
from tapestry.services.session import PersistenceSession
from tapestry.services.working_copy import WorkingCopyProvider
from tapestry.utils.exceptions import (
    ConflictPendingError,
    NotFoundError,
    PickerCancelled,
    StorageWriteFailure,
    ValidationError,
)
from tapestry.utils.id_generator import generate_model_id, suggest_filename
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class PersistenceEngine:
    """
    Local-first model persistence and synchronization.

    Features:
    - Create, open, save-as and export models
    - Import external files with explicit conflict surfacing
    - Additive taxonomy migration on load
    - Autosave gated by lifecycle and content hash
    - Serialized disk saves per model
    - Pending edits of the open model are committed before another model
      replaces it (create, open, import, save-as, conflict resolution)
    """

    def __init__(
        self,
        backend: StorageBackend,
        file_bridge: FileBridge,
        working_copy: WorkingCopyProvider,
        migrator: SchemaMigrator | None = None,
        autosave_enabled: bool = True,
    ):
        """
        Initialize Persistence Engine.

        Args:
            backend: Key/value medium for registry and payloads
            file_bridge: External file writer/reader
            working_copy: Snapshot provider and setter for the live model
            migrator: Taxonomy migrator (defaults to the built-in catalog)
            autosave_enabled: Whether autosave() commits at all
        """
        self.backend = backend
        self.file_bridge = file_bridge
        self.working_copy = working_copy
        self.migrator = migrator or SchemaMigrator()

        self.session = PersistenceSession()
        self.registry = ModelRegistry(backend)
        self.store = ModelStore(backend)
        self.reconciler = ImportReconciler(registry=self.registry, store=self.store)
        self.autosave_controller = AutosaveController(
            registry=self.registry,
            store=self.store,
            session=self.session,
            working_copy=working_copy,
            enabled=autosave_enabled,
        )

        self._save_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_config(
        cls,
        config: Config,
        working_copy: WorkingCopyProvider,
        picker: FilePicker | None = None,
    ) -> "PersistenceEngine":
        """
        Build an engine from configuration.

        Args:
            config: Main configuration object
            working_copy: Snapshot provider for the live model
            picker: Host file picker, if the host has one

        Returns:
            PersistenceEngine (call initialize() before use)
        """
        return cls(
            backend=StorageFactory.create(config.storage),
            file_bridge=FileBridgeFactory.create(config.file_bridge, picker=picker),
            working_copy=working_copy,
            autosave_enabled=config.autosave.enabled,
        )

    # ═══════════════════════════════════════════════════════════
    # LIFECYCLE
    # ═══════════════════════════════════════════════════════════

    async def initialize(self) -> None:
        """Load the registry and reopen the last opened model."""
        logger.info("Initializing Persistence Engine")
        await self.backend.initialize()

        async with self.session.loading():
            await self.registry.load()
            last_opened = await self.registry.get_last_opened()
            if last_opened and self.registry.contains(last_opened):
                data = await self.store.load(last_opened)
                if data is not None:
                    self.session.clear_handle()
                    await self._hydrate(last_opened, data)
                    logger.info(f"Reopened last model {last_opened}")

        logger.info("Persistence Engine ready")

    async def close(self) -> None:
        """Release the storage backend."""
        await self.backend.close()

    # ═══════════════════════════════════════════════════════════
    # MODEL OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def create_model(self, name: str, description: str = "") -> ModelMetadata:
        """
        Create and open a new, empty model.

        Args:
            name: Display name
            description: Optional description

        Returns:
            Metadata of the new model

        Raises:
            ValidationError: If name is empty
            StorageWriteFailure: If the store rejects the new model
        """
        if not name or not name.strip():
            raise ValidationError("Model name cannot be empty")

        data = new_model_data()
        now = datetime.now()
        metadata = ModelMetadata(
            id=generate_model_id(),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
            filename=suggest_filename(name),
            content_hash=compute_content_hash(data),
        )

        await self._commit_outgoing()
        async with self.session.loading():
            await self.store.save(metadata.id, data)
            metadata = await self.registry.upsert(metadata)
            self.session.clear_handle()
            await self._hydrate(metadata.id, data)

        logger.info(f"Created model {metadata.id} '{name}'")
        return metadata

    async def load_model(self, model_id: str) -> Loaded:
        """
        Open a locally stored model.

        Raises:
            NotFoundError: If the model or its payload doesn't exist
            StorageWriteFailure: If the outgoing model's edits cannot be committed
        """
        await self._commit_outgoing()
        metadata = self.registry.get(model_id)
        if metadata is None:
            raise NotFoundError(f"Model not found: {model_id}", context={"model_id": model_id})

        data = await self.store.load(model_id)
        if data is None:
            raise NotFoundError(
                f"No stored data for model: {model_id}", context={"model_id": model_id}
            )

        async with self.session.loading():
            self.session.clear_handle()
            await self._hydrate(model_id, data)

        return Loaded(metadata=metadata, data=data)

    async def autosave(self) -> bool:
        """Commit the working copy if it changed since the last commit."""
        return await self.autosave_controller.run()

    async def disk_save(self) -> SaveOutcome:
        """
        Write the active model to its external file.

        Concurrent saves of the same model are queued, never interleaved.

        Returns:
            SaveOutcome (saved, or cancelled if the user dismissed the picker)

        Raises:
            NotFoundError: If no model is active
            StorageWriteFailure: If the file or store write failed
        """
        model_id = self._require_active_model()
        lock = self._save_locks.setdefault(model_id, asyncio.Lock())

        async with lock:
            metadata = self.registry.get(model_id)
            if metadata is None:
                raise NotFoundError("Could not find model metadata to save.")

            data = self.working_copy.get_working_copy()
            digest = compute_content_hash(data)
            updated = metadata.model_copy(
                update={
                    "updated_at": datetime.now(),
                    "filename": metadata.suggested_filename,
                    "content_hash": digest,
                    "last_disk_hash": digest,
                }
            )

            try:
                receipt = await self.file_bridge.write(
                    updated, data, handle=self.session.handle_for(model_id)
                )
            except PickerCancelled:
                logger.info(f"Disk save of {model_id} cancelled")
                return SaveOutcome(status=SaveStatus.CANCELLED, model_id=model_id)

            if receipt.handle is not None and self.file_bridge.retains_handles:
                self.session.retain_handle(model_id, receipt.handle)

            async with self.session.commit_lock(model_id):
                await self.store.save(model_id, data)
                await self.registry.update(
                    model_id,
                    updated_at=updated.updated_at,
                    filename=receipt.filename,
                    content_hash=digest,
                    last_disk_hash=digest,
                )

            logger.info(f"Saved model {model_id} to disk as {receipt.filename}")
            return SaveOutcome(
                status=SaveStatus.SAVED,
                model_id=model_id,
                digest=receipt.digest,
                filename=receipt.filename,
            )

    async def save_as(self, name: str, description: str = "") -> ModelMetadata:
        """
        Clone the working copy into a new model and make it active.

        Raises:
            NotFoundError: If no model is active
            StorageWriteFailure: If the store rejects the copy
        """
        self._require_active_model()
        if not name or not name.strip():
            raise ValidationError("Model name cannot be empty")

        await self._commit_outgoing()
        data = self.working_copy.get_working_copy()
        now = datetime.now()
        metadata = ModelMetadata(
            id=generate_model_id(),
            name=name,
            description=description,
            created_at=now,
            updated_at=now,
            filename=suggest_filename(name),
            content_hash=compute_content_hash(data),
        )

        try:
            await self.store.save(metadata.id, data)
            metadata = await self.registry.upsert(metadata)
        except StorageWriteFailure as e:
            logger.error(f"Save As failed: {e.message}")
            raise

        self.session.active_model_id = metadata.id
        self.session.clear_handle()
        await self._remember_last_opened(metadata.id)
        logger.info(f"Saved copy as model {metadata.id} '{name}'")
        return metadata

    # ═══════════════════════════════════════════════════════════
    # IMPORT & CONFLICTS
    # ═══════════════════════════════════════════════════════════

    async def import_file(
        self,
        raw: bytes | str,
        filename: str | None = None,
        handle: FileHandle | None = None,
    ) -> ImportOutcome:
        """
        Import external bytes.

        Args:
            raw: File contents
            filename: Source filename, if known
            handle: Writable handle the bytes were read from (retained on success)

        Returns:
            Loaded (working copy hydrated), Conflict (now pending) or Failed
        """
        if self.session.pending_conflict is not None:
            pending = self.session.pending_conflict.model_id
            error = ConflictPendingError(f"Resolve the pending conflict for model {pending} first")
            logger.warning(error.message)
            return Failed(error_type=type(error).__name__, message=error.message)

        try:
            await self._commit_outgoing()
        except StorageWriteFailure as e:
            logger.error(f"Could not commit the open model before import: {e.message}")
            return Failed(error_type=type(e).__name__, message=e.message)

        async with self.session.loading():
            outcome = await self.reconciler.reconcile(raw, filename)

            if isinstance(outcome, Loaded):
                if handle is not None and self.file_bridge.retains_handles:
                    self.session.retain_handle(outcome.metadata.id, handle)
                else:
                    self.session.clear_handle()
                await self._hydrate(outcome.metadata.id, outcome.data)
            elif isinstance(outcome, Conflict):
                self.session.set_pending_conflict(outcome, handle)

        return outcome

    async def open_file(self, source: str | Path | None = None) -> ImportOutcome | None:
        """
        Read a file through the File Bridge and import it.

        Returns:
            The import outcome, or None if the user cancelled the picker
        """
        try:
            result = await self.file_bridge.read(source)
        except PickerCancelled:
            logger.info("Open cancelled")
            return None
        return await self.import_file(result.content, result.filename, handle=result.handle)

    @property
    def pending_conflict(self) -> Conflict | None:
        return self.session.pending_conflict

    async def resolve_conflict(self, resolution: ConflictResolution) -> Loaded | None:
        """
        Apply a decision to the pending import conflict.

        Args:
            resolution: KEEP_LOCAL reopens the local model, ADOPT_INCOMING
                commits the imported file over it, CANCEL drops the import

        Returns:
            Loaded for KEEP_LOCAL / ADOPT_INCOMING, None for CANCEL

        Raises:
            NotFoundError: If no conflict is pending
            StorageWriteFailure: If adopting the incoming file fails (the
                conflict stays pending)
        """
        conflict = self.session.pending_conflict
        if conflict is None:
            raise NotFoundError("No pending import conflict")

        resolution = ConflictResolution(resolution)
        if resolution == ConflictResolution.CANCEL:
            self.session.clear_pending_conflict()
            logger.info(f"Import of {conflict.model_id} cancelled")
            return None

        if resolution == ConflictResolution.KEEP_LOCAL:
            loaded = await self.load_model(conflict.model_id)
            self.session.clear_pending_conflict()
            logger.info(f"Kept local version of {conflict.model_id}")
            return loaded

        await self._commit_outgoing()
        handle = self.session.pending_conflict_handle
        async with self.session.loading():
            async with self.session.commit_lock(conflict.model_id):
                await self.store.save(conflict.model_id, conflict.incoming_data)
                metadata = await self.registry.upsert(conflict.incoming_metadata)
            if handle is not None and self.file_bridge.retains_handles:
                self.session.retain_handle(conflict.model_id, handle)
            else:
                self.session.clear_handle()
            await self._hydrate(conflict.model_id, conflict.incoming_data)

        self.session.clear_pending_conflict()
        logger.info(f"Adopted incoming version of {conflict.model_id}")
        return Loaded(metadata=metadata, data=conflict.incoming_data)

    # ═══════════════════════════════════════════════════════════
    # STATUS
    # ═══════════════════════════════════════════════════════════

    @property
    def active_model_id(self) -> str | None:
        return self.session.active_model_id

    @property
    def active_metadata(self) -> ModelMetadata | None:
        if self.session.active_model_id is None:
            return None
        return self.registry.get(self.session.active_model_id)

    @property
    def has_unsaved_changes(self) -> bool:
        """Committed content differs from what was last written to disk."""
        metadata = self.active_metadata
        if metadata is None:
            return False
        return metadata.has_unsaved_changes

    @property
    def current_model_name(self) -> str:
        metadata = self.active_metadata
        return metadata.name if metadata else "Loading..."

    def list_models(self) -> list[ModelMetadata]:
        return self.registry.list_models()

    def should_prompt_before_new_model(self) -> bool:
        """
        Whether creating a new model risks losing work.

        True when the working copy differs from the last disk save and the
        graph is not empty.
        """
        metadata = self.active_metadata
        if metadata is None:
            return False
        data = self.working_copy.get_working_copy()
        is_dirty = metadata.last_disk_hash != compute_content_hash(data)
        return is_dirty and not data.is_empty

    def consume_schema_changes(self) -> list[str]:
        """Return and clear the change log of the last migration."""
        changes = self.session.schema_changes
        self.session.schema_changes = []
        return changes

    # ═══════════════════════════════════════════════════════════
    # INTERNALS
    # ═══════════════════════════════════════════════════════════

    def _require_active_model(self) -> str:
        if self.session.active_model_id is None:
            raise NotFoundError("No active model")
        return self.session.active_model_id

    async def _commit_outgoing(self) -> None:
        """Commit pending edits of the active model before another replaces it."""
        await self.autosave_controller.run()

    async def _hydrate(self, model_id: str, data: ModelData) -> None:
        """Migrate a loaded payload and push it into the working copy."""
        # An explicit empty list is migrated (and reported); only an absent one is defaulted
        schemes = data.color_schemes if "color_schemes" in data.model_fields_set else None
        result = self.migrator.migrate(schemes)
        hydrated = data.model_copy(
            update={
                "color_schemes": result.schemes,
                "active_scheme_id": data.active_scheme_id or default_scheme_id(),
                "system_prompt_config": merge_system_prompt_config(data.system_prompt_config),
            },
            deep=True,
        )

        await self._remember_last_opened(model_id)
        self.session.active_model_id = model_id
        self.session.schema_changes = result.changes
        self.working_copy.apply_working_copy(hydrated)

        if result.changes:
            logger.info(f"Model {model_id} taxonomy updated: {len(result.changes)} change(s)")

    async def _remember_last_opened(self, model_id: str) -> None:
        try:
            await self.registry.set_last_opened(model_id)
        except StorageWriteFailure as e:
            logger.warning(f"Could not record last opened model {model_id}: {e.message}")
