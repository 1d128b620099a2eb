"""
Autosave Controller - hash-gated commit of the working copy.

Runs after any tracked facet of the working copy changes. The working copy
is hashed and compared with the registry's recorded hash for the active
model; only a difference triggers a store write. That comparison is what
keeps incidental recomputations from rewriting the store every time.
"""

from datetime import datetime

from tapestry.core.hasher import compute_content_hash
from tapestry.core.model_store.model_store import ModelStore
from tapestry.core.model_store.registry import ModelRegistry
from tapestry.services.session import PersistenceSession
from tapestry.services.working_copy import WorkingCopyProvider
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class AutosaveController:
    """Commits the working copy to the Model Store when its hash changes."""

    def __init__(
        self,
        registry: ModelRegistry,
        store: ModelStore,
        session: PersistenceSession,
        working_copy: WorkingCopyProvider,
        enabled: bool = True,
    ):
        """
        Initialize autosave controller.

        Args:
            registry: Model registry holding the committed hash
            store: Model store receiving payloads
            session: Session providing lifecycle and active model
            working_copy: Snapshot provider for the live model
            enabled: Disable to make run() a no-op
        """
        self.registry = registry
        self.store = store
        self.session = session
        self.working_copy = working_copy
        self.enabled = enabled

    async def run(self) -> bool:
        """
        Commit the working copy if it changed.

        Returns:
            True if a store write happened, False otherwise

        Raises:
            StorageWriteFailure: If the store rejects the write. The working
                copy and the last committed payload are untouched.
        """
        if not self.enabled or not self.session.is_ready:
            return False

        model_id = self.session.active_model_id
        if model_id is None:
            return False

        async with self.session.commit_lock(model_id):
            # A load may have started or switched models while we waited
            if not self.session.is_ready or self.session.active_model_id != model_id:
                return False

            metadata = self.registry.get(model_id)
            if metadata is None:
                logger.warning(f"Autosave skipped: model {model_id} is not registered")
                return False

            data = self.working_copy.get_working_copy()
            current_hash = compute_content_hash(data)
            if current_hash == metadata.content_hash:
                return False

            await self.store.save(model_id, data)
            await self.registry.update(model_id, content_hash=current_hash, updated_at=datetime.now())

        get_logger(__name__, model_id=model_id, content_hash=current_hash).debug(
            f"Autosaved model {model_id}"
        )
        return True
