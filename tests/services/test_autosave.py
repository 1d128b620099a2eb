"""
Tests for the hash-gated autosave controller.
"""

import pytest

from tapestry.core.hasher import compute_content_hash
from tapestry.core.model_store import ModelRegistry, ModelStore
from tapestry.core.storage import InMemoryStorageBackend
from tapestry.models import Element, ModelMetadata
from tapestry.services import AutosaveController, InMemoryWorkingCopy, Lifecycle, PersistenceSession
from tapestry.utils.exceptions import StorageWriteFailure


@pytest.fixture
async def parts(backend, sample_data):
    """Registry, store, session and working copy with one committed model."""
    registry = ModelRegistry(backend)
    store = ModelStore(backend)
    await store.save("model-1", sample_data)
    await registry.upsert(
        ModelMetadata(id="model-1", name="Alpha", content_hash=compute_content_hash(sample_data))
    )
    session = PersistenceSession()
    session.lifecycle = Lifecycle.READY
    session.active_model_id = "model-1"
    working_copy = InMemoryWorkingCopy(sample_data)
    backend.writes.clear()
    return registry, store, session, working_copy


@pytest.fixture
def controller(parts):
    registry, store, session, working_copy = parts
    return AutosaveController(
        registry=registry, store=store, session=session, working_copy=working_copy
    )


class TestAutosaveController:
    """Test commit gating."""

    @pytest.mark.asyncio
    async def test_unchanged_copy_is_not_written(self, backend, controller):
        """Test no write when the hash matches the registry."""
        assert await controller.run() is False
        assert backend.writes == []

    @pytest.mark.asyncio
    async def test_two_runs_without_change_write_once(self, backend, parts, controller):
        """Test a second run with no intervening change writes nothing."""
        _, _, _, working_copy = parts
        working_copy.add_element(Element(id="el-9", name="New"))

        assert await controller.run() is True
        assert await controller.run() is False

        assert backend.writes_for(ModelStore.key_for("model-1")) == 1

    @pytest.mark.asyncio
    async def test_commit_updates_registry(self, parts, controller):
        """Test the registry records the new hash and timestamp."""
        registry, store, _, working_copy = parts
        before = registry.get("model-1")
        working_copy.add_element(Element(id="el-9", name="New"))

        await controller.run()

        after = registry.get("model-1")
        expected = compute_content_hash(working_copy.get_working_copy())
        assert after.content_hash == expected
        assert after.updated_at >= before.updated_at
        assert compute_content_hash(await store.load("model-1")) == expected

    @pytest.mark.parametrize("lifecycle", [Lifecycle.UNINITIALIZED, Lifecycle.LOADING])
    @pytest.mark.asyncio
    async def test_not_ready_suppresses(self, backend, parts, controller, lifecycle):
        """Test autosave never fires before the session is ready."""
        _, _, session, working_copy = parts
        session.lifecycle = lifecycle
        working_copy.add_element(Element(id="el-9", name="New"))

        assert await controller.run() is False
        assert backend.writes == []

    @pytest.mark.asyncio
    async def test_disabled_suppresses(self, backend, parts, controller):
        """Test a disabled controller is a no-op."""
        _, _, _, working_copy = parts
        controller.enabled = False
        working_copy.add_element(Element(id="el-9", name="New"))

        assert await controller.run() is False
        assert backend.writes == []

    @pytest.mark.asyncio
    async def test_no_active_model(self, parts, controller):
        """Test nothing happens without an active model."""
        _, _, session, _ = parts
        session.active_model_id = None

        assert await controller.run() is False

    @pytest.mark.asyncio
    async def test_write_failure_keeps_last_good(self, sample_data):
        """Test a rejected commit leaves the store and registry at the old hash."""
        backend = InMemoryStorageBackend()
        registry = ModelRegistry(backend)
        store = ModelStore(backend)
        h1 = compute_content_hash(sample_data)
        await store.save("model-1", sample_data)
        await registry.upsert(ModelMetadata(id="model-1", name="Alpha", content_hash=h1))
        backend.quota_bytes = await backend.usage_bytes()

        session = PersistenceSession()
        session.lifecycle = Lifecycle.READY
        session.active_model_id = "model-1"
        working_copy = InMemoryWorkingCopy(sample_data)
        working_copy.add_element(Element(id="el-9", name="New"))
        controller = AutosaveController(registry, store, session, working_copy)

        with pytest.raises(StorageWriteFailure):
            await controller.run()

        assert compute_content_hash(await store.load("model-1")) == h1
        assert registry.get("model-1").content_hash == h1
        assert len(working_copy.get_working_copy().elements) == 3
