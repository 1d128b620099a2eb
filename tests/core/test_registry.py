"""
Tests for the model registry.
"""

import asyncio
import json

import pytest

from tapestry.core.model_store import LAST_OPENED_MODEL_ID_KEY, MODELS_INDEX_KEY, ModelRegistry
from tapestry.core.storage import InMemoryStorageBackend
from tapestry.models import ModelMetadata
from tapestry.utils.exceptions import StorageWriteFailure


@pytest.fixture
def registry(backend):
    return ModelRegistry(backend)


class TestRegistryLoad:
    """Test loading the registry blob."""

    @pytest.mark.asyncio
    async def test_load_empty(self, registry):
        """Test an empty medium yields an empty registry."""
        assert await registry.load() == []

    @pytest.mark.asyncio
    async def test_load_corrupt_blob_is_empty(self, backend, registry):
        """Test an unreadable blob is treated as empty."""
        await backend.set(MODELS_INDEX_KEY, "{not json")

        assert await registry.load() == []

    @pytest.mark.asyncio
    async def test_load_reads_camel_case_entries(self, backend, registry):
        """Test entries written by earlier versions load unchanged."""
        blob = [
            {
                "id": "m1",
                "name": "Alpha",
                "description": "",
                "createdAt": "2024-01-01T10:00:00",
                "updatedAt": "2024-01-02T10:00:00",
                "filename": "Alpha.json",
                "contentHash": "sha256:abc",
                "lastDiskHash": "sha256:abc",
            }
        ]
        await backend.set(MODELS_INDEX_KEY, json.dumps(blob))

        entries = await registry.load()

        assert len(entries) == 1
        assert entries[0].id == "m1"
        assert entries[0].content_hash == "sha256:abc"
        assert entries[0].has_unsaved_changes is False


class TestRegistryUpsert:
    """Test inserting and updating entries."""

    @pytest.mark.asyncio
    async def test_upsert_appends_and_persists(self, backend, registry, sample_metadata):
        """Test a new entry is appended and written to the medium."""
        await registry.upsert(sample_metadata)

        stored = json.loads(await backend.get(MODELS_INDEX_KEY))
        assert [e["id"] for e in stored] == ["model-1"]
        assert "contentHash" in stored[0]
        assert registry.contains("model-1")

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_id_in_place(self, registry, sample_metadata):
        """Test updating keeps insertion order and count."""
        await registry.upsert(sample_metadata)
        await registry.upsert(ModelMetadata(id="model-2", name="Beta"))
        await registry.upsert(sample_metadata.model_copy(update={"content_hash": "sha256:new"}))

        entries = registry.list_models()
        assert [e.id for e in entries] == ["model-1", "model-2"]
        assert entries[0].content_hash == "sha256:new"

    @pytest.mark.asyncio
    async def test_upsert_keeps_unset_fields(self, registry, sample_metadata):
        """Test a partial record does not erase stored fields."""
        await registry.upsert(sample_metadata.model_copy(update={"filename": "Alpha.json"}))

        await registry.upsert(ModelMetadata(id="model-1", name="Alpha", content_hash="sha256:x"))

        entry = registry.get("model-1")
        assert entry.filename == "Alpha.json"
        assert entry.description == "Test model"
        assert entry.content_hash == "sha256:x"

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, registry, sample_metadata):
        """Test mutating a returned entry does not touch the registry."""
        await registry.upsert(sample_metadata)

        entry = registry.get("model-1")
        entry.name = "Changed"

        assert registry.get("model-1").name == "Alpha"

    @pytest.mark.asyncio
    async def test_rejected_upsert_leaves_listing(self, sample_metadata):
        """Test a failed write leaves the in-memory listing unchanged."""
        small = InMemoryStorageBackend(quota_bytes=10)
        registry = ModelRegistry(small)

        with pytest.raises(StorageWriteFailure):
            await registry.upsert(sample_metadata)

        assert registry.list_models() == []

    @pytest.mark.asyncio
    async def test_overlapping_upserts_keep_both(self, slow_backend, sample_metadata):
        """Test upserts racing on a slow medium do not drop each other."""
        registry = ModelRegistry(slow_backend)
        await registry.upsert(sample_metadata)

        await asyncio.gather(
            registry.upsert(sample_metadata.model_copy(update={"content_hash": "sha256:a1"})),
            registry.upsert(ModelMetadata(id="model-2", name="Beta")),
        )

        assert [e.id for e in registry.list_models()] == ["model-1", "model-2"]
        assert registry.get("model-1").content_hash == "sha256:a1"
        stored = json.loads(await slow_backend.get(MODELS_INDEX_KEY))
        assert [e["id"] for e in stored] == ["model-1", "model-2"]
        assert stored[0]["contentHash"] == "sha256:a1"

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, registry, sample_metadata):
        """Test update applies fields to the stored record."""
        await registry.upsert(sample_metadata.model_copy(update={"filename": "Alpha.json"}))

        updated = await registry.update("model-1", content_hash="sha256:u")

        assert updated.content_hash == "sha256:u"
        assert registry.get("model-1").filename == "Alpha.json"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, backend, registry):
        """Test updating an unregistered model writes nothing."""
        assert await registry.update("missing", content_hash="sha256:u") is None
        assert backend.writes_for(MODELS_INDEX_KEY) == 0

    @pytest.mark.asyncio
    async def test_overlapping_updates_keep_both_fields(self, slow_backend, sample_metadata):
        """Test updates of different fields racing on a slow medium both land."""
        registry = ModelRegistry(slow_backend)
        await registry.upsert(sample_metadata)

        await asyncio.gather(
            registry.update("model-1", content_hash="sha256:h"),
            registry.update("model-1", last_disk_hash="sha256:d"),
        )

        entry = registry.get("model-1")
        assert entry.content_hash == "sha256:h"
        assert entry.last_disk_hash == "sha256:d"

    @pytest.mark.asyncio
    async def test_reload_round_trip(self, backend, registry, sample_metadata):
        """Test a fresh registry sees persisted entries."""
        await registry.upsert(sample_metadata)

        fresh = ModelRegistry(backend)
        entries = await fresh.load()

        assert entries[0].name == "Alpha"
        assert entries[0].created_at == sample_metadata.created_at


class TestRegistryLookups:
    """Test name lookups and the last-opened pointer."""

    @pytest.mark.asyncio
    async def test_names_and_find_by_name(self, registry, sample_metadata):
        """Test lookup by display name."""
        await registry.upsert(sample_metadata)
        await registry.upsert(ModelMetadata(id="model-2", name="Beta"))

        assert registry.names() == ["Alpha", "Beta"]
        assert registry.find_by_name("Beta").id == "model-2"
        assert registry.find_by_name("Gamma") is None

    @pytest.mark.asyncio
    async def test_last_opened_pointer(self, backend, registry):
        """Test last-opened ID is stored under its own key."""
        assert await registry.get_last_opened() is None

        await registry.set_last_opened("model-1")

        assert await registry.get_last_opened() == "model-1"
        assert await backend.get(LAST_OPENED_MODEL_ID_KEY) == "model-1"
