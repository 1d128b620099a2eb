"""
Shared test fixtures for Tapestry tests.
"""

import asyncio
from pathlib import Path

import pytest

from tapestry.core.file_bridge import DownloadFileBridge, FileHandle, FilePicker, PickerFileBridge
from tapestry.core.storage import InMemoryStorageBackend, SQLiteStorageBackend
from tapestry.models import Element, ModelData, ModelMetadata, Relationship
from tapestry.services import InMemoryWorkingCopy, PersistenceEngine


class RecordingBackend(InMemoryStorageBackend):
    """In-memory backend that records every key written."""

    def __init__(self, quota_bytes: int | None = None):
        super().__init__(quota_bytes=quota_bytes)
        self.writes: list[str] = []

    async def set(self, key: str, value: str) -> None:
        await super().set(key, value)
        self.writes.append(key)

    def writes_for(self, key: str) -> int:
        return self.writes.count(key)


class SlowBackend(RecordingBackend):
    """Recording backend whose writes yield to the event loop before landing."""

    def __init__(self, delay: float = 0.01):
        super().__init__()
        self.delay = delay

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(self.delay)
        await super().set(key, value)


class FakePicker(FilePicker):
    """File picker answering from queued paths; None simulates cancel."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.save_answers: list[str | None] = []
        self.open_answers: list[str | None] = []
        self.save_requests: list[str] = []

    async def pick_save_location(self, suggested_name: str) -> FileHandle | None:
        self.save_requests.append(suggested_name)
        name = self.save_answers.pop(0) if self.save_answers else suggested_name
        if name is None:
            return None
        return FileHandle(self.directory / name)

    async def pick_open_location(self) -> FileHandle | None:
        name = self.open_answers.pop(0) if self.open_answers else None
        if name is None:
            return None
        return FileHandle(self.directory / name)


@pytest.fixture
def backend():
    """Create recording in-memory backend."""
    return RecordingBackend()


@pytest.fixture
def slow_backend():
    """Create a backend whose writes overlap with other tasks."""
    return SlowBackend()


@pytest.fixture
async def sqlite_backend(tmp_path):
    """Create an initialized SQLite backend."""
    store = SQLiteStorageBackend(db_path=str(tmp_path / "tapestry_test.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def picker(tmp_path):
    """Create fake file picker rooted in a temp directory."""
    directory = tmp_path / "files"
    directory.mkdir()
    return FakePicker(directory)


@pytest.fixture
def picker_bridge(picker):
    return PickerFileBridge(picker=picker)


@pytest.fixture
def download_bridge(tmp_path):
    return DownloadFileBridge(downloads_dir=tmp_path / "downloads")


@pytest.fixture
def working_copy():
    return InMemoryWorkingCopy()


@pytest.fixture
async def engine(backend, picker_bridge, working_copy):
    """Create initialized persistence engine with a picker bridge."""
    persistence = PersistenceEngine(
        backend=backend,
        file_bridge=picker_bridge,
        working_copy=working_copy,
    )
    await persistence.initialize()
    yield persistence
    await persistence.close()


@pytest.fixture
def sample_element():
    """Create sample graph element."""
    return Element(id="el-1", name="Battery", tags=["Useful"], notes="Stores energy")


@pytest.fixture
def sample_data():
    """Create sample payload with two elements and a relationship."""
    return ModelData(
        elements=[
            Element(id="el-1", name="Battery", tags=["Useful"]),
            Element(id="el-2", name="Heat", tags=["Harmful"]),
        ],
        relationships=[
            Relationship(id="rel-1", source="el-1", target="el-2", label="Generates"),
        ],
    )


@pytest.fixture
def sample_metadata():
    """Create sample registry entry."""
    return ModelMetadata(id="model-1", name="Alpha", description="Test model")
