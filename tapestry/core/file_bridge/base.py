"""
Base interface for writing models to and reading them from external files.

Capability resolution on write:
1. reuse a writable handle already held for the model (passed by the caller)
2. otherwise acquire one (implementation specific: picker or download)

The export shape is the envelope ``{"metadata": ..., "data": ...}``.
"""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from tapestry.core.hasher import compute_content_hash
from tapestry.models.metadata import ModelMetadata
from tapestry.models.model_data import ModelData
from tapestry.utils.exceptions import FileBridgeError, StorageWriteFailure
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class FileHandle:
    """A writable location on disk obtained from a picker or a previous open."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    async def write_text(self, text: str) -> None:
        """Atomically replace the file contents."""
        await asyncio.to_thread(self._write_atomic, text)

    async def read_bytes(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)

    def _write_atomic(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def __eq__(self, other: object) -> bool:
        return isinstance(other, FileHandle) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)

    def __repr__(self) -> str:
        return f"FileHandle({str(self.path)!r})"


class FilePicker(ABC):
    """
    Host-provided, user-mediated file location picker.

    Returning None means the user cancelled.
    """

    @abstractmethod
    async def pick_save_location(self, suggested_name: str) -> FileHandle | None:
        """Ask the user where to save; None if cancelled."""
        pass

    @abstractmethod
    async def pick_open_location(self) -> FileHandle | None:
        """Ask the user which file to open; None if cancelled."""
        pass


class WriteReceipt(BaseModel):
    """Result of a successful external write."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    handle: FileHandle | None = None
    digest: str
    filename: str


class FileReadResult(BaseModel):
    """Bytes read from an external file."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    filename: str
    content: bytes
    handle: FileHandle | None = None


def serialize_envelope(metadata: ModelMetadata, data: ModelData, indent: int | None = 2) -> str:
    """Render the canonical export envelope."""
    return json.dumps(
        {"metadata": metadata.to_json_dict(), "data": data.to_json_dict()},
        indent=indent,
        ensure_ascii=False,
    )


class FileBridge(ABC):
    """Abstract base class for external file writers/readers."""

    #: Whether handles obtained by this bridge can be retained for later writes
    retains_handles: bool = False

    def __init__(self, indent: int | None = 2):
        self.indent = indent

    async def write(
        self,
        metadata: ModelMetadata,
        data: ModelData,
        handle: FileHandle | None = None,
    ) -> WriteReceipt:
        """
        Write a model to an external file.

        Args:
            metadata: Metadata to embed in the envelope
            data: Model payload
            handle: Handle previously retained for this model, if any

        Returns:
            WriteReceipt with the handle to retain (None if not retainable)
            and the payload digest

        Raises:
            PickerCancelled: If the user dismissed the save picker
            StorageWriteFailure: If the write itself failed
        """
        digest = compute_content_hash(data)
        text = serialize_envelope(metadata, data, indent=self.indent)

        if handle is not None:
            await self._write_handle(handle, text)
            logger.info(f"Wrote model {metadata.id} to retained handle {handle.name}")
            return WriteReceipt(handle=handle, digest=digest, filename=handle.name)

        return await self._write_new(metadata, text, digest)

    @abstractmethod
    async def _write_new(self, metadata: ModelMetadata, text: str, digest: str) -> WriteReceipt:
        """Write when no handle is held for the model."""
        pass

    @abstractmethod
    async def read(self, source: str | Path | None = None) -> FileReadResult:
        """
        Read an external file.

        Args:
            source: Explicit path (upload-style input). When omitted the
                bridge asks the host for a file, if it can.

        Raises:
            PickerCancelled: If the user dismissed the open picker
            FileBridgeError: If no source is available
        """
        pass

    @staticmethod
    async def _write_handle(handle: FileHandle, text: str) -> None:
        try:
            await handle.write_text(text)
        except OSError as e:
            logger.error(f"Failed to write {handle.path}: {e}")
            raise StorageWriteFailure(
                f"Failed to save file: {e}",
                context={"path": str(handle.path), "error_type": type(e).__name__},
            ) from e

    @staticmethod
    async def _read_path(path: Path) -> FileReadResult:
        try:
            content = await FileHandle(path).read_bytes()
        except OSError as e:
            raise FileBridgeError(
                f"Failed to read file: {e}", context={"path": str(path)}
            ) from e
        return FileReadResult(filename=path.name, content=content)
