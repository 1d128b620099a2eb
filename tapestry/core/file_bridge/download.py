"""
Download fallback file bridge.

Used when the host has no location picker: the serialized model is dropped
into a downloads directory under its suggested filename and no handle is
retained.
"""

from pathlib import Path

from tapestry.core.file_bridge.base import FileBridge, FileHandle, FileReadResult, WriteReceipt
from tapestry.models.metadata import ModelMetadata
from tapestry.utils.exceptions import FileBridgeError
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class DownloadFileBridge(FileBridge):
    """Writes synthetic downloads; reads only explicit paths."""

    def __init__(self, downloads_dir: str | Path = "downloads", indent: int | None = 2):
        super().__init__(indent=indent)
        self.downloads_dir = Path(downloads_dir)

    async def _write_new(self, metadata: ModelMetadata, text: str, digest: str) -> WriteReceipt:
        filename = metadata.suggested_filename
        target = FileHandle(self.downloads_dir / filename)
        await self._write_handle(target, text)
        logger.info(f"Downloaded model {metadata.id} as {target.path}")
        return WriteReceipt(handle=None, digest=digest, filename=filename)

    async def read(self, source: str | Path | None = None) -> FileReadResult:
        if source is None:
            raise FileBridgeError("No file selected: this host has no file picker")
        return await self._read_path(Path(source))
