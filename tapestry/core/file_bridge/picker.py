"""
Picker-backed file bridge.

Used when the host offers a save/open location picker. Handles obtained
from the picker are returned to the caller for retention, so later saves of
the same model go straight to the same file.
"""

from pathlib import Path

from tapestry.core.file_bridge.base import (
    FileBridge,
    FilePicker,
    FileReadResult,
    WriteReceipt,
)
from tapestry.models.metadata import ModelMetadata
from tapestry.utils.exceptions import PickerCancelled
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class PickerFileBridge(FileBridge):
    """File bridge that asks the user for locations."""

    retains_handles = True

    def __init__(self, picker: FilePicker, indent: int | None = 2):
        super().__init__(indent=indent)
        self.picker = picker

    async def _write_new(self, metadata: ModelMetadata, text: str, digest: str) -> WriteReceipt:
        handle = await self.picker.pick_save_location(metadata.suggested_filename)
        if handle is None:
            logger.info(f"Save picker cancelled for model {metadata.id}")
            raise PickerCancelled("Save cancelled by user", context={"model_id": metadata.id})

        await self._write_handle(handle, text)
        logger.info(f"Wrote model {metadata.id} to {handle.path}")
        return WriteReceipt(handle=handle, digest=digest, filename=handle.name)

    async def read(self, source: str | Path | None = None) -> FileReadResult:
        if source is not None:
            return await self._read_path(Path(source))

        handle = await self.picker.pick_open_location()
        if handle is None:
            logger.info("Open picker cancelled")
            raise PickerCancelled("Open cancelled by user")

        result = await self._read_path(handle.path)
        result.handle = handle
        return result
