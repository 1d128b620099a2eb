"""
External file bridge implementations.

Available bridges:
- PickerFileBridge: Host offers a location picker; handles are retained
- DownloadFileBridge: Fallback that writes a download, retains nothing
"""

from tapestry.core.file_bridge.base import (
    FileBridge,
    FileHandle,
    FilePicker,
    FileReadResult,
    WriteReceipt,
    serialize_envelope,
)
from tapestry.core.file_bridge.download import DownloadFileBridge
from tapestry.core.file_bridge.picker import PickerFileBridge

__all__ = [
    "FileBridge",
    "FileHandle",
    "FilePicker",
    "FileReadResult",
    "WriteReceipt",
    "serialize_envelope",
    "PickerFileBridge",
    "DownloadFileBridge",
]
