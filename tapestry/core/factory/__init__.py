"""
Factory modules for creating Tapestry components.
"""

from tapestry.core.factory.file_bridge_factory import FileBridgeFactory
from tapestry.core.factory.storage_factory import StorageFactory

__all__ = [
    "StorageFactory",
    "FileBridgeFactory",
]
