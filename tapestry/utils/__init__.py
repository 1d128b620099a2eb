"""Utility modules for Tapestry."""

from tapestry.utils.exceptions import (
    ConfigurationError,
    ConflictPendingError,
    FileBridgeError,
    MalformedImport,
    NotFoundError,
    PickerCancelled,
    StorageWriteFailure,
    StoreError,
    TapestryError,
    ValidationError,
)
from tapestry.utils.id_generator import dedupe_name, generate_model_id, suggest_filename
from tapestry.utils.logger import configure_logging, get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "configure_logging",
    # IDs and names
    "generate_model_id",
    "suggest_filename",
    "dedupe_name",
    # Exceptions
    "TapestryError",
    "StoreError",
    "StorageWriteFailure",
    "ValidationError",
    "MalformedImport",
    "PickerCancelled",
    "ConflictPendingError",
    "NotFoundError",
    "ConfigurationError",
    "FileBridgeError",
]
