"""
Custom exception hierarchy for Tapestry persistence.

Provides structured error types for the storage, import and file layers.
All exceptions inherit from TapestryError for easy catching.

A version conflict on import is not an error: it is returned as a
``Conflict`` outcome (see ``tapestry.models.results``).
"""


class TapestryError(Exception):
    """
    Base exception for all Tapestry errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Tapestry error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class StoreError(TapestryError):
    """
    Base exception for store operations.
    Used for errors related to the local persistent store.
    """

    pass


class StorageWriteFailure(StoreError):
    """
    A store or file write was rejected.
    Raised when the medium refuses a write (quota exceeded, I/O error).
    The previously committed payload is left untouched.
    """

    pass


class ValidationError(TapestryError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class MalformedImport(ValidationError):
    """
    Imported file shape not recognized.
    Raised when external bytes are neither a {metadata, data} envelope
    nor a bare object carrying elements/relationships.
    """

    pass


class PickerCancelled(TapestryError):
    """
    The user dismissed a file picker.
    Callers treat this as a silent no-op, never as a failure.
    """

    pass


class ConflictPendingError(TapestryError):
    """
    An import conflict is awaiting resolution.
    Raised when a new import is attempted before the pending one is resolved.
    """

    pass


class NotFoundError(TapestryError):
    """
    Resource not found errors.
    Raised when a requested model doesn't exist.
    """

    pass


class ConfigurationError(TapestryError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass


class FileBridgeError(TapestryError):
    """
    File bridge errors.
    Raised when the file bridge cannot service a request (e.g. no source to read).
    """

    pass
