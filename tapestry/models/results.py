"""
Explicit outcome types for import and save operations.

Import reconciliation always returns one of ``Loaded``, ``Conflict`` or
``Failed``; callers dispatch on ``kind`` (or ``isinstance``) so no branch can
be silently ignored.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from tapestry.models.metadata import ModelMetadata
from tapestry.models.model_data import ModelData


class Loaded(BaseModel):
    """Import resolved to a model that can be hydrated into the working copy."""

    kind: Literal["loaded"] = "loaded"
    metadata: ModelMetadata
    data: ModelData
    is_new: bool = Field(default=False, description="A registry entry was created by this import")


class Conflict(BaseModel):
    """
    Imported file shares an ID with a local model but differs in content.

    Deferred decision: nothing has been written. An external actor must
    choose how to resolve it.
    """

    kind: Literal["conflict"] = "conflict"
    local_metadata: ModelMetadata
    incoming_metadata: ModelMetadata
    local_data: ModelData
    incoming_data: ModelData

    @property
    def model_id(self) -> str:
        return self.local_metadata.id


class Failed(BaseModel):
    """Import aborted; no state was mutated."""

    kind: Literal["failed"] = "failed"
    error_type: str = Field(..., description="Exception class name (MalformedImport, ...)")
    message: str


ImportOutcome = Annotated[Loaded | Conflict | Failed, Field(discriminator="kind")]


class ConflictResolution(str, Enum):
    """Decisions a caller can apply to a pending conflict."""

    KEEP_LOCAL = "keep_local"
    ADOPT_INCOMING = "adopt_incoming"
    CANCEL = "cancel"


class SaveStatus(str, Enum):
    """Outcome of a user-initiated disk save."""

    SAVED = "saved"
    CANCELLED = "cancelled"


class SaveOutcome(BaseModel):
    """Result of a disk save; cancellation is not an error."""

    status: SaveStatus
    model_id: str
    digest: str | None = None
    filename: str | None = None

    @property
    def saved(self) -> bool:
        return self.status == SaveStatus.SAVED
