"""
Registry record for a model.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tapestry.utils.id_generator import suggest_filename


class ModelMetadata(BaseModel):
    """
    Lightweight registry entry, one per model.

    Listed without loading payloads. ``content_hash`` always matches the
    payload committed to the Model Store; ``last_disk_hash`` records what the
    last external file looked like and is only set after a successful file
    write or a resolved import.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(..., description="Immutable, globally unique model ID")
    name: str = Field(..., description="Display name")
    description: str = Field(default="")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    filename: str | None = Field(default=None, description="Export filename, if any")
    content_hash: str = Field(default="", description="Hash of the committed payload")
    last_disk_hash: str | None = Field(default=None, description="Hash of the last external file")

    @property
    def has_unsaved_changes(self) -> bool:
        """Committed content differs from what was last written to disk."""
        return self.content_hash != self.last_disk_hash

    @property
    def suggested_filename(self) -> str:
        """Export filename, falling back to one derived from the name."""
        return self.filename or suggest_filename(self.name)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
