"""
Model payload: graph elements, relationships and auxiliary content.

The payload is what the Model Store persists per model ID and what the
content hash is computed over. Field names use camelCase on the wire so
files exported by earlier editor versions load unchanged.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tapestry.models.taxonomy import TaxonomyScheme


class Element(BaseModel):
    """
    A graph node as authored in the editor.

    Canvas-specific keys (x, y, fx, fy, ...) are kept as extra fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    name: str = ""
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None


class Relationship(BaseModel):
    """A directed, labelled edge between two elements."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    source: str = Field(..., description="Source element ID")
    target: str = Field(..., description="Target element ID")
    label: str = ""
    direction: str | None = None
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)


class SystemPromptConfig(BaseModel):
    """Assistant configuration stored alongside a model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    default_prompt: str | None = None
    user_prompt: str | None = None
    user_context: str | None = None
    response_style: str | None = None
    enabled_tools: list[str] | None = None


class ModelData(BaseModel):
    """
    Full payload of one model.

    Invariant: ``elements`` and ``relationships`` are always lists, even when
    the source omitted them or carried ``null``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    elements: list[Element] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    documents: list[dict[str, Any]] = Field(default_factory=list)
    folders: list[dict[str, Any]] = Field(default_factory=list)
    history: list[dict[str, Any]] = Field(default_factory=list)
    slides: list[dict[str, Any]] = Field(default_factory=list)
    mermaid_diagrams: list[dict[str, Any]] = Field(default_factory=list)
    color_schemes: list[TaxonomyScheme] = Field(default_factory=list)
    active_scheme_id: str | None = None
    system_prompt_config: SystemPromptConfig | None = None

    @field_validator(
        "elements",
        "relationships",
        "documents",
        "folders",
        "history",
        "slides",
        "mermaid_diagrams",
        mode="before",
    )
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "ModelData":
        """Normalize a loosely shaped payload (from a file or the store)."""
        return cls.model_validate(raw)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @property
    def is_empty(self) -> bool:
        """True when the graph has no elements."""
        return not self.elements
