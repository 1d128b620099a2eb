"""
Taxonomy models: named color schemes and relationship-type catalogs.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RelationshipDefinition(BaseModel):
    """A relationship type offered by a scheme (label + description)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    label: str
    description: str = ""


class TaxonomyScheme(BaseModel):
    """
    One named taxonomy bundled with a model.

    Maps tags to colors and descriptions and carries the catalog of
    relationship types. Files written before the structured catalog existed
    carry a flat ``relationshipLabels`` list instead; the migrator converts it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(..., description="Stable scheme ID, matched against the built-in catalog")
    name: str = Field(default="", description="Display name")
    tag_colors: dict[str, str] = Field(default_factory=dict, description="Tag -> color")
    tag_descriptions: dict[str, str] = Field(default_factory=dict, description="Tag -> description")
    relationship_definitions: list[RelationshipDefinition] | None = Field(
        default=None,
        description="Structured relationship catalog",
    )
    relationship_labels: list[str] | None = Field(
        default=None,
        description="Legacy flat label list (pre-catalog files)",
    )
    default_relationship_label: str | None = Field(default=None)

    @property
    def relationship_label_set(self) -> set[str]:
        """Labels present in the structured catalog."""
        return {d.label for d in self.relationship_definitions or []}

    @property
    def is_legacy(self) -> bool:
        """True when the scheme still uses the flat label list."""
        return self.relationship_labels is not None and self.relationship_definitions is None


class MigrationResult(BaseModel):
    """Outcome of a taxonomy migration pass."""

    schemes: list[TaxonomyScheme] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list, description="Human-readable change log")

    @property
    def changed(self) -> bool:
        return bool(self.changes)
