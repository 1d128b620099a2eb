"""
Schema Migrator - additive taxonomy upgrades.

Reconciles a model's taxonomy schemes against the built-in catalog:
- converts legacy flat relationship-label lists to the structured catalog
- adds default tags missing from a scheme
- adds default relationship types missing from a scheme
- appends built-in schemes the model does not have at all

Migration only ever adds. User-defined tags, colors and relationship types
are never removed or overwritten, and a second pass reports no changes.
"""

from collections.abc import Iterable

from tapestry.core.defaults import DEFAULT_TAXONOMY_SCHEMES
from tapestry.models.taxonomy import MigrationResult, RelationshipDefinition, TaxonomyScheme
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class SchemaMigrator:
    """Upgrades loaded taxonomy schemes to match the built-in defaults."""

    def __init__(self, defaults: Iterable[TaxonomyScheme] | None = None):
        """
        Args:
            defaults: Built-in scheme catalog (defaults to the shipped schemes)
        """
        catalog = DEFAULT_TAXONOMY_SCHEMES if defaults is None else defaults
        self.defaults = [scheme.model_copy(deep=True) for scheme in catalog]
        self._defaults_by_id = {scheme.id: scheme for scheme in self.defaults}

    def migrate(self, schemes: Iterable[TaxonomyScheme] | None) -> MigrationResult:
        """
        Migrate a scheme list.

        The input is not modified. A missing (None) scheme list yields the
        full default catalog without any change notes.

        Args:
            schemes: Schemes loaded from storage or an import

        Returns:
            MigrationResult with the migrated schemes and a change log
            (empty when nothing changed)
        """
        if schemes is None:
            return MigrationResult(schemes=[d.model_copy(deep=True) for d in self.defaults])

        changes: list[str] = []
        migrated: list[TaxonomyScheme] = []

        for scheme in schemes:
            scheme = scheme.model_copy(deep=True)
            default = self._defaults_by_id.get(scheme.id)

            if scheme.is_legacy:
                self._convert_legacy_labels(scheme, default)
                changes.append(f"Migrated legacy relationship labels for schema '{scheme.name}'.")

            if default is not None:
                changes.extend(self._add_missing_tags(scheme, default))
                changes.extend(self._add_missing_relationships(scheme, default))

            migrated.append(scheme)

        present = {scheme.id for scheme in migrated}
        missing_defaults = [d for d in self.defaults if d.id not in present]
        if missing_defaults:
            migrated.extend(d.model_copy(deep=True) for d in missing_defaults)
            changes.append(f"Added {len(missing_defaults)} new standard schemas.")

        if changes:
            logger.info(f"Schema migration applied {len(changes)} change(s)")

        return MigrationResult(schemes=migrated, changes=changes)

    @staticmethod
    def _convert_legacy_labels(scheme: TaxonomyScheme, default: TaxonomyScheme | None) -> None:
        labels = scheme.relationship_labels or []
        if default is not None and default.relationship_definitions:
            known = default.relationship_label_set
            definitions = [d.model_copy() for d in default.relationship_definitions]
            definitions.extend(
                RelationshipDefinition(label=label, description="")
                for label in _unique(labels)
                if label not in known
            )
        else:
            definitions = [
                RelationshipDefinition(label=label, description="") for label in _unique(labels)
            ]
        scheme.relationship_definitions = definitions
        scheme.relationship_labels = None

    @staticmethod
    def _add_missing_tags(scheme: TaxonomyScheme, default: TaxonomyScheme) -> list[str]:
        missing = [tag for tag in default.tag_colors if tag not in scheme.tag_colors]
        if not missing:
            return []

        scheme.tag_colors = {**default.tag_colors, **scheme.tag_colors}
        scheme.tag_descriptions = {**default.tag_descriptions, **scheme.tag_descriptions}
        return [f"Updated schema '{scheme.name}': Added missing tags ({', '.join(missing)})."]

    @staticmethod
    def _add_missing_relationships(scheme: TaxonomyScheme, default: TaxonomyScheme) -> list[str]:
        if not default.relationship_definitions:
            return []

        current = scheme.relationship_label_set
        missing = [d for d in default.relationship_definitions if d.label not in current]
        if not missing:
            return []

        scheme.relationship_definitions = [
            *(scheme.relationship_definitions or []),
            *(d.model_copy() for d in missing),
        ]
        labels = ", ".join(d.label for d in missing)
        return [f"Updated schema '{scheme.name}': Added missing relationship types ({labels})."]


def _unique(labels: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            result.append(label)
    return result
