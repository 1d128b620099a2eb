"""
Tests for taxonomy schema migration.
"""

import json

import pytest

from tapestry.core.defaults import DEFAULT_TAXONOMY_SCHEMES
from tapestry.core.migration import SchemaMigrator
from tapestry.models import RelationshipDefinition, TaxonomyScheme


@pytest.fixture
def migrator():
    return SchemaMigrator()


def _default(scheme_id: str) -> TaxonomyScheme:
    return next(s for s in DEFAULT_TAXONOMY_SCHEMES if s.id == scheme_id)


def _dump(schemes: list[TaxonomyScheme]) -> str:
    return json.dumps([s.model_dump(mode="json", by_alias=True) for s in schemes], sort_keys=True)


class TestMigrationBasics:
    """Test trivial inputs."""

    def test_none_yields_defaults_without_changes(self, migrator):
        """Test a model with no schemes receives the full catalog silently."""
        result = migrator.migrate(None)

        assert [s.id for s in result.schemes] == [s.id for s in DEFAULT_TAXONOMY_SCHEMES]
        assert result.changes == []
        assert result.changed is False

    def test_empty_list_appends_defaults(self, migrator):
        """Test an empty scheme list reports the added standard schemas."""
        result = migrator.migrate([])

        assert len(result.schemes) == len(DEFAULT_TAXONOMY_SCHEMES)
        assert result.changes == [f"Added {len(DEFAULT_TAXONOMY_SCHEMES)} new standard schemas."]

    def test_up_to_date_schemes_unchanged(self, migrator):
        """Test the shipped catalog migrates to itself."""
        result = migrator.migrate(DEFAULT_TAXONOMY_SCHEMES)

        assert result.changes == []
        assert _dump(result.schemes) == _dump(DEFAULT_TAXONOMY_SCHEMES)

    def test_input_not_mutated(self, migrator):
        """Test migration works on copies."""
        scheme = TaxonomyScheme(id="scheme-networking", name="Networking", tag_colors={})

        migrator.migrate([scheme])

        assert scheme.tag_colors == {}
        assert scheme.relationship_definitions is None


class TestAdditiveMigration:
    """Test that migration only ever adds."""

    def test_adds_three_missing_tags(self, migrator):
        """Test missing default tags are added and custom tags survive."""
        default = _default("scheme-useful-harmful")
        kept = dict(list(default.tag_colors.items())[3:])
        kept["Emotion"] = "#000000"
        kept["Custom"] = "#123456"
        scheme = default.model_copy(update={"tag_colors": kept}, deep=True)
        missing = list(default.tag_colors)[:3]

        result = migrator.migrate([scheme])
        migrated = result.schemes[0]

        assert set(default.tag_colors) <= set(migrated.tag_colors)
        for tag in missing:
            assert migrated.tag_colors[tag] == default.tag_colors[tag]
        assert migrated.tag_colors["Emotion"] == "#000000"
        assert migrated.tag_colors["Custom"] == "#123456"
        assert f"Added missing tags ({', '.join(missing)})" in result.changes[0]

    def test_adds_missing_relationship_types(self, migrator):
        """Test missing default relationship types are appended after custom ones."""
        default = _default("scheme-networking")
        custom = RelationshipDefinition(label="mentors", description="Guides a junior")
        scheme = default.model_copy(
            update={"relationship_definitions": [custom, *default.relationship_definitions[:2]]},
            deep=True,
        )

        result = migrator.migrate([scheme])
        labels = [d.label for d in result.schemes[0].relationship_definitions]

        assert labels[:3] == ["mentors", "related to", "is a"]
        assert set(labels) == {"mentors"} | default.relationship_label_set
        assert any("Added missing relationship types" in c for c in result.changes)

    def test_unknown_scheme_left_alone(self, migrator):
        """Test user-defined schemes are never touched."""
        custom = TaxonomyScheme(id="my-scheme", name="Mine", tag_colors={"A": "#111111"})

        result = migrator.migrate([custom, *DEFAULT_TAXONOMY_SCHEMES])

        assert result.schemes[0] == custom
        assert result.changes == []

    def test_appends_missing_default_schemes(self, migrator):
        """Test built-in schemes absent from the model are appended."""
        custom = TaxonomyScheme(id="my-scheme", name="Mine")

        result = migrator.migrate([custom])

        assert [s.id for s in result.schemes] == ["my-scheme"] + [
            s.id for s in DEFAULT_TAXONOMY_SCHEMES
        ]
        assert result.changes[-1] == f"Added {len(DEFAULT_TAXONOMY_SCHEMES)} new standard schemas."


class TestLegacyLabels:
    """Test conversion of flat relationship label lists."""

    def test_converts_known_scheme(self, migrator):
        """Test legacy labels on a built-in scheme become the full catalog plus extras."""
        default = _default("scheme-networking")
        legacy = TaxonomyScheme.model_validate(
            {
                "id": "scheme-networking",
                "name": "Networking",
                "tagColors": dict(default.tag_colors),
                "relationshipLabels": ["knows", "sponsors", "sponsors"],
            }
        )

        result = migrator.migrate([legacy, _default("scheme-useful-harmful")])
        migrated = result.schemes[0]

        assert migrated.relationship_labels is None
        labels = [d.label for d in migrated.relationship_definitions]
        assert labels.count("sponsors") == 1
        assert set(labels) == default.relationship_label_set | {"sponsors"}
        assert result.changes == ["Migrated legacy relationship labels for schema 'Networking'."]

    def test_converts_custom_scheme(self, migrator):
        """Test legacy labels on a custom scheme keep only the user's labels."""
        legacy = TaxonomyScheme(id="mine", name="Mine", relationship_labels=["a", "b"])

        result = migrator.migrate([legacy])
        migrated = result.schemes[0]

        assert [d.label for d in migrated.relationship_definitions] == ["a", "b"]
        assert all(d.description == "" for d in migrated.relationship_definitions)


class TestIdempotence:
    """Test a second pass is a no-op."""

    @pytest.mark.parametrize(
        "schemes",
        [
            [],
            [TaxonomyScheme(id="scheme-networking", name="Networking", relationship_labels=["x"])],
            [TaxonomyScheme(id="scheme-useful-harmful", name="UH", tag_colors={"Useful": "#fff"})],
        ],
    )
    def test_second_pass_reports_nothing(self, migrator, schemes):
        """Test migrating the output again changes nothing."""
        first = migrator.migrate(schemes)
        second = migrator.migrate(first.schemes)

        assert first.changed
        assert second.changes == []
        assert _dump(second.schemes) == _dump(first.schemes)
