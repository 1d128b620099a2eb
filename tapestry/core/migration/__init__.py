"""
Taxonomy schema migration.
"""

from tapestry.core.migration.migrator import SchemaMigrator

__all__ = ["SchemaMigrator"]
