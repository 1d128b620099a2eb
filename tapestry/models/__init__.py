"""
Data models for Tapestry persistence.

Core models:
- ModelMetadata: Registry record (listing without payloads)
- ModelData, Element, Relationship, SystemPromptConfig: Model payload
- TaxonomyScheme, RelationshipDefinition, MigrationResult: Taxonomy
- Loaded, Conflict, Failed, ImportOutcome: Import reconciliation results
- ConflictResolution, SaveOutcome, SaveStatus: Caller decisions and save results
"""

from tapestry.models.metadata import ModelMetadata
from tapestry.models.model_data import Element, ModelData, Relationship, SystemPromptConfig
from tapestry.models.results import (
    Conflict,
    ConflictResolution,
    Failed,
    ImportOutcome,
    Loaded,
    SaveOutcome,
    SaveStatus,
)
from tapestry.models.taxonomy import MigrationResult, RelationshipDefinition, TaxonomyScheme

__all__ = [
    # Registry
    "ModelMetadata",
    # Payload
    "ModelData",
    "Element",
    "Relationship",
    "SystemPromptConfig",
    # Taxonomy
    "TaxonomyScheme",
    "RelationshipDefinition",
    "MigrationResult",
    # Results
    "Loaded",
    "Conflict",
    "Failed",
    "ImportOutcome",
    "ConflictResolution",
    "SaveOutcome",
    "SaveStatus",
]
