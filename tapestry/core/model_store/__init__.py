"""
Model persistence: payload store and metadata registry.
"""

from tapestry.core.model_store.model_store import MODEL_DATA_PREFIX, ModelStore
from tapestry.core.model_store.registry import (
    LAST_OPENED_MODEL_ID_KEY,
    MODELS_INDEX_KEY,
    ModelRegistry,
)

__all__ = [
    "ModelStore",
    "ModelRegistry",
    "MODEL_DATA_PREFIX",
    "MODELS_INDEX_KEY",
    "LAST_OPENED_MODEL_ID_KEY",
]
