"""
Working copy access.

The editor owns the live model state. The persistence engine only reads
snapshots of it and pushes rehydrated state back, through this interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from tapestry.models.model_data import Element, ModelData, Relationship, SystemPromptConfig
from tapestry.models.taxonomy import TaxonomyScheme


class WorkingCopyProvider(ABC):
    """Snapshot accessor and setter for the in-memory working copy."""

    @abstractmethod
    def get_working_copy(self) -> ModelData:
        """Return a snapshot of the current working copy."""
        pass

    @abstractmethod
    def apply_working_copy(self, data: ModelData) -> None:
        """Replace the working copy after a load or import."""
        pass


class InMemoryWorkingCopy(WorkingCopyProvider):
    """
    Working copy held in process.

    Facet setters mirror what the editor's UI layer calls. Changes made
    through them reach the store on the next autosave, which the engine
    also runs before it switches to another model.
    """

    def __init__(self, data: ModelData | None = None):
        self._data = data.model_copy(deep=True) if data is not None else ModelData()

    def get_working_copy(self) -> ModelData:
        return self._data.model_copy(deep=True)

    def apply_working_copy(self, data: ModelData) -> None:
        self._data = data.model_copy(deep=True)

    def _set(self, **facets: Any) -> None:
        self._data = self._data.model_copy(update=facets, deep=True)

    def set_elements(self, elements: list[Element]) -> None:
        self._set(elements=list(elements))

    def add_element(self, element: Element) -> None:
        self._set(elements=[*self._data.elements, element])

    def set_relationships(self, relationships: list[Relationship]) -> None:
        self._set(relationships=list(relationships))

    def add_relationship(self, relationship: Relationship) -> None:
        self._set(relationships=[*self._data.relationships, relationship])

    def set_documents(self, documents: list[dict[str, Any]]) -> None:
        self._set(documents=list(documents))

    def set_folders(self, folders: list[dict[str, Any]]) -> None:
        self._set(folders=list(folders))

    def set_history(self, history: list[dict[str, Any]]) -> None:
        self._set(history=list(history))

    def set_slides(self, slides: list[dict[str, Any]]) -> None:
        self._set(slides=list(slides))

    def set_mermaid_diagrams(self, diagrams: list[dict[str, Any]]) -> None:
        self._set(mermaid_diagrams=list(diagrams))

    def set_color_schemes(self, schemes: list[TaxonomyScheme]) -> None:
        self._set(color_schemes=list(schemes))

    def set_active_scheme_id(self, scheme_id: str | None) -> None:
        self._set(active_scheme_id=scheme_id)

    def set_system_prompt_config(self, config: SystemPromptConfig) -> None:
        self._set(system_prompt_config=config)
