"""
Services for Tapestry persistence.

High-level business logic services:
- PersistenceEngine: Unified interface for all persistence operations
- ImportReconciler: External file parsing and conflict detection
- AutosaveController: Hash-gated commits of the working copy
- PersistenceSession, Lifecycle: Session state and load gating
- WorkingCopyProvider, InMemoryWorkingCopy: Access to the live model
"""

from tapestry.services.autosave import AutosaveController
from tapestry.services.import_reconciler import ImportReconciler
from tapestry.services.persistence_engine import PersistenceEngine
from tapestry.services.session import Lifecycle, PersistenceSession
from tapestry.services.working_copy import InMemoryWorkingCopy, WorkingCopyProvider

__all__ = [
    "PersistenceEngine",
    "ImportReconciler",
    "AutosaveController",
    "PersistenceSession",
    "Lifecycle",
    "WorkingCopyProvider",
    "InMemoryWorkingCopy",
]
