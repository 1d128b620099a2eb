"""
ID and naming utilities for Tapestry models.

- Model IDs: plain UUID4 strings (globally unique, immutable)
- Filenames: "<name with underscores>.json"
- Display names: numeric suffix until unique ("Alpha", "Alpha 2", ...)
"""

from collections.abc import Iterable
from uuid import uuid4


def generate_model_id() -> str:
    """
    Generate unique Model ID.

    Returns:
        UUID4 string in canonical 36-character form
    """
    return str(uuid4())


def suggest_filename(name: str) -> str:
    """
    Build the default export filename for a model name.

    Args:
        name: Model display name

    Returns:
        Name with spaces replaced by underscores and a ``.json`` suffix
    """
    return f"{name.replace(' ', '_')}.json"


def dedupe_name(name: str, existing: Iterable[str]) -> str:
    """
    Append an incrementing suffix until the name is unique.

    Args:
        name: Desired display name
        existing: Names already taken

    Returns:
        ``name`` if free, otherwise ``"name 2"``, ``"name 3"`` ...
    """
    taken = set(existing)
    candidate = name
    i = 1
    while candidate in taken:
        i += 1
        candidate = f"{name} {i}"
    return candidate
