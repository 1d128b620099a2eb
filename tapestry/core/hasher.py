"""
Content hashing for change detection.

The digest is a pure function of a payload's canonical structure:
- mapping keys are sorted
- ``None`` values and empty containers inside mappings are dropped, so an
  absent field and an empty one hash the same
- sets are sorted; lists keep their order

Used for equality testing only, never for security.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from tapestry.models.model_data import ModelData

HASH_PREFIX = "sha256:"


def canonicalize(value: Any) -> Any:
    """
    Reduce a JSON-compatible value to its canonical form.

    Args:
        value: Primitive, mapping, list, tuple or set

    Returns:
        Equivalent value with empty/None mapping entries removed and
        sets converted to sorted lists
    """
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            item = canonicalize(item)
            if item is None or item == {} or item == []:
                continue
            result[str(key)] = item
        return result
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        items = [canonicalize(item) for item in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    return value


def canonical_json(data: ModelData | Mapping[str, Any]) -> str:
    """Serialize a payload in canonical form."""
    if not isinstance(data, ModelData):
        data = ModelData.model_validate(data)
    dumped = data.model_dump(mode="json", by_alias=True)
    return json.dumps(
        canonicalize(dumped),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_content_hash(data: ModelData | Mapping[str, Any]) -> str:
    """
    Compute the SHA256 fingerprint of a model payload.

    Raw mappings are normalized through ModelData first so that a file
    and the in-memory model it was loaded into hash identically.

    Args:
        data: Model payload

    Returns:
        Hash string in format "sha256:hexdigest"
    """
    digest = hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()
    return f"{HASH_PREFIX}{digest}"
