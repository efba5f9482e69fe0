"""
RequestGraph Backend — Document Attribute Helpers
===================================================

What:  Key/revision generation, handle validation, patch merging, and the
       conversion between stored rows and API entities.
Why:   Keeps CollectionStore focused on the read/write sequence.

System attributes:
    _key   collection-unique key (client-supplied or generated)
    _id    "<collection>/<_key>" handle, derived, never stored in the body
    _rev   opaque revision token, regenerated on every write
    _from  edge source handle  (edge collections only)
    _to    edge target handle  (edge collections only)
"""

import re
import uuid
from typing import Any, Dict, Mapping, Optional, Tuple

from app.exceptions import ValidationError
from app.models.document import Document, EDGE_KIND

SYSTEM_ATTRIBUTES = ("_key", "_id", "_rev", "_from", "_to")

# ArangoDB key rules: 1-254 chars from a restricted alphabet
KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.@()+,=;$!*'%]{1,254}$")

HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+/[A-Za-z0-9_\-:.@()+,=;$!*'%]{1,254}$")


def new_key() -> str:
    return uuid.uuid4().hex


def validate_key(key: Any) -> str:
    """Rejects client-supplied keys the store could not address."""
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        raise ValidationError(
            message=(
                "Invalid _key. Keys are 1-254 characters from letters, digits "
                "and _ - : . @ ( ) + , = ; $ ! * ' %"
            ),
            field="_key",
        )
    return key


def validate_handle(value: Any, field: str) -> str:
    """
    Checks that an edge endpoint looks like "<collection>/<key>".

    Only the format is checked; the referenced document may not exist.
    """
    if not isinstance(value, str) or not HANDLE_PATTERN.match(value):
        raise ValidationError(
            message=f"Invalid {field}: expected a document handle like 'requests/123'",
            field=field,
        )
    return value


def split_system_attributes(
    data: Mapping[str, Any],
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Returns (system attributes, user attributes)."""
    system = {k: v for k, v in data.items() if k in SYSTEM_ATTRIBUTES}
    body = {k: v for k, v in data.items() if k not in SYSTEM_ATTRIBUTES}
    return system, body


def edge_endpoints(
    system: Mapping[str, Any], required: bool
) -> Tuple[Optional[str], Optional[str]]:
    """Extracts and validates _from/_to; both must be present when required."""
    from_handle = system.get("_from")
    to_handle = system.get("_to")
    if required and (from_handle is None or to_handle is None):
        raise ValidationError(
            message="Edge documents require both _from and _to",
            field="_from" if from_handle is None else "_to",
        )
    if from_handle is not None:
        validate_handle(from_handle, "_from")
    if to_handle is not None:
        validate_handle(to_handle, "_to")
    return from_handle, to_handle


def merge_patch(target: Dict[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merges `patch` into a copy of `target`.

    Nested objects are merged recursively; any other value (including None
    and lists) replaces the stored value.
    """
    merged = dict(target)
    for name, value in patch.items():
        current = merged.get(name)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[name] = merge_patch(current, value)
        else:
            merged[name] = value
    return merged


def to_entity(document: Document, kind: str) -> Dict[str, Any]:
    """Builds the API representation of a stored row."""
    entity: Dict[str, Any] = {
        "_key": document.key,
        "_id": f"{document.collection}/{document.key}",
        "_rev": document.rev,
    }
    if kind == EDGE_KIND:
        entity["_from"] = document.from_handle
        entity["_to"] = document.to_handle
    entity.update(document.body or {})
    return entity
