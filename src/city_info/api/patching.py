"""
city_info.api.patching

Minimal JSON Patch (RFC 6902) support for flat update representations.

Responsibilities:
- Apply add/replace/remove/test operations to the top-level fields of a representation.
- Reject paths and operations the representation cannot take.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel

from city_info.api.schemas import JsonPatchOperation
from city_info.errors import InvalidPatch


def _field_for(model: type[BaseModel], path: str) -> str:
    segments = [s for s in path.split("/") if s]
    if len(segments) != 1:
        raise InvalidPatch(f"Path '{path}' does not address a top-level field.")
    token = segments[0].replace("~1", "/").replace("~0", "~")
    for name, info in model.model_fields.items():
        if token.lower() in {name.lower(), (info.alias or name).lower()}:
            return name
    raise InvalidPatch(f"Path '{path}' does not exist on {model.__name__}.")


def apply_patch(document: BaseModel, operations: Sequence[JsonPatchOperation]) -> dict[str, Any]:
    """
    Returns the patched field values; the caller validates them back into the model.
    """

    model = type(document)
    values = document.model_dump()
    for op in operations:
        name = _field_for(model, op.path)
        if op.op in ("add", "replace"):
            values[name] = op.value
        elif op.op == "remove":
            field = model.model_fields[name]
            if field.is_required():
                raise InvalidPatch(f"Path '{op.path}' is required and cannot be removed.")
            values[name] = field.get_default(call_default_factory=True)
        elif op.op == "test":
            if values[name] != op.value:
                raise InvalidPatch(f"Test failed for path '{op.path}'.")
        else:
            raise InvalidPatch(f"Operation '{op.op}' is not supported.")
    return values


# --- Module Notes -----------------------------------------------------------
# Nested documents are out of reach on purpose: update representations are flat.
