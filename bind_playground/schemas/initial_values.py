"""
Build empty, fully-shaped value trees from schema definitions.

Policy per property, first match wins:
  default -> const -> $ref (resolved and recursed) -> declared type.

Numbers start as None rather than 0: an absent number means "not yet entered".
"""

from __future__ import annotations

import copy
from typing import Any

from bind_playground.schemas.resolver import resolve_ref

MAX_DEPTH = 10


def build_initial_values(
    definition: dict[str, Any],
    root_schema: dict[str, Any],
    depth: int = 0,
) -> dict[str, Any]:
    """Recursively build initial form values for `definition`."""
    if depth > MAX_DEPTH:
        return {}

    properties = definition.get("properties")
    if not isinstance(properties, dict):
        return {}

    values: dict[str, Any] = {}
    for key, prop in properties.items():
        values[key] = _initial_value(prop, root_schema, depth)
    return values


def _initial_value(prop: dict[str, Any], root_schema: dict[str, Any], depth: int) -> Any:
    if "default" in prop:
        return copy.deepcopy(prop["default"])

    if "const" in prop:
        return copy.deepcopy(prop["const"])

    ref = prop.get("$ref")
    if ref:
        resolved = resolve_ref(ref, root_schema)
        if resolved is None:
            return {}
        return build_initial_values(resolved.definition, root_schema, depth + 1)

    prop_type = prop.get("type")
    if prop_type == "string":
        return ""
    if prop_type in ("number", "integer"):
        return None
    if prop_type == "boolean":
        return False
    if prop_type == "array":
        return []
    if prop_type == "object":
        return build_initial_values(prop, root_schema, depth + 1)
    return None


def build_array_item(
    items: dict[str, Any] | None,
    root_schema: dict[str, Any],
    depth: int = 0,
) -> Any:
    """Initial value for a newly appended element of an array property."""
    if not items:
        return {}

    ref = items.get("$ref")
    if ref:
        resolved = resolve_ref(ref, root_schema)
        if resolved is not None:
            return build_initial_values(resolved.definition, root_schema, depth + 1)

    if items.get("type") == "string":
        return ""
    if items.get("type") == "object":
        return build_initial_values(items, root_schema, depth + 1)
    return {}
