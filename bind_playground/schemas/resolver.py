"""
Resolution of local `$ref` pointers inside a BIND schema document.

Every schema document carries a `definitions` block and a root `$ref`
pointing into it, e.g. ``{"$ref": "#/definitions/Insured", "definitions": {...}}``.
Only refs of the form ``#/definitions/<Name>`` are understood; anything else
resolves to ``None`` so callers can fall back to generic handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFINITIONS_PREFIX = "#/definitions/"


@dataclass(frozen=True)
class ResolvedRef:
    name: str
    definition: dict[str, Any]


def ref_name(ref: str) -> str | None:
    """Return the definition name a local ref points at, or None."""
    if not isinstance(ref, str) or not ref.startswith(DEFINITIONS_PREFIX):
        return None
    return ref[len(DEFINITIONS_PREFIX):]


def get_definitions(schema: dict[str, Any]) -> dict[str, dict[str, Any]]:
    definitions = schema.get("definitions")
    return definitions if isinstance(definitions, dict) else {}


def resolve_ref(ref: str, schema: dict[str, Any]) -> ResolvedRef | None:
    """Resolve `ref` against the `definitions` block of `schema`."""
    name = ref_name(ref)
    if name is None:
        return None
    definition = get_definitions(schema).get(name)
    if not isinstance(definition, dict):
        return None
    return ResolvedRef(name=name, definition=definition)


def resolve_root_ref(schema: dict[str, Any]) -> ResolvedRef | None:
    """Resolve the schema's own top-level `$ref`, if it has one."""
    ref = schema.get("$ref")
    if not ref:
        return None
    return resolve_ref(ref, schema)
