"""
Classification of schema properties into a closed set of field kinds.

The form API, the initial-value builder and the validators all need to know
what a property *is*; this module derives that once per property so every
consumer agrees.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bind_playground.schemas.resolver import resolve_ref
from bind_playground.schemas.types import SpecialType, detect_special_type

MAX_DEPTH = 8


class FieldKind(str, Enum):
    STRING = "string"
    ENUM = "enum"
    DATE = "date"
    DATE_TIME = "date-time"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    SPECIAL = "special"
    REF = "ref"
    CONSTANT = "constant"
    UNKNOWN = "unknown"


@dataclass
class FieldDescriptor:
    name: str
    label: str
    kind: FieldKind
    required: bool = False
    description: str | None = None
    enum: list[str] = field(default_factory=list)
    special_type: SpecialType | None = None
    family: str | None = None
    ref_name: str | None = None
    terminology: dict[str, str] | None = None
    items: FieldDescriptor | None = None
    children: list[FieldDescriptor] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "kind": self.kind.value,
            "required": self.required,
        }
        if self.description:
            out["description"] = self.description
        if self.enum:
            out["enum"] = list(self.enum)
        if self.special_type is not None:
            out["specialType"] = self.special_type.value
        if self.family:
            out["family"] = self.family
        if self.ref_name:
            out["ref"] = self.ref_name
        if self.terminology:
            out["terminology"] = dict(self.terminology)
        if self.items is not None:
            out["items"] = self.items.to_dict()
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


def format_label(name: str) -> str:
    """'effectiveDate' -> 'Effective Date'."""
    spaced = re.sub(r"([A-Z])", r" \1", name).strip()
    return spaced[:1].upper() + spaced[1:]


def classify_field(prop: dict[str, Any], root_schema: dict[str, Any]) -> FieldKind:
    """Derive the FieldKind of a single property definition."""
    if "const" in prop:
        return FieldKind.CONSTANT

    ref = prop.get("$ref")
    if ref:
        if detect_special_type(ref) is not None:
            return FieldKind.SPECIAL
        if resolve_ref(ref, root_schema) is not None:
            return FieldKind.REF
        return FieldKind.UNKNOWN

    prop_type = prop.get("type")
    if prop_type == "string":
        if prop.get("enum"):
            return FieldKind.ENUM
        if prop.get("format") == "date":
            return FieldKind.DATE
        if prop.get("format") == "date-time":
            return FieldKind.DATE_TIME
        return FieldKind.STRING
    if prop_type in ("number", "integer"):
        return FieldKind.NUMBER
    if prop_type == "boolean":
        return FieldKind.BOOLEAN
    if prop_type == "array":
        return FieldKind.ARRAY
    if prop_type == "object":
        return FieldKind.OBJECT
    return FieldKind.UNKNOWN


def describe_field(
    name: str,
    prop: dict[str, Any],
    root_schema: dict[str, Any],
    required: bool = False,
    depth: int = 0,
) -> FieldDescriptor:
    kind = classify_field(prop, root_schema)
    descriptor = FieldDescriptor(
        name=name,
        label=format_label(name),
        kind=kind,
        required=required,
        description=prop.get("description"),
        enum=list(prop.get("enum") or []),
        terminology=prop.get("x-terminology"),
    )

    if depth >= MAX_DEPTH:
        return descriptor

    if kind == FieldKind.SPECIAL:
        descriptor.special_type = detect_special_type(prop["$ref"])
        descriptor.family = descriptor.special_type.family
    elif kind == FieldKind.REF:
        resolved = resolve_ref(prop["$ref"], root_schema)
        descriptor.ref_name = resolved.name
        descriptor.children = describe_fields(resolved.definition, root_schema, depth + 1)
    elif kind == FieldKind.OBJECT:
        descriptor.children = describe_fields(prop, root_schema, depth + 1)
    elif kind == FieldKind.ARRAY and isinstance(prop.get("items"), dict):
        descriptor.items = describe_field(name, prop["items"], root_schema, depth=depth + 1)

    return descriptor


def describe_fields(
    definition: dict[str, Any],
    root_schema: dict[str, Any],
    depth: int = 0,
) -> list[FieldDescriptor]:
    """Describe every editable property of `definition`; const fields are skipped."""
    if depth > MAX_DEPTH:
        return []

    properties = definition.get("properties")
    if not isinstance(properties, dict):
        return []

    required = set(definition.get("required") or [])
    descriptors = []
    for name, prop in properties.items():
        descriptor = describe_field(name, prop, root_schema, name in required, depth)
        if descriptor.kind == FieldKind.CONSTANT:
            continue
        descriptors.append(descriptor)
    return descriptors
