"""
Structural validation for resources and Bundles.

Warnings are advisory: nothing here raises, and a non-empty result never
blocks signing. Only required-field and enum checks are performed against the
BIND schemas; `validate_against_schema` is kept for the small JSON documents
this service exchanges with the outside world (key sets, stored state).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import jsonschema

from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.schemas.resolver import resolve_root_ref

BUNDLE_TYPES = frozenset(
    {
        "document",
        "message",
        "transaction",
        "transaction-response",
        "batch",
        "batch-response",
        "searchset",
        "history",
        "collection",
    }
)

ENUM_HINT_LIMIT = 4


@dataclass(frozen=True)
class ValidationWarning:
    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def validate_against_schema(data: Any, schema: dict[str, Any]) -> list[str]:
    """
    Validate data against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [error.message for error in validator.iter_errors(data)]


def _enum_hint(values: list[Any]) -> str:
    shown = ", ".join(str(v) for v in values[:ENUM_HINT_LIMIT])
    return shown + (", ..." if len(values) > ENUM_HINT_LIMIT else "")


def _join(base: str, field: str) -> str:
    return f"{base}.{field}" if base else field


def validate_resource(
    resource: dict[str, Any],
    definition: dict[str, Any],
    base_path: str = "",
) -> list[ValidationWarning]:
    """Check required fields and enum membership of one resource."""
    warnings: list[ValidationWarning] = []
    properties = definition.get("properties") or {}

    for field in definition.get("required") or []:
        if field == "resourceType":
            continue
        value = resource.get(field)
        if value is None or value == "":
            prop = properties.get(field) or {}
            hint = f" (one of: {_enum_hint(prop['enum'])})" if prop.get("enum") else ""
            warnings.append(
                ValidationWarning(
                    path=_join(base_path, field),
                    message=f'Required field "{field}" is missing{hint}',
                )
            )

    for field, prop in properties.items():
        allowed = prop.get("enum")
        if not isinstance(allowed, list):
            continue
        value = resource.get(field)
        if value is None:
            continue
        if value not in allowed:
            warnings.append(
                ValidationWarning(
                    path=_join(base_path, field),
                    message=(
                        f'Invalid value "{value}" for "{field}" '
                        f"(expected: {_enum_hint(allowed)})"
                    ),
                )
            )

    return warnings


def validate_bundle(bundle: Any, registry: SchemaRegistry) -> list[ValidationWarning]:
    """Validate Bundle shape, then every entry's resource against its schema."""
    if not isinstance(bundle, dict):
        return [ValidationWarning(path="", message="Bundle must be a JSON object")]

    warnings: list[ValidationWarning] = []

    if bundle.get("resourceType") != "Bundle":
        actual = bundle.get("resourceType", "undefined")
        warnings.append(
            ValidationWarning(
                path="resourceType", message=f'Expected "Bundle" but got "{actual}"'
            )
        )

    bundle_type = bundle.get("type")
    if not bundle_type:
        warnings.append(ValidationWarning(path="type", message='Missing required field "type"'))
    elif not isinstance(bundle_type, str) or bundle_type not in BUNDLE_TYPES:
        warnings.append(
            ValidationWarning(path="type", message=f'Unknown bundle type "{bundle_type}"')
        )

    entries = bundle.get("entry")
    if entries is None:
        warnings.append(ValidationWarning(path="entry", message='Missing "entry" array'))
        return warnings
    if not isinstance(entries, list):
        warnings.append(ValidationWarning(path="entry", message='"entry" must be an array'))
        return warnings
    if not entries:
        warnings.append(ValidationWarning(path="entry", message="Bundle has no entries"))
        return warnings

    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            warnings.append(
                ValidationWarning(path=f"entry[{i}]", message="Invalid entry (not an object)")
            )
            continue

        path = f"entry[{i}].resource"
        resource = entry.get("resource")
        if not isinstance(resource, dict):
            warnings.append(ValidationWarning(path=path, message="Missing resource"))
            continue

        resource_type = resource.get("resourceType")
        if not resource_type:
            warnings.append(ValidationWarning(path=path, message="Missing resourceType"))
            continue

        if not isinstance(resource_type, str) or not registry.is_resource(resource_type):
            warnings.append(
                ValidationWarning(path=path, message=f'Unknown resourceType "{resource_type}"')
            )
            continue

        root = resolve_root_ref(registry.get_schema(resource_type) or {})
        if root is not None:
            warnings.extend(validate_resource(resource, root.definition, path))

    return warnings
