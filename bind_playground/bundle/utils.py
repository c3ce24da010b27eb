"""Derived, read-only views over a Bundle."""

from __future__ import annotations

from collections import Counter
from typing import Any


def get_resources_by_type(bundle: dict[str, Any], resource_type: str) -> list[dict[str, Any]]:
    return [
        entry
        for entry in bundle.get("entry", [])
        if isinstance(entry, dict)
        and isinstance(entry.get("resource"), dict)
        and entry["resource"].get("resourceType") == resource_type
    ]


def get_resource_display(resource: dict[str, Any], fallback: str | None = None) -> str:
    """Best-effort human label: name (string or {text}), then display, then `fallback`."""
    name = resource.get("name")
    if isinstance(name, str) and name:
        return name
    if isinstance(name, dict) and isinstance(name.get("text"), str) and name["text"]:
        return name["text"]

    display = resource.get("display")
    if isinstance(display, str) and display:
        return display

    if fallback is not None:
        return fallback
    return f"{resource.get('resourceType') or 'Resource'}/{resource.get('id') or '?'}"


def build_reference(resource: dict[str, Any]) -> dict[str, str]:
    resource_type = resource.get("resourceType") or "Resource"
    resource_id = resource.get("id") or "unknown"
    reference = f"{resource_type}/{resource_id}"
    display = get_resource_display(resource, fallback=reference)
    return {"reference": reference, "display": display}


def get_entry_full_url(entry: dict[str, Any]) -> str:
    if entry.get("fullUrl"):
        return entry["fullUrl"]
    if isinstance(entry.get("resource"), dict):
        return build_reference(entry["resource"])["reference"]
    return "unknown"


def get_resource_summary(bundle: dict[str, Any]) -> dict[str, int]:
    """Count entries per resourceType."""
    counts: Counter[str] = Counter()
    for entry in bundle.get("entry", []):
        resource = entry.get("resource") if isinstance(entry, dict) else None
        if not isinstance(resource, dict):
            continue
        resource_type = resource.get("resourceType")
        counts[resource_type if isinstance(resource_type, str) and resource_type else "Unknown"] += 1
    return dict(counts)
