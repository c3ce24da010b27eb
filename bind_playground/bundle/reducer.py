"""
Pure state transitions for the working Bundle.

`bundle_reducer` is a total function: it never raises and never mutates the
state it is given. Unknown actions and out-of-range indices leave the state
unchanged.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

EMPTY_BUNDLE: dict[str, Any] = {"resourceType": "Bundle", "type": "collection", "entry": []}


def empty_bundle() -> dict[str, Any]:
    return copy.deepcopy(EMPTY_BUNDLE)


@dataclass(frozen=True)
class AddResource:
    resource: dict[str, Any]


@dataclass(frozen=True)
class UpdateResource:
    index: int
    resource: dict[str, Any]


@dataclass(frozen=True)
class RemoveResource:
    index: int


@dataclass(frozen=True)
class ImportBundle:
    bundle: dict[str, Any]


@dataclass(frozen=True)
class ClearBundle:
    pass


BundleAction = Union[AddResource, UpdateResource, RemoveResource, ImportBundle, ClearBundle]


def mint_resource_id(resource_type: str) -> str:
    """`{resourceType}-{token}`; the token is random so rapid adds never collide."""
    return f"{resource_type}-{uuid.uuid4().hex[:12]}"


def make_full_url(resource: dict[str, Any]) -> str:
    resource_type = resource.get("resourceType") or "Resource"
    resource_id = resource.get("id") or mint_resource_id(resource_type)
    return f"{resource_type}/{resource_id}"


def _with_id(resource: dict[str, Any]) -> dict[str, Any]:
    resource = copy.deepcopy(resource)
    if not resource.get("id"):
        resource["id"] = mint_resource_id(resource.get("resourceType") or "Resource")
    return resource


def _in_bounds(state: dict[str, Any], index: int) -> bool:
    return isinstance(index, int) and 0 <= index < len(state.get("entry", []))


def bundle_reducer(state: dict[str, Any], action: BundleAction) -> dict[str, Any]:
    if isinstance(action, AddResource):
        resource = _with_id(action.resource)
        entry = {"fullUrl": make_full_url(resource), "resource": resource}
        return {**state, "entry": [*state.get("entry", []), entry]}

    if isinstance(action, UpdateResource):
        if not _in_bounds(state, action.index):
            logger.warning("Ignoring update of entry %s: out of range", action.index)
            return state
        resource = _with_id(action.resource)
        entries = list(state["entry"])
        previous = entries[action.index] if isinstance(entries[action.index], dict) else {}
        entries[action.index] = {
            **previous,
            "fullUrl": make_full_url(resource),
            "resource": resource,
        }
        return {**state, "entry": entries}

    if isinstance(action, RemoveResource):
        if not _in_bounds(state, action.index):
            logger.warning("Ignoring removal of entry %s: out of range", action.index)
            return state
        entries = [e for i, e in enumerate(state["entry"]) if i != action.index]
        return {**state, "entry": entries}

    if isinstance(action, ImportBundle):
        return copy.deepcopy(action.bundle)

    if isinstance(action, ClearBundle):
        return empty_bundle()

    logger.warning("Ignoring unknown bundle action %r", action)
    return state
