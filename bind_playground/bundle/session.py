"""
The working Bundle for one playground session.

Restores the last snapshot at construction, applies actions through the pure
reducer and writes a snapshot after every mutation. Storage problems are
logged and otherwise ignored: losing a snapshot must never lose the in-memory
Bundle.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from bind_playground.bundle.reducer import (
    BundleAction,
    ImportBundle,
    bundle_reducer,
    empty_bundle,
)
from bind_playground.bundle.utils import get_resource_summary
from bind_playground.schemas.documents import BUNDLE_SNAPSHOT_SCHEMA
from bind_playground.services.storage import BUNDLE_SLOT, KeyValueStore, StorageError
from bind_playground.services.validation import validate_against_schema

logger = logging.getLogger(__name__)


class BundleImportError(ValueError):
    """Raised when user-supplied Bundle JSON is rejected."""


def parse_bundle_json(text: str) -> dict[str, Any]:
    """Parse and shape-check Bundle JSON text supplied by a user."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BundleImportError(f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc

    if not isinstance(data, dict):
        raise BundleImportError("Bundle JSON must be an object")
    if data.get("resourceType") != "Bundle":
        raise BundleImportError(
            f'Expected resourceType "Bundle" but got "{data.get("resourceType", "undefined")}"'
        )
    if "entry" not in data:
        raise BundleImportError('Bundle is missing the "entry" array')
    if not isinstance(data["entry"], list):
        raise BundleImportError('Bundle "entry" must be an array')
    return data


class BundleSession:
    def __init__(self, store: KeyValueStore):
        self._store = store
        self.bundle = self._restore()

    def _restore(self) -> dict[str, Any]:
        snapshot = self._store.load(BUNDLE_SLOT)
        if snapshot is None:
            return empty_bundle()
        if validate_against_schema(snapshot, BUNDLE_SNAPSHOT_SCHEMA):
            logger.warning("Discarding malformed Bundle snapshot")
            return empty_bundle()
        logger.info("Restored Bundle with %d entries", len(snapshot["entry"]))
        return snapshot

    def _persist(self) -> None:
        try:
            self._store.save(BUNDLE_SLOT, self.bundle)
        except StorageError as exc:
            logger.warning("Bundle snapshot not saved: %s", exc)

    def dispatch(self, action: BundleAction) -> dict[str, Any]:
        self.bundle = bundle_reducer(self.bundle, action)
        logger.info(
            "%s applied, Bundle now has %d entries",
            type(action).__name__,
            len(self.bundle.get("entry", [])),
        )
        self._persist()
        return self.bundle

    def import_json(self, text: str) -> dict[str, Any]:
        """Replace the Bundle with parsed user JSON; on rejection nothing changes."""
        bundle = parse_bundle_json(text)
        return self.dispatch(ImportBundle(bundle))

    def export_json(self) -> str:
        return json.dumps(self.bundle, indent=2)

    def summary(self) -> dict[str, int]:
        return get_resource_summary(self.bundle)
