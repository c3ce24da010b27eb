"""Lookup of schema documents by resource or data type name."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from bind_playground.schemas.bind import builtin_documents
from bind_playground.schemas.resolver import resolve_root_ref

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Holds resource and supporting schema documents.

    Resource documents are the ones whose root definition declares a
    `resourceType` property; everything else is a supporting data type.
    """

    def __init__(
        self,
        resources: dict[str, dict[str, Any]] | None = None,
        supporting: dict[str, dict[str, Any]] | None = None,
    ):
        self._resources: dict[str, dict[str, Any]] = dict(resources or {})
        self._supporting: dict[str, dict[str, Any]] = dict(supporting or {})

    @classmethod
    def builtin(cls, schema_dir: str | None = None) -> SchemaRegistry:
        registry = cls(*builtin_documents())
        if schema_dir:
            registry.load_directory(schema_dir)
        return registry

    def register(self, name: str, document: dict[str, Any]) -> None:
        root = resolve_root_ref(document)
        properties = root.definition.get("properties", {}) if root else {}
        if "resourceType" in properties:
            self._resources[name] = document
        else:
            self._supporting[name] = document

    def load_directory(self, path: str | Path) -> int:
        """Register every `*.json` schema document in `path`; returns the count."""
        directory = Path(path)
        if not directory.is_dir():
            logger.warning("Schema directory %s does not exist, skipping", directory)
            return 0

        loaded = 0
        for file in sorted(directory.glob("*.json")):
            try:
                document = json.loads(file.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable schema %s: %s", file.name, exc)
                continue
            if not isinstance(document, dict) or resolve_root_ref(document) is None:
                logger.warning("Skipping %s: no resolvable root $ref", file.name)
                continue
            self.register(file.stem, document)
            loaded += 1

        logger.info("Loaded %d schema documents from %s", loaded, directory)
        return loaded

    def get_schema(self, name: str) -> dict[str, Any] | None:
        return self._resources.get(name) or self._supporting.get(name)

    def resource_names(self) -> list[str]:
        return list(self._resources)

    def supporting_names(self) -> list[str]:
        return list(self._supporting)

    def all_names(self) -> list[str]:
        return self.resource_names() + self.supporting_names()

    def is_resource(self, name: str) -> bool:
        return isinstance(name, str) and name in self._resources
