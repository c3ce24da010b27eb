"""Tests for the schema registry and built-in BIND documents."""

import json

from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.schemas.resolver import resolve_ref, resolve_root_ref


def test_builtin_resources_and_supporting_types(registry):
    assert {"Insured", "Policy", "Coverage", "Claim", "Location"} <= set(registry.resource_names())
    assert {"Money", "Period", "Coding", "ContactPoint"} <= set(registry.supporting_names())
    assert registry.is_resource("Policy")
    assert not registry.is_resource("Money")
    assert registry.get_schema("Nope") is None


def test_builtin_documents_resolve_every_ref(registry):
    """Every $ref inside a built-in document points at one of its own definitions."""

    def refs(node):
        if isinstance(node, dict):
            if isinstance(node.get("$ref"), str):
                yield node["$ref"]
            for value in node.values():
                yield from refs(value)
        elif isinstance(node, list):
            for value in node:
                yield from refs(value)

    for name in registry.all_names():
        document = registry.get_schema(name)
        assert resolve_root_ref(document).name == name
        for ref in refs(document["definitions"]):
            assert resolve_ref(ref, document) is not None, f"{name}: {ref}"


def test_load_directory(tmp_path):
    (tmp_path / "Vehicle.json").write_text(
        json.dumps(
            {
                "$ref": "#/definitions/Vehicle",
                "definitions": {
                    "Vehicle": {"type": "object", "properties": {"resourceType": {"const": "Vehicle"}}}
                },
            }
        )
    )
    (tmp_path / "Color.json").write_text(
        json.dumps({"$ref": "#/definitions/Color", "definitions": {"Color": {"type": "string"}}})
    )
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "rootless.json").write_text(json.dumps({"definitions": {}}))

    registry = SchemaRegistry()
    assert registry.load_directory(tmp_path) == 2
    assert registry.resource_names() == ["Vehicle"]
    assert registry.supporting_names() == ["Color"]


def test_missing_directory_is_skipped(tmp_path):
    assert SchemaRegistry().load_directory(tmp_path / "absent") == 0
