"""Shared fixtures – everything runs against in-memory SQLite and fake HTTP."""

import httpx
import pytest

from bind_playground.exchange.keys import generate_key_pair
from bind_playground.models.database import make_session_factory
from bind_playground.schemas.registry import SchemaRegistry
from bind_playground.services.storage import KeyValueStore

TEST_SCHEMA = {
    "$ref": "#/definitions/Widget",
    "definitions": {
        "Widget": {
            "type": "object",
            "required": ["resourceType", "name", "status"],
            "properties": {
                "resourceType": {"type": "string", "const": "Widget"},
                "name": {"type": "string"},
                "status": {"type": "string", "enum": ["draft", "active", "retired"]},
                "color": {
                    "type": "string",
                    "enum": ["red", "orange", "yellow", "green", "blue", "violet"],
                },
                "weight": {"type": "number"},
                "count": {"type": "integer"},
                "fragile": {"type": "boolean"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "origin": {"$ref": "#/definitions/Place"},
                "price": {"$ref": "#/definitions/Money"},
                "missing": {"$ref": "#/definitions/DoesNotExist"},
                "dimensions": {
                    "type": "object",
                    "properties": {
                        "height": {"type": "number"},
                        "unit": {"type": "string", "default": "cm"},
                    },
                },
                "notes": {},
            },
        },
        "Place": {
            "type": "object",
            "properties": {
                "city": {"type": "string"},
                "country": {"type": "string", "default": "US"},
            },
        },
        "Money": {
            "type": "object",
            "properties": {
                "value": {"type": "number"},
                "currency": {"type": "string"},
            },
        },
        # Self-referencing definition to exercise the depth guard
        "Node": {
            "type": "object",
            "properties": {
                "label": {"type": "string"},
                "child": {"$ref": "#/definitions/Node"},
            },
        },
    },
}


@pytest.fixture
def schema():
    return TEST_SCHEMA


@pytest.fixture
def registry():
    return SchemaRegistry.builtin()


@pytest.fixture
def session_factory():
    return make_session_factory("sqlite://")


@pytest.fixture
def store(session_factory):
    return KeyValueStore(session_factory)


@pytest.fixture(scope="session")
def key_pair():
    return generate_key_pair()


def json_transport(routes):
    """
    httpx.MockTransport answering from a {(method, url): (status, json)} map.
    Every request is appended to `transport.requests`.
    """
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        status, body = routes.get((request.method, str(request.url)), (404, {"error": "no route"}))
        return httpx.Response(status, json=body)

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture
def make_transport():
    return json_transport
