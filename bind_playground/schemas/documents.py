"""
JSON schemas for the documents this service stores or receives.

These are contracts for our own plumbing (persisted slots, directory key
sets), not BIND resource schemas.
"""

BUNDLE_SNAPSHOT_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Persisted Bundle snapshot",
    "type": "object",
    "required": ["resourceType", "entry"],
    "properties": {
        "resourceType": {"const": "Bundle"},
        "entry": {"type": "array"},
    },
}


KEY_PAIR_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Persisted signing key pair",
    "type": "object",
    "required": ["privateKey", "publicKey", "kid"],
    "properties": {
        "privateKey": {"type": "object", "required": ["kty", "d"]},
        "publicKey": {"type": "object", "required": ["kty"]},
        "kid": {"type": "string", "minLength": 1},
    },
}


JWKS_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "JSON Web Key Set",
    "type": "object",
    "required": ["keys"],
    "properties": {
        "keys": {
            "type": "array",
            "items": {"type": "object", "required": ["kty"]},
        },
    },
}
