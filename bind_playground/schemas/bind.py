"""
Built-in BIND standard schema documents.

Each document follows the shape produced by the schema sync tooling: a root
`$ref` into a `definitions` block that also carries every supporting type the
resource refers to. This is a pragmatic subset of the published standard; more
documents can be dropped into SCHEMA_DIR as JSON files.
"""

from __future__ import annotations

import copy
from typing import Any

JSON_SCHEMA_DRAFT = "http://json-schema.org/draft-07/schema#"

# ---------------------------------------------------------------------------
# Supporting (data type) definitions
# ---------------------------------------------------------------------------

SUPPORTING_DEFINITIONS: dict[str, dict[str, Any]] = {
    "Coding": {
        "type": "object",
        "description": "A code drawn from a terminology system.",
        "properties": {
            "system": {"type": "string", "description": "Code system URI."},
            "code": {"type": "string"},
            "display": {"type": "string"},
        },
    },
    "CodeableConcept": {
        "type": "object",
        "description": "One or more codings plus free text.",
        "properties": {
            "coding": {"type": "array", "items": {"$ref": "#/definitions/Coding"}},
            "text": {"type": "string"},
        },
    },
    "Reference": {
        "type": "object",
        "description": "A typed pointer to another resource in the Bundle.",
        "properties": {
            "reference": {"type": "string", "description": "ResourceType/id"},
            "type": {"type": "string"},
            "display": {"type": "string"},
        },
    },
    "Money": {
        "type": "object",
        "properties": {
            "value": {"type": "number"},
            "currency": {"type": "string", "default": "USD"},
        },
    },
    "Period": {
        "type": "object",
        "properties": {
            "start": {"type": "string", "format": "date"},
            "end": {"type": "string", "format": "date"},
        },
    },
    "Address": {
        "type": "object",
        "properties": {
            "line": {"type": "array", "items": {"type": "string"}},
            "city": {"type": "string"},
            "state": {"type": "string"},
            "postalCode": {"type": "string"},
            "country": {"type": "string", "default": "US"},
        },
    },
    "Identifier": {
        "type": "object",
        "properties": {
            "system": {"type": "string"},
            "value": {"type": "string"},
        },
    },
    "Quantity": {
        "type": "object",
        "properties": {
            "value": {"type": "number"},
            "unit": {"type": "string"},
        },
    },
    "ContactPoint": {
        "type": "object",
        "properties": {
            "system": {
                "type": "string",
                "enum": ["phone", "fax", "email", "url", "other"],
            },
            "value": {"type": "string"},
        },
    },
}


# ---------------------------------------------------------------------------
# Resource definitions
# ---------------------------------------------------------------------------

RESOURCE_DEFINITIONS: dict[str, dict[str, Any]] = {
    "Insured": {
        "type": "object",
        "description": "The party whose risk is being insured.",
        "required": ["resourceType", "name"],
        "properties": {
            "resourceType": {"type": "string", "const": "Insured"},
            "id": {"type": "string"},
            "name": {"type": "string"},
            "dba": {"type": "array", "items": {"type": "string"}},
            "identifier": {"type": "array", "items": {"$ref": "#/definitions/Identifier"}},
            "entityType": {
                "type": "string",
                "enum": [
                    "corporation",
                    "llc",
                    "partnership",
                    "sole-proprietorship",
                    "nonprofit",
                    "individual",
                ],
            },
            "industry": {
                "$ref": "#/definitions/CodeableConcept",
                "x-terminology": {"system": "naics", "binding": "preferred"},
            },
            "address": {"$ref": "#/definitions/Address"},
            "telecom": {"type": "array", "items": {"$ref": "#/definitions/ContactPoint"}},
            "annualRevenue": {"$ref": "#/definitions/Money"},
            "employeeCount": {"type": "integer"},
            "yearsInBusiness": {"type": "number"},
        },
    },
    "Policy": {
        "type": "object",
        "description": "A bound contract of insurance.",
        "required": ["resourceType", "status", "insured", "period"],
        "properties": {
            "resourceType": {"type": "string", "const": "Policy"},
            "id": {"type": "string"},
            "policyNumber": {"type": "string"},
            "status": {
                "type": "string",
                "enum": ["quoted", "bound", "active", "expired", "cancelled"],
            },
            "lineOfBusiness": {
                "$ref": "#/definitions/Coding",
                "x-terminology": {"system": "line-of-business", "binding": "extensible"},
            },
            "insured": {"$ref": "#/definitions/Reference"},
            "period": {"$ref": "#/definitions/Period"},
            "premium": {"$ref": "#/definitions/Money"},
            "effectiveDate": {"type": "string", "format": "date"},
            "boundAt": {"type": "string", "format": "date-time"},
            "autoRenew": {"type": "boolean"},
        },
    },
    "Coverage": {
        "type": "object",
        "description": "A coverage part within a policy.",
        "required": ["resourceType", "policy", "coverageType"],
        "properties": {
            "resourceType": {"type": "string", "const": "Coverage"},
            "id": {"type": "string"},
            "policy": {"$ref": "#/definitions/Reference"},
            "coverageType": {
                "$ref": "#/definitions/CodeableConcept",
                "x-terminology": {"system": "coverage-type", "binding": "extensible"},
            },
            "limits": {
                "type": "object",
                "properties": {
                    "perOccurrence": {"$ref": "#/definitions/Money"},
                    "aggregate": {"$ref": "#/definitions/Money"},
                },
            },
            "deductible": {"$ref": "#/definitions/Money"},
            "basis": {"type": "string", "enum": ["occurrence", "claims-made"]},
        },
    },
    "Claim": {
        "type": "object",
        "description": "A loss reported against a policy.",
        "required": ["resourceType", "status", "policy"],
        "properties": {
            "resourceType": {"type": "string", "const": "Claim"},
            "id": {"type": "string"},
            "status": {
                "type": "string",
                "enum": ["open", "closed", "reopened", "denied", "subrogation"],
            },
            "policy": {"$ref": "#/definitions/Reference"},
            "lossDate": {"type": "string", "format": "date"},
            "reportedDate": {"type": "string", "format": "date"},
            "description": {"type": "string"},
            "causeOfLoss": {
                "$ref": "#/definitions/CodeableConcept",
                "x-terminology": {"system": "cause-of-loss", "binding": "preferred"},
            },
            "incurred": {"$ref": "#/definitions/Money"},
            "paid": {"$ref": "#/definitions/Money"},
            "litigated": {"type": "boolean"},
        },
    },
    "Location": {
        "type": "object",
        "description": "An insured premises.",
        "required": ["resourceType", "address"],
        "properties": {
            "resourceType": {"type": "string", "const": "Location"},
            "id": {"type": "string"},
            "name": {"type": "string"},
            "address": {"$ref": "#/definitions/Address"},
            "insured": {"$ref": "#/definitions/Reference"},
            "occupancy": {"type": "string"},
            "squareFeet": {"$ref": "#/definitions/Quantity"},
            "yearBuilt": {"type": "integer"},
            "sprinklered": {"type": "boolean"},
        },
    },
}


def build_document(name: str, definitions: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Wrap `definitions[name]` as a standalone schema document."""
    return {
        "$schema": JSON_SCHEMA_DRAFT,
        "$ref": f"#/definitions/{name}",
        "definitions": copy.deepcopy(definitions),
    }


def builtin_documents() -> tuple[dict[str, dict[str, Any]], dict[str, dict[str, Any]]]:
    """Return (resource documents, supporting documents) keyed by name."""
    shared = {**SUPPORTING_DEFINITIONS, **RESOURCE_DEFINITIONS}
    resources = {name: build_document(name, shared) for name in RESOURCE_DEFINITIONS}
    supporting = {
        name: build_document(name, SUPPORTING_DEFINITIONS) for name in SUPPORTING_DEFINITIONS
    }
    return resources, supporting
