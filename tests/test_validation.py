"""Tests for resource- and Bundle-level structural validation."""

from bind_playground.schemas.documents import JWKS_SCHEMA
from bind_playground.schemas.resolver import resolve_root_ref
from bind_playground.services.validation import (
    validate_against_schema,
    validate_bundle,
    validate_resource,
)


def _widget(schema):
    return resolve_root_ref(schema).definition


def _bundle(*resources, bundle_type="collection"):
    return {
        "resourceType": "Bundle",
        "type": bundle_type,
        "entry": [{"resource": r} for r in resources],
    }


def test_valid_resource(schema):
    resource = {"resourceType": "Widget", "name": "Sprocket", "status": "active"}
    assert validate_resource(resource, _widget(schema)) == []


def test_one_warning_per_missing_required_field(schema):
    resource = {"resourceType": "Widget", "name": None}
    warnings = validate_resource(resource, _widget(schema), "entry[0].resource")

    assert [w.path for w in warnings] == ["entry[0].resource.name", "entry[0].resource.status"]
    assert warnings[0].message == 'Required field "name" is missing'
    assert warnings[1].message == 'Required field "status" is missing (one of: draft, active, retired)'


def test_empty_string_counts_as_missing(schema):
    resource = {"resourceType": "Widget", "name": "", "status": "draft"}
    warnings = validate_resource(resource, _widget(schema))
    assert [w.path for w in warnings] == ["name"]


def test_enum_mismatch_is_case_sensitive_and_truncated(schema):
    resource = {"resourceType": "Widget", "name": "x", "status": "Active", "color": "black"}
    messages = [w.message for w in validate_resource(resource, _widget(schema))]

    assert 'Invalid value "Active" for "status" (expected: draft, active, retired)' in messages
    assert 'Invalid value "black" for "color" (expected: red, orange, yellow, green, ...)' in messages


def test_bundle_top_level_checks(registry):
    warnings = validate_bundle({"resourceType": "Patient", "type": "pile"}, registry)
    assert [(w.path, w.message) for w in warnings] == [
        ("resourceType", 'Expected "Bundle" but got "Patient"'),
        ("type", 'Unknown bundle type "pile"'),
        ("entry", 'Missing "entry" array'),
    ]


def test_bundle_entry_structure_is_terminal(registry):
    not_a_list = validate_bundle({"resourceType": "Bundle", "type": "batch", "entry": {}}, registry)
    assert [w.message for w in not_a_list] == ['"entry" must be an array']

    empty = validate_bundle(_bundle(), registry)
    assert [w.message for w in empty] == ["Bundle has no entries"]


def test_bundle_entry_checks(registry):
    bundle = {
        "resourceType": "Bundle",
        "entry": [
            "oops",
            {"fullUrl": "x"},
            {"resource": {"name": "no type"}},
            {"resource": {"resourceType": "Spaceship"}},
            {"resource": {"resourceType": "Insured", "name": "Acme Co"}},
            {"resource": {"resourceType": "Policy", "status": "lapsed"}},
        ],
    }
    warnings = [(w.path, w.message) for w in validate_bundle(bundle, registry)]

    assert warnings[0] == ("type", 'Missing required field "type"')
    assert ("entry[0]", "Invalid entry (not an object)") in warnings
    assert ("entry[1].resource", "Missing resource") in warnings
    assert ("entry[2].resource", "Missing resourceType") in warnings
    assert ("entry[3].resource", 'Unknown resourceType "Spaceship"') in warnings
    assert not any(path.startswith("entry[4]") for path, _ in warnings)
    policy_paths = [path for path, _ in warnings if path.startswith("entry[5]")]
    assert policy_paths == [
        "entry[5].resource.insured",
        "entry[5].resource.period",
        "entry[5].resource.status",
    ]


def test_validate_against_schema_collects_all_errors():
    errors = validate_against_schema({"keys": [{"kid": "a"}, "b"]}, JWKS_SCHEMA)
    assert len(errors) == 2
    assert validate_against_schema({"keys": []}, JWKS_SCHEMA) == []


def test_non_string_type_values_are_reported_not_raised(registry):
    """Lists or objects where a type name belongs become warnings."""
    bundle = {
        "resourceType": "Bundle",
        "type": ["collection"],
        "entry": [
            {"resource": {"resourceType": ["Insured"], "name": "Acme Co"}},
            {"resource": {"resourceType": {"name": "Policy"}}},
        ],
    }
    warnings = [(w.path, w.message) for w in validate_bundle(bundle, registry)]

    assert warnings[0] == ("type", "Unknown bundle type \"['collection']\"")
    assert warnings[1] == ("entry[0].resource", "Unknown resourceType \"['Insured']\"")
    assert warnings[2][0] == "entry[1].resource"
    assert warnings[2][1].startswith("Unknown resourceType")
    assert not registry.is_resource(["Insured"])

    objects = validate_bundle({"resourceType": "Bundle", "type": {"x": 1}, "entry": []}, registry)
    assert [w.message for w in objects] == [
        "Unknown bundle type \"{'x': 1}\"",
        "Bundle has no entries",
    ]
