"""Tests for the persisted Bundle session."""

import json

import pytest

from bind_playground.bundle.reducer import AddResource, ClearBundle, RemoveResource
from bind_playground.bundle.session import BundleImportError, BundleSession, parse_bundle_json
from bind_playground.services.storage import BUNDLE_SLOT, KeyValueStore


def test_fresh_session_is_empty(store):
    session = BundleSession(store)
    assert session.bundle == {"resourceType": "Bundle", "type": "collection", "entry": []}
    assert session.summary() == {}


def test_bundle_survives_a_restart(store):
    first = BundleSession(store)
    first.dispatch(AddResource({"resourceType": "Insured", "name": "Acme Co"}))

    second = BundleSession(store)
    assert second.bundle == first.bundle
    assert second.summary() == {"Insured": 1}


def test_removal_is_persisted(store):
    session = BundleSession(store)
    session.dispatch(AddResource({"resourceType": "Claim"}))
    session.dispatch(RemoveResource(0))

    assert BundleSession(store).bundle["entry"] == []


def test_clear_is_persisted(store):
    session = BundleSession(store)
    session.dispatch(AddResource({"resourceType": "Claim"}))
    session.dispatch(ClearBundle())

    assert BundleSession(store).summary() == {}


def test_malformed_snapshot_falls_back_to_empty(store):
    store.save(BUNDLE_SLOT, {"resourceType": "Bundle", "entry": "nope"})
    assert BundleSession(store).bundle["entry"] == []

    store.save(BUNDLE_SLOT, ["not", "a", "bundle"])
    assert BundleSession(store).bundle["entry"] == []


def test_import_rejects_bundle_without_entry(store):
    session = BundleSession(store)
    session.dispatch(AddResource({"resourceType": "Policy", "id": "p1"}))
    before = session.bundle

    with pytest.raises(BundleImportError, match='"entry"'):
        session.import_json('{"resourceType":"Bundle"}')

    assert session.bundle == before
    assert BundleSession(store).bundle == before


@pytest.mark.parametrize(
    "text, message",
    [
        ("{not json", "Invalid JSON"),
        ("[]", "must be an object"),
        ('{"resourceType":"Patient","entry":[]}', 'got "Patient"'),
        ('{"resourceType":"Bundle","entry":{}}', "must be an array"),
    ],
)
def test_parse_bundle_json_errors(text, message):
    with pytest.raises(BundleImportError, match=message):
        parse_bundle_json(text)


def test_export_then_import_round_trip(store):
    session = BundleSession(store)
    for resource_type in ("Insured", "Policy", "Location"):
        session.dispatch(AddResource({"resourceType": resource_type}))
    exported = session.export_json()

    other = BundleSession(KeyValueStore(store._session_factory))
    other.dispatch(ClearBundle())
    other.import_json(exported)

    assert [e["resource"] for e in other.bundle["entry"]] == [
        e["resource"] for e in json.loads(exported)["entry"]
    ]
