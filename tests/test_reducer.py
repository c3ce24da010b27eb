"""Tests for the Bundle reducer and derived views."""

import re

from bind_playground.bundle.reducer import (
    AddResource,
    ClearBundle,
    ImportBundle,
    RemoveResource,
    UpdateResource,
    bundle_reducer,
    empty_bundle,
)
from bind_playground.bundle.utils import (
    build_reference,
    get_entry_full_url,
    get_resource_display,
    get_resource_summary,
    get_resources_by_type,
)


def _add(state, resource):
    return bundle_reducer(state, AddResource(resource))


def test_add_mints_id_and_full_url():
    state = _add(empty_bundle(), {"resourceType": "Insured", "name": "Acme Co"})

    assert len(state["entry"]) == 1
    entry = state["entry"][0]
    assert re.fullmatch(r"Insured/Insured-[0-9a-f]+", entry["fullUrl"])
    assert entry["fullUrl"] == f"Insured/{entry['resource']['id']}"
    assert get_resource_summary(state) == {"Insured": 1}


def test_add_keeps_existing_id_and_does_not_mutate():
    before = empty_bundle()
    resource = {"resourceType": "Policy", "id": "pol-1"}
    after = _add(before, resource)

    assert before["entry"] == []
    assert "id" in resource and after["entry"][0]["resource"] is not resource
    assert after["entry"][0]["fullUrl"] == "Policy/pol-1"


def test_rapid_adds_get_distinct_ids():
    state = empty_bundle()
    for _ in range(20):
        state = _add(state, {"resourceType": "Claim"})
    ids = {e["resource"]["id"] for e in state["entry"]}
    assert len(ids) == 20


def test_update_replaces_resource_and_keeps_entry_members():
    state = _add(empty_bundle(), {"resourceType": "Insured", "id": "ins-1", "name": "Old"})
    state["entry"][0]["request"] = {"method": "POST"}

    updated = bundle_reducer(
        state, UpdateResource(0, {"resourceType": "Insured", "id": "ins-1", "name": "New"})
    )

    assert updated["entry"][0]["resource"]["name"] == "New"
    assert updated["entry"][0]["request"] == {"method": "POST"}
    assert state["entry"][0]["resource"]["name"] == "Old"


def test_remove_keeps_order():
    state = empty_bundle()
    for name in ("a", "b", "c"):
        state = _add(state, {"resourceType": "Location", "id": name})

    state = bundle_reducer(state, RemoveResource(1))
    assert [e["resource"]["id"] for e in state["entry"]] == ["a", "c"]


def test_out_of_range_actions_are_ignored():
    state = _add(empty_bundle(), {"resourceType": "Claim"})

    assert bundle_reducer(state, RemoveResource(5)) is state
    assert bundle_reducer(state, RemoveResource(-1)) is state
    assert bundle_reducer(state, UpdateResource(3, {"resourceType": "Claim"})) is state
    assert bundle_reducer(state, object()) is state


def test_import_and_clear():
    imported = {"resourceType": "Bundle", "type": "document", "entry": [{"resource": {}}]}
    state = bundle_reducer(empty_bundle(), ImportBundle(imported))

    assert state == imported
    assert state is not imported

    assert bundle_reducer(state, ClearBundle()) == empty_bundle()


def test_resources_by_type():
    state = empty_bundle()
    state = _add(state, {"resourceType": "Insured", "name": "A"})
    state = _add(state, {"resourceType": "Policy"})
    state = _add(state, {"resourceType": "Insured", "name": "B"})
    state["entry"].append("garbage")

    insureds = get_resources_by_type(state, "Insured")
    assert [e["resource"]["name"] for e in insureds] == ["A", "B"]
    assert get_resource_summary(state) == {"Insured": 2, "Policy": 1}


def test_resource_display():
    assert get_resource_display({"name": "Acme"}) == "Acme"
    assert get_resource_display({"name": {"text": "Acme Holdings"}}) == "Acme Holdings"
    assert get_resource_display({"display": "Main office"}) == "Main office"
    assert get_resource_display({"resourceType": "Claim", "id": "c1"}) == "Claim/c1"
    assert get_resource_display({"resourceType": "Claim"}) == "Claim/?"
    assert get_resource_display({}, fallback="n/a") == "n/a"


def test_build_reference():
    assert build_reference({"resourceType": "Insured", "id": "i1", "name": "Acme"}) == {
        "reference": "Insured/i1",
        "display": "Acme",
    }
    assert build_reference({"resourceType": "Claim", "id": "c1"}) == {
        "reference": "Claim/c1",
        "display": "Claim/c1",
    }


def test_entry_full_url():
    assert get_entry_full_url({"fullUrl": "urn:uuid:1"}) == "urn:uuid:1"
    assert get_entry_full_url({"resource": {"resourceType": "Claim", "id": "c1"}}) == "Claim/c1"
    assert get_entry_full_url({}) == "unknown"


def test_non_string_labels_fall_back_to_the_reference():
    resource = {"resourceType": "Insured", "id": "i1", "name": {"text": 42}, "display": ["x"]}
    assert build_reference(resource) == {"reference": "Insured/i1", "display": "Insured/i1"}
    assert get_resource_display({"name": 7}, fallback="n/a") == "n/a"


def test_summary_tolerates_non_string_resource_types():
    state = {"entry": [{"resource": {"resourceType": ["Claim"]}}, {"resource": {"resourceType": "Claim"}}]}
    assert get_resource_summary(state) == {"Unknown": 1, "Claim": 1}
