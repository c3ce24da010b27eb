"""Tests for the terminology service client."""

import asyncio

import httpx
import pytest

from bind_playground.services.terminology import TerminologyClient, TerminologyError

BASE = "https://terminology.test"


def _call(transport, method, *args):
    async def go():
        async with httpx.AsyncClient(transport=transport) as http:
            client = TerminologyClient(BASE, http=http)
            return await getattr(client, method)(*args)

    return asyncio.run(go())


def test_list_and_get_systems(make_transport):
    transport = make_transport(
        {
            ("GET", f"{BASE}/systems"): (200, [{"id": "naics", "name": "NAICS"}]),
            ("GET", f"{BASE}/systems/naics"): (
                200,
                {"id": "naics", "concepts": [{"code": "5112", "display": "Software Publishers"}]},
            ),
        }
    )
    assert _call(transport, "list_systems") == [{"id": "naics", "name": "NAICS"}]
    assert _call(transport, "get_system", "naics")["concepts"][0]["code"] == "5112"


def test_search_sends_query(make_transport):
    transport = make_transport({("GET", f"{BASE}/search?q=software"): (200, [{"code": "5112"}])})
    assert _call(transport, "search", " software ") == [{"code": "5112"}]


def test_short_search_makes_no_request(make_transport):
    transport = make_transport({})
    assert _call(transport, "search", "s") == []
    assert transport.requests == []


def test_non_2xx_raises_with_status(make_transport):
    with pytest.raises(TerminologyError) as excinfo:
        _call(make_transport({}), "get_system", "missing")
    assert excinfo.value.status_code == 404


def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(TerminologyError, match="down"):
        _call(httpx.MockTransport(handler), "list_systems")
