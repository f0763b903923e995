import asyncio

import aiohttp
import pytest

from marketplace_api.services.registry_client import RegistryLookupClient, parse_registry_payload

SAMPLE_PAYLOAD = {
    "success": True,
    "detail": {
        "brand": {"make_display": "Maruti Suzuki"},
        "model": {"model_display": "Swift", "bodyType": "Hatchback"},
        "year": {"year": 2019},
        "ds_details": [
            {
                "variant": {
                    "variant_name": "VXI",
                    "variant_display_name": "Swift VXI",
                    "fuel_type": "Petrol",
                    "transmission_type": "Manual",
                }
            }
        ],
        "regn_year": "2019",
        "color": "PEARL ARCTIC WHITE",
        "registeredPlace": "PUNE",
        "rc_owner_sr": 2,
        "rc_owner_name_masked": "R**** K****",
        "insuranceUpTo": "2025-03-01",
        "hypothecation": True,
        "financier": "HDFC BANK",
        "seatCap": "5",
    },
}


class FakeResponse:
    def __init__(self, status=200, payload=None, json_error=None):
        self.status = status
        self._payload = payload
        self._json_error = json_error

    async def json(self, content_type="application/json"):
        if self._json_error is not None:
            raise self._json_error
        return self._payload


class FakeRequestContext:
    def __init__(self, response=None, error=None):
        self._response = response
        self._error = error

    async def __aenter__(self):
        if self._error is not None:
            raise self._error
        return self._response

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "timeout": timeout})
        return FakeRequestContext(self.response, self.error)


def test_parse_registry_payload_maps_nested_fields():
    record = parse_registry_payload(SAMPLE_PAYLOAD)

    assert record.make == "Maruti Suzuki"
    assert record.model == "Swift"
    assert record.body_type == "Hatchback"
    assert record.year == "2019"
    assert record.variant == "VXI"
    assert record.variant_display_name == "Swift VXI"
    assert record.fuel_type == "Petrol"
    assert record.transmission_type == "Manual"
    assert record.rc_owner_count == "2"
    assert record.hypothecation is True
    assert record.financier == "HDFC BANK"
    assert record.seat_cap == "5"
    # Missing keys fall back to empty values
    assert record.tax_up_to == ""
    assert record.rto_noc_issued == ""


def test_parse_registry_payload_fuel_type_fallback():
    payload = {"success": True, "detail": {"fuelType": "Diesel", "hypothecation": "false"}}
    record = parse_registry_payload(payload)

    assert record.fuel_type == "Diesel"
    assert record.hypothecation is False
    assert record.make == ""


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        {"success": False, "detail": {"color": "RED"}},
        {"success": True},
        {"success": True, "detail": {}},
        {"success": True, "detail": "not-an-object"},
    ],
)
def test_parse_registry_payload_without_details(payload):
    assert parse_registry_payload(payload) is None


async def test_fetch_normalizes_plate_and_sends_credentials():
    session = FakeSession(FakeResponse(payload=SAMPLE_PAYLOAD))
    client = RegistryLookupClient(session, "https://registry.example.com/v1/rc/", "c2VjcmV0")

    record = await client.fetch(" mh12 ab1234 ")

    assert record.make == "Maruti Suzuki"
    request = session.requests[0]
    assert request["url"] == "https://registry.example.com/v1/rc/MH12AB1234"
    assert request["headers"]["Authorization"] == "Basic c2VjcmV0"
    assert request["timeout"].total == 15.0


async def test_fetch_empty_plate_skips_request():
    session = FakeSession(FakeResponse(payload=SAMPLE_PAYLOAD))
    client = RegistryLookupClient(session, "https://registry.example.com", "key")

    assert await client.fetch("   ") is None
    assert session.requests == []


async def test_fetch_without_base_url_is_a_miss():
    session = FakeSession(FakeResponse(payload=SAMPLE_PAYLOAD))
    client = RegistryLookupClient(session, "", "key")

    assert await client.fetch("MH12AB1234") is None
    assert session.requests == []


async def test_fetch_no_match():
    session = FakeSession(FakeResponse(payload={"success": False, "message": "not found"}))
    client = RegistryLookupClient(session, "https://registry.example.com", "key")

    assert await client.fetch("MH12AB1234") is None


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(FakeResponse(status=500, payload=SAMPLE_PAYLOAD)),
        FakeSession(FakeResponse(status=401)),
        FakeSession(FakeResponse(json_error=ValueError("Expecting value"))),
        FakeSession(error=asyncio.TimeoutError()),
        FakeSession(error=aiohttp.ClientConnectionError("connection refused")),
    ],
    ids=["server-error", "unauthorized", "bad-json", "timeout", "connection-error"],
)
async def test_fetch_upstream_failures_become_misses(session):
    client = RegistryLookupClient(session, "https://registry.example.com", "key")

    assert await client.fetch("MH12AB1234") is None
    assert len(session.requests) == 1


def test_parse_registry_payload_renders_whole_floats_as_integers():
    payload = {
        "success": True,
        "detail": {"year": {"year": 2019.0}, "rc_owner_sr": 2.0, "regn_year": 2019.5},
    }

    record = parse_registry_payload(payload)

    assert record.year == "2019"
    assert record.rc_owner_count == "2"
    assert record.regn_year == "2019.5"
