# File: tests/test_geocoding.py
# Why: exercise the adapter against canned service responses; no network.
import asyncio

import httpx
import pytest

from markets.errors import GeocodeFailure
from markets.geocoding import GeocodingAdapter, parse_components, parse_location
from markets.models import AddressFragment, Coordinate

DAM_COMPONENTS = [
    {"long_name": "10", "short_name": "10", "types": ["street_number"]},
    {"long_name": "Dam", "short_name": "Dam", "types": ["route"]},
    {"long_name": "Amsterdam", "short_name": "Amsterdam", "types": ["locality", "political"]},
    {"long_name": "Noord-Holland", "short_name": "NH", "types": ["administrative_area_level_1", "political"]},
    {"long_name": "1012 JS", "short_name": "1012 JS", "types": ["postal_code"]},
]


def make_adapter(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeocodingAdapter(api_key="test-key", client=client, base_url="https://geo.test/json")


def ok(results):
    return httpx.Response(200, json={"status": "OK", "results": results})


def test_forward_builds_netherlands_query_and_takes_first_result():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return ok([
            {"geometry": {"location": {"lat": 52.3731, "lng": 4.8926}}},
            {"geometry": {"location": {"lat": 0.0, "lng": 0.0}}},
        ])

    coord = asyncio.run(make_adapter(handler).forward_geocode("Dam 10", "1012 JS", "Amsterdam"))
    assert coord == Coordinate(52.3731, 4.8926)
    assert seen["address"] == "Dam 10, 1012 JS, Amsterdam, Netherlands"
    assert seen["key"] == "test-key"
    assert seen["region"] == "nl"


def test_forward_zero_results_is_not_found():
    def handler(request):
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})

    assert asyncio.run(make_adapter(handler).forward_geocode("Nowhere 1", "9999 ZZ", "Atlantis")) is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
        httpx.Response(200, text="not json"),
    ],
)
def test_forward_failures_raise_geocode_failure(response):
    adapter = make_adapter(lambda request: response)
    with pytest.raises(GeocodeFailure):
        asyncio.run(adapter.forward_geocode("Dam 10", "1012 JS", "Amsterdam"))


def test_transport_error_is_geocode_failure():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(GeocodeFailure):
        asyncio.run(make_adapter(handler).reverse_geocode(Coordinate(52.37, 4.89)))


def test_reverse_merges_street_and_number():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return ok([{"address_components": DAM_COMPONENTS, "geometry": {"location": {"lat": 1, "lng": 2}}}])

    fragment = asyncio.run(make_adapter(handler).reverse_geocode(Coordinate(52.3731, 4.8926)))
    assert fragment == AddressFragment("Dam 10", "1012 JS", "Amsterdam")
    assert seen["latlng"] == "52.3731,4.8926"


def test_partial_components_leave_blanks():
    fragment = parse_components([
        {"long_name": "Prinsengracht", "types": ["route"]},
        {"long_name": "Amsterdam", "types": ["locality"]},
    ])
    assert fragment == AddressFragment("Prinsengracht", "", "Amsterdam")


def test_callable_coordinates_are_accepted():
    def handler(request):
        return ok([{"geometry": {"location": {"lat": 51.9225, "lng": 4.47917}}}])

    # JS-style wrapped providers hand back lat()/lng() accessors
    assert parse_location({"geometry": {"location": {"lat": lambda: 51.9, "lng": lambda: 4.4}}}) == Coordinate(51.9, 4.4)
    assert asyncio.run(make_adapter(handler).forward_geocode("Coolsingel 40", "3011 AD", "Rotterdam")) == Coordinate(51.9225, 4.47917)
