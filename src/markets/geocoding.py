# File: markets/geocoding.py
"""Address <-> coordinate lookups against the Google Geocoding web service.

The response shape the adapter understands is

    {"status": "OK",
     "results": [{"geometry": {"location": {"lat": .., "lng": ..}},
                  "address_components": [{"types": [..], "long_name": ..}]}]}

Any other provider has to be wrapped to produce the same shape.
"""
from __future__ import annotations

import logging
import typing as t

import httpx

from markets import config
from markets.errors import GeocodeFailure
from markets.models import AddressFragment, Coordinate

logger = logging.getLogger(__name__)

COUNTRY = "Netherlands"

# Service statuses that mean "nothing matched" rather than "request failed"
EMPTY_STATUSES = {"ZERO_RESULTS"}


def build_query(address: str, postal_code: str, city: str) -> str:
    return f"{address}, {postal_code}, {city}, {COUNTRY}"


def _number(value: t.Any) -> float:
    # JS-style wrappers expose lat()/lng() as callables
    if callable(value):
        value = value()
    return float(value)


def parse_location(result: dict[str, t.Any]) -> Coordinate:
    loc = (result.get("geometry") or {}).get("location") or {}
    try:
        return Coordinate(_number(loc["lat"]), _number(loc["lng"]))
    except (KeyError, TypeError, ValueError) as e:
        raise GeocodeFailure(f"Malformed geometry in geocode result: {loc!r}") from e


def parse_components(components: t.Iterable[dict[str, t.Any]]) -> AddressFragment:
    """Pick street, number, postal code and locality out of a component list.

    Missing components stay blank.
    """
    street_number = street_name = postal_code = city = ""
    for component in components or []:
        types = component.get("types") or []
        name = component.get("long_name") or ""
        if "street_number" in types:
            street_number = name
        if "route" in types:
            street_name = name
        if "postal_code" in types:
            postal_code = name
        if "locality" in types:
            city = name
    return AddressFragment(f"{street_name} {street_number}".strip(), postal_code, city)


class GeocodingAdapter:
    """Forward and reverse geocoding over one HTTP service.

    Pass ``client`` to share a connection pool (or a mock transport in tests);
    otherwise a client is opened per request.
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        region: str | None = None,
        timeout: float | None = None,
    ):
        self.api_key = config.GOOGLE_MAPS_API_KEY if api_key is None else api_key
        self.base_url = base_url or config.GEOCODE_API_BASE
        self.region = region or config.GEOCODE_REGION
        self.timeout = timeout if timeout is not None else config.GEOCODE_HTTP_TIMEOUT
        self._client = client
        if not self.api_key:
            logger.warning("GOOGLE_MAPS_API_KEY is not set; geocoding requests will be rejected.")

    async def _get(self, params: dict[str, t.Any]) -> list[dict[str, t.Any]]:
        q = dict(params)
        q["region"] = self.region
        if self.api_key:
            q["key"] = self.api_key

        try:
            if self._client is not None:
                r = await self._client.get(self.base_url, params=q)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.get(self.base_url, params=q)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GeocodeFailure(f"Geocoding request failed: {e}") from e

        if not isinstance(data, dict):
            raise GeocodeFailure("Geocoding response is not an object")
        status = data.get("status", "OK")
        if status in EMPTY_STATUSES:
            return []
        if status != "OK":
            detail = data.get("error_message")
            raise GeocodeFailure(f"Geocoding service returned {status}" + (f": {detail}" if detail else ""))
        return data.get("results") or []

    async def forward_geocode(self, address: str, postal_code: str, city: str) -> Coordinate | None:
        """Coordinate of the first match, or None when the service found nothing."""
        results = await self._get({"address": build_query(address, postal_code, city)})
        if not results:
            return None
        return parse_location(results[0])

    async def reverse_geocode(self, coordinate: Coordinate) -> AddressFragment | None:
        """Address fields of the first match, or None when the service found nothing."""
        lat, lng = coordinate
        results = await self._get({"latlng": f"{lat},{lng}"})
        if not results:
            return None
        return parse_components(results[0].get("address_components") or [])
