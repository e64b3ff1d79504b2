# Ensure src/ is importable (so `import markets.form` works under pytest), plus shared test doubles.
import asyncio
import sys, pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from markets.errors import GeocodeFailure, StoreError  # noqa: E402
from markets.models import AddressFragment, Coordinate  # noqa: E402


class FakeGeocoder:
    """Stands in for GeocodingAdapter; records calls, returns canned results."""

    def __init__(self, forward=None, reverse=None, fail=False):
        self.forward = forward
        self.reverse = reverse
        self.fail = fail
        self.forward_calls = []
        self.reverse_calls = []

    async def forward_geocode(self, address, postal_code, city):
        self.forward_calls.append((address, postal_code, city))
        if self.fail:
            raise GeocodeFailure("service unavailable")
        return self.forward

    async def reverse_geocode(self, coordinate):
        self.reverse_calls.append(coordinate)
        if self.fail:
            raise GeocodeFailure("service unavailable")
        return self.reverse


class MemoryStore:
    """In-memory listing store with optional latency and failures."""

    def __init__(self, fail=None, fail_delete=None, delay=0.0):
        self.docs = {}
        self.fail = fail
        self.fail_delete = fail_delete
        self.delay = delay
        self.create_calls = 0

    async def create(self, listing):
        self.create_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail is not None:
            raise StoreError(self.fail)
        listing_id = f"m{self.create_calls}"
        self.docs[listing_id] = {"id": listing_id, **listing.to_document()}
        return listing_id

    async def list(self):
        return list(self.docs.values())

    async def get(self, listing_id):
        return self.docs.get(listing_id)

    async def delete_by_id(self, listing_id):
        if self.fail_delete is not None:
            raise StoreError(self.fail_delete)
        self.docs.pop(listing_id, None)


DAM = Coordinate(52.3731, 4.8926)
DAM_ADDRESS = AddressFragment("Dam 10", "1012 JS", "Amsterdam")


@pytest.fixture
def geocoder():
    return FakeGeocoder(forward=DAM, reverse=DAM_ADDRESS)


@pytest.fixture
def store():
    return MemoryStore()
