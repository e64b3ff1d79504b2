# File: markets/form.py
"""Market form: the in-progress listing, its geocoding helpers, and submission.

States::

    EDITING -> VALIDATING -> SUBMITTING -> SUCCEEDED | FAILED
    FAILED -> EDITING on the next edit or submit
    SUCCEEDED is final; a second submit raises FormBusy

Typing into the address fields schedules a debounced forward geocode; a map
click sets the coordinate and reverse geocodes it into the address fields,
overwriting whatever was typed. Geocoding is best effort: failures are logged
and the draft is left as it was. Results are applied in completion order.
"""
from __future__ import annotations

import enum
import logging
import typing as t
from datetime import datetime, timezone

from markets import config
from markets.debounce import Debouncer
from markets.errors import FormBusy, GeocodeFailure, StoreError, SubmissionFailure, ValidationError
from markets.geocoding import GeocodingAdapter
from markets.mapping import MapSurface, marker
from markets.models import AddressFragment, Coordinate, DraftListing, FinalizedListing, format_clock, parse_clock
from markets.store import ListingStore
from markets.validate import validate_draft

logger = logging.getLogger(__name__)

TEXT_FIELDS = {"name", "description", "address", "postal_code", "city"}
TIME_FIELDS = {"start_time", "end_time"}
ADDRESS_FIELDS = {"address", "postal_code", "city"}

SUBMIT_FALLBACK = "Error adding market. Please try again."


class FormState(str, enum.Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketForm:
    def __init__(
        self,
        geocoder: GeocodingAdapter,
        store: ListingStore,
        map_surface: MapSurface | None = None,
        debounce_wait: float | None = None,
        clock: t.Callable[[], datetime] = _utcnow,
    ):
        self.geocoder = geocoder
        self.store = store
        self.map = map_surface or MapSurface()
        self.map.on_click = self.set_coordinate_from_map_click
        self.debouncer = Debouncer(config.DEBOUNCE_SECONDS if debounce_wait is None else debounce_wait)
        self.clock = clock

        self.draft = DraftListing()
        self.state = FormState.EDITING
        self.busy = False
        self.closed = False
        self.error = ""
        self.listing_id: str | None = None

    # ------------------------------------------------------------------ #
    # Editing
    # ------------------------------------------------------------------ #

    def _editing(self) -> None:
        if self.state is FormState.FAILED:
            self.state = FormState.EDITING

    def set_field(self, name: str, value: t.Any) -> None:
        if name in TEXT_FIELDS:
            if not isinstance(value, str):
                raise ValueError(f"Field '{name}' expects text, got {type(value).__name__}")
            setattr(self.draft, name, value)
        elif name in TIME_FIELDS:
            setattr(self.draft, name, parse_clock(value))
        else:
            raise KeyError(f"Unknown form field '{name}'")

        self._editing()
        if name == "name":
            self._sync_marker()
        if name in ADDRESS_FIELDS:
            self.debouncer.schedule(self.geocode_address, *self.draft.address_fragment)

    def toggle_day(self, day: str) -> None:
        if day not in config.DAYS_OF_WEEK:
            raise ValueError(f"Unknown operating day '{day}'")
        self.draft.operating_days ^= {day}
        self._editing()

    def toggle_category(self, category: str) -> None:
        if category not in config.MARKET_CATEGORIES:
            raise ValueError(f"Unknown market category '{category}'")
        self.draft.categories ^= {category}
        self._editing()

    # ------------------------------------------------------------------ #
    # Location
    # ------------------------------------------------------------------ #

    def set_location(self, coordinate: Coordinate) -> None:
        self.draft.location = coordinate
        self._sync_marker()

    def _sync_marker(self) -> None:
        loc = self.draft.location
        self.map.set_markers([marker(loc, self.draft.name)] if loc else [])

    async def geocode_address(self, address: str, postal_code: str, city: str) -> None:
        if not address or not postal_code or not city:
            return
        try:
            coordinate = await self.geocoder.forward_geocode(address, postal_code, city)
        except GeocodeFailure as e:
            logger.warning("Geocoding error for %r: %s", address, e)
            return
        if coordinate is None:
            logger.info("No geocode result for %s, %s, %s", address, postal_code, city)
            return
        if self.closed:
            return
        self.set_location(coordinate)

    async def set_coordinate_from_map_click(self, coordinate: Coordinate) -> None:
        if self.closed:
            return
        self.set_location(Coordinate(*coordinate))
        self._editing()
        try:
            fragment = await self.geocoder.reverse_geocode(self.draft.location)
        except GeocodeFailure as e:
            logger.warning("Error fetching address for %s: %s", coordinate, e)
            return
        if fragment is None or self.closed:
            return
        self.apply_address(fragment)

    def apply_address(self, fragment: AddressFragment) -> None:
        self.draft.address, self.draft.postal_code, self.draft.city = fragment

    # ------------------------------------------------------------------ #
    # Validation / submission
    # ------------------------------------------------------------------ #

    def validate(self) -> list[ValidationError]:
        return validate_draft(self.draft)

    async def submit(self, user_id: str) -> FinalizedListing:
        if self.busy:
            raise FormBusy("A submission is already in progress")
        if self.closed:
            raise RuntimeError("Form has been closed")
        if self.state is FormState.SUCCEEDED:
            raise FormBusy(f"This market was already submitted as {self.listing_id}")
        self.busy = True
        try:
            self.state = FormState.VALIDATING
            errors = self.validate()
            if errors:
                self.state = FormState.EDITING
                err = errors[0]
                self.error = err.message
                raise ValidationError(err.code, err.message)

            listing = FinalizedListing.from_draft(self.draft, created_by=user_id, created_at=self.clock())
            self.state = FormState.SUBMITTING
            self.error = ""
            logger.info("Submitting market %r for %s", listing.name, user_id)
            try:
                self.listing_id = await self.store.create(listing)
            except StoreError as e:
                self.state = FormState.FAILED
                self.error = str(e) or SUBMIT_FALLBACK
                logger.error("Error adding market: %s", self.error)
                raise SubmissionFailure(self.error) from e

            self.state = FormState.SUCCEEDED
            return listing
        finally:
            self.busy = False

    def close(self) -> None:
        self.debouncer.cancel()
        self.closed = True

    def snapshot(self) -> dict[str, t.Any]:
        d = self.draft
        return {
            "state": self.state.value,
            "busy": self.busy,
            "error": self.error or None,
            "listing_id": self.listing_id,
            "draft": {
                "name": d.name,
                "description": d.description,
                "address": d.address,
                "postalCode": d.postal_code,
                "city": d.city,
                "operatingDays": [day for day in config.DAYS_OF_WEEK if day in d.operating_days],
                "startTime": format_clock(d.start_time),
                "endTime": format_clock(d.end_time),
                "categories": [c for c in config.MARKET_CATEGORIES if c in d.categories],
                "location": d.location.to_dict() if d.location else None,
            },
            "map": self.map.to_dict(),
        }
