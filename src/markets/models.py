# File: markets/models.py
"""Listing records: the mutable draft edited by the form and the frozen record
handed to the store."""
from __future__ import annotations

import re
import typing as t
from dataclasses import dataclass, field
from datetime import datetime, time, timezone

from markets.config import DAYS_OF_WEEK, MARKET_CATEGORIES
from markets.errors import ValidationError
from markets.validate import submit_rules

TIME_RE = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")


class Coordinate(t.NamedTuple):
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


class AddressFragment(t.NamedTuple):
    address: str = ""
    postal_code: str = ""
    city: str = ""


def parse_clock(value: time | str) -> time:
    """Accept a time or a strict "HH:MM" string."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if isinstance(value, str):
        m = TIME_RE.match(value.strip())
        if m:
            return time(int(m.group(1)), int(m.group(2)))
    raise ValueError(f"Expected a clock time as HH:MM, got {value!r}")


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def _ordered(values: t.Iterable[str], vocabulary: t.Sequence[str]) -> tuple[str, ...]:
    wanted = set(values)
    return tuple(v for v in vocabulary if v in wanted)


@dataclass
class DraftListing:
    name: str = ""
    description: str = ""
    address: str = ""
    postal_code: str = ""
    city: str = ""
    operating_days: set[str] = field(default_factory=set)
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    categories: set[str] = field(default_factory=set)
    location: Coordinate | None = None

    @property
    def address_fragment(self) -> AddressFragment:
        return AddressFragment(self.address, self.postal_code, self.city)


@dataclass(frozen=True)
class FinalizedListing:
    name: str
    description: str
    address: str
    postal_code: str
    city: str
    operating_days: tuple[str, ...]
    start_time: time
    end_time: time
    categories: tuple[str, ...]
    location: Coordinate
    created_by: str
    created_at: datetime
    verified: bool = False

    @classmethod
    def from_draft(cls, draft: DraftListing, created_by: str, created_at: datetime | None = None) -> "FinalizedListing":
        errors = submit_rules(draft)
        if errors:
            raise ValidationError(errors[0].code, errors[0].message)
        return cls(
            name=draft.name.strip(),
            description=draft.description.strip(),
            address=draft.address.strip(),
            postal_code=draft.postal_code.strip(),
            city=draft.city.strip(),
            operating_days=_ordered(draft.operating_days, DAYS_OF_WEEK),
            start_time=draft.start_time,
            end_time=draft.end_time,
            categories=_ordered(draft.categories, MARKET_CATEGORIES),
            location=draft.location,
            created_by=created_by,
            created_at=created_at or datetime.now(timezone.utc),
            verified=False,
        )

    def to_document(self) -> dict[str, t.Any]:
        """Stored shape; keys match the documents already in the markets collection."""
        return {
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "postalCode": self.postal_code,
            "city": self.city,
            "operatingDays": list(self.operating_days),
            "startTime": format_clock(self.start_time),
            "endTime": format_clock(self.end_time),
            "categories": list(self.categories),
            "location": self.location.to_dict(),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
            "verified": self.verified,
        }
