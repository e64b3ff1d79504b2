# File: markets/validate.py
from __future__ import annotations

import re
from typing import TYPE_CHECKING, List

from markets.errors import ValidationError

if TYPE_CHECKING:
    from markets.models import DraftListing

# Dutch postal code: four digits without a leading zero, optional space, two letters.
POSTAL_CODE_PATTERN = r"^[1-9][0-9]{3} ?[A-Za-z]{2}$"
POSTAL_CODE_RE = re.compile(POSTAL_CODE_PATTERN)

MISSING_LOCATION = ValidationError("missing:location", "Please select a location on the map")
BAD_POSTAL_CODE = ValidationError("bad:postal_code", "Please enter a valid Dutch postal code (e.g., 1234 AB)")
NO_OPERATING_DAY = ValidationError("missing:operating_days", "Please select at least one operating day")
NO_CATEGORY = ValidationError("missing:categories", "Please select at least one category")

REQUIRED_TEXT = {
    "name": "Please enter the market name",
    "description": "Please enter a description",
    "address": "Please enter the street address",
    "city": "Please enter the city",
}


def validate_postal_code(postal_code: str | None) -> bool:
    if not isinstance(postal_code, str):
        return False
    # fullmatch so a trailing newline is not accepted by "$"
    return POSTAL_CODE_RE.fullmatch(postal_code) is not None


def submit_rules(draft: "DraftListing") -> List[ValidationError]:
    """The four submit-time rules, in priority order, stopping at the first failure."""
    if draft.location is None:
        return [MISSING_LOCATION]
    if not validate_postal_code(draft.postal_code):
        return [BAD_POSTAL_CODE]
    if not draft.operating_days:
        return [NO_OPERATING_DAY]
    if not draft.categories:
        return [NO_CATEGORY]
    return []


def validate_draft(draft: "DraftListing") -> List[ValidationError]:
    """Return at most one error: the first failing rule, or [] when the draft is complete."""
    errors = submit_rules(draft)
    if errors:
        return errors
    for field, message in REQUIRED_TEXT.items():
        if not str(getattr(draft, field) or "").strip():
            return [ValidationError(f"missing:{field}", message)]
    return []
