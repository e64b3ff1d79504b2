# File: tests/test_validation.py
import pytest

from markets.models import Coordinate, DraftListing
from markets.validate import (
    BAD_POSTAL_CODE,
    MISSING_LOCATION,
    NO_CATEGORY,
    NO_OPERATING_DAY,
    validate_draft,
    validate_postal_code,
)


@pytest.mark.parametrize("code", ["1234 AB", "1234AB", "1012 js", "9999zz", "1000 Aa"])
def test_postal_code_accepts_dutch_format(code):
    assert validate_postal_code(code)


@pytest.mark.parametrize(
    "code",
    ["0234 AB", "1234 A", "123 AB", "12345 AB", "1234  AB", "1234-AB", "AB 1234", "", " 1234 AB", "1234 AB\n", None],
)
def test_postal_code_rejects_everything_else(code):
    assert not validate_postal_code(code)


def complete_draft(**overrides):
    draft = DraftListing(
        name="Albert Cuypmarkt",
        description="Daily street market in De Pijp",
        address="Albert Cuypstraat 1",
        postal_code="1073 BD",
        city="Amsterdam",
        operating_days={"Monday", "Saturday"},
        categories={"Fresh Produce", "Fish"},
        location=Coordinate(52.3557, 4.8947),
    )
    for k, v in overrides.items():
        setattr(draft, k, v)
    return draft


def test_complete_draft_passes():
    assert validate_draft(complete_draft()) == []


def test_rules_short_circuit_in_priority_order():
    # Everything wrong at once: only the location error is reported
    draft = DraftListing(postal_code="nope")
    assert validate_draft(draft) == [MISSING_LOCATION]

    draft.location = Coordinate(52.0, 5.0)
    assert validate_draft(draft) == [BAD_POSTAL_CODE]

    draft.postal_code = "3511 AB"
    assert validate_draft(draft) == [NO_OPERATING_DAY]

    draft.operating_days = {"Friday"}
    assert validate_draft(draft) == [NO_CATEGORY]


def test_missing_day_reports_exactly_that_error():
    errors = validate_draft(complete_draft(operating_days=set()))
    assert len(errors) == 1
    assert errors[0].message == "Please select at least one operating day"


def test_required_text_checked_after_submit_rules():
    assert [e.code for e in validate_draft(complete_draft(name="  "))] == ["missing:name"]
    # submit rules still take priority
    assert validate_draft(complete_draft(name="", categories=set())) == [NO_CATEGORY]
