from __future__ import annotations
#!/usr/bin/env python3
"""
Dutch Markets: FastAPI service for discovering and publishing street markets

- /markets            -> listing page data (+ /markets/markers for the map)
- POST /markets       -> one-shot submission of a complete draft
- /forms/...          -> server-side market form sessions (debounced geocoding,
                         map clicks, guarded submit)
- /geocode[/reverse]  -> geocoding passthrough (debugging / manual lookups)
"""

import logging
import time
import typing as t
import uuid
from dataclasses import dataclass, field

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from markets import config
from markets.auth import User, current_user
from markets.directory import MarketDirectory
from markets.errors import DeletionFailure, FormBusy, GeocodeFailure, SubmissionFailure, ValidationError
from markets.form import MarketForm
from markets.geocoding import GeocodingAdapter
from markets.mapping import MapSurface
from markets.models import Coordinate
from markets.store import ListingStore, open_store

logger = logging.getLogger("api")

# ----------------------------------------------------------------------------- #
# App
# ----------------------------------------------------------------------------- #

app = FastAPI(title="Dutch Markets API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.forms = {}

# ----------------------------------------------------------------------------- #
# Collaborators (swap on app.state in tests)
# ----------------------------------------------------------------------------- #

def get_store(request: Request) -> ListingStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = request.app.state.store = open_store()
    return store


def get_geocoder(request: Request) -> GeocodingAdapter:
    geocoder = getattr(request.app.state, "geocoder", None)
    if geocoder is None:
        geocoder = request.app.state.geocoder = GeocodingAdapter()
    return geocoder


@dataclass
class FormSession:
    uid: str
    form: MarketForm
    touched: float = field(default_factory=time.monotonic)


def get_forms(request: Request) -> dict[str, FormSession]:
    return request.app.state.forms

# ----------------------------------------------------------------------------- #
# Bodies
# ----------------------------------------------------------------------------- #

class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)


class FormFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: t.Optional[str] = None
    description: t.Optional[str] = None
    address: t.Optional[str] = None
    postal_code: t.Optional[str] = Field(None, alias="postalCode")
    city: t.Optional[str] = None
    start_time: t.Optional[str] = Field(None, alias="startTime")
    end_time: t.Optional[str] = Field(None, alias="endTime")


class MarketIn(FormFields):
    operating_days: list[str] = Field(default_factory=list, alias="operatingDays")
    categories: list[str] = Field(default_factory=list)
    location: t.Optional[LatLng] = None

# ----------------------------------------------------------------------------- #
# Helpers
# ----------------------------------------------------------------------------- #

def _apply_fields(form: MarketForm, fields: FormFields) -> None:
    try:
        for name, value in fields.model_dump(exclude_unset=True, exclude_none=True).items():
            if name in FormFields.model_fields:
                form.set_field(name, value)
    except (KeyError, ValueError) as e:
        raise HTTPException(422, str(e)) from e


async def _submit(form: MarketForm, user: User) -> dict[str, t.Any]:
    try:
        listing = await form.submit(user.uid)
    except ValidationError as e:
        raise HTTPException(422, e.message) from e
    except FormBusy as e:
        raise HTTPException(409, str(e)) from e
    except SubmissionFailure as e:
        raise HTTPException(502, str(e)) from e
    return {"id": form.listing_id, **listing.to_document()}


def _expire_forms(forms: dict[str, FormSession]) -> None:
    """Drop sessions nobody has touched for FORM_IDLE_SECONDS (abandoned forms)."""
    cutoff = time.monotonic() - config.FORM_IDLE_SECONDS
    for form_id, session in list(forms.items()):
        if session.touched < cutoff:
            session.form.close()
            forms.pop(form_id, None)
            logger.info("Expired idle form %s", form_id)


def _form_for(form_id: str, user: User, forms: dict[str, FormSession]) -> MarketForm:
    _expire_forms(forms)
    session = forms.get(form_id)
    if not session or session.uid != user.uid:
        raise HTTPException(404, "form not found")
    session.touched = time.monotonic()
    return session.form

# ----------------------------------------------------------------------------- #
# Routes
# ----------------------------------------------------------------------------- #

@app.get("/health")
def health():
    return {
        "ok": True,
        "store": config.STORE_BACKEND,
        "has_maps_key": bool(config.GOOGLE_MAPS_API_KEY),
    }


@app.get("/auth/me")
def me(user: User = Depends(current_user)):
    return user.to_dict()


@app.get("/markets")
async def markets(store: ListingStore = Depends(get_store)):
    directory = MarketDirectory(store)
    items = await directory.refresh()
    return {"count": len(items), "items": items}


@app.get("/markets/markers")
async def market_markers(store: ListingStore = Depends(get_store)):
    """Pins for the browse map (position + title)."""
    directory = MarketDirectory(store)
    await directory.refresh()
    return directory.map.to_dict()


@app.post("/markets", status_code=201)
async def create_market(
    body: MarketIn,
    user: User = Depends(current_user),
    store: ListingStore = Depends(get_store),
    geocoder: GeocodingAdapter = Depends(get_geocoder),
):
    form = MarketForm(geocoder, store)
    try:
        _apply_fields(form, body)
        try:
            for day in dict.fromkeys(body.operating_days):
                form.toggle_day(day)
            for category in dict.fromkeys(body.categories):
                form.toggle_category(category)
        except ValueError as e:
            raise HTTPException(422, str(e)) from e
        if body.location is not None:
            form.debouncer.cancel()
            form.set_location(body.location.coordinate())
        else:
            await form.debouncer.flush()
        return await _submit(form, user)
    finally:
        form.close()


@app.delete("/markets/{market_id}")
async def delete_market(
    market_id: str,
    user: User = Depends(current_user),
    store: ListingStore = Depends(get_store),
):
    directory = MarketDirectory(store)
    try:
        await directory.delete(market_id, user.uid)
    except KeyError:
        raise HTTPException(404, "market not found")
    except PermissionError as e:
        raise HTTPException(403, str(e)) from e
    except DeletionFailure as e:
        raise HTTPException(502, str(e)) from e
    return {"ok": True, "id": market_id}


@app.get("/geocode")
async def geocode(
    address: str,
    postal_code: str,
    city: str,
    geocoder: GeocodingAdapter = Depends(get_geocoder),
):
    try:
        coordinate = await geocoder.forward_geocode(address, postal_code, city)
    except GeocodeFailure as e:
        raise HTTPException(502, str(e)) from e
    if coordinate is None:
        raise HTTPException(404, "address not found")
    return coordinate.to_dict()


@app.get("/geocode/reverse")
async def reverse_geocode(
    lat: float,
    lng: float,
    geocoder: GeocodingAdapter = Depends(get_geocoder),
):
    try:
        fragment = await geocoder.reverse_geocode(Coordinate(lat, lng))
    except GeocodeFailure as e:
        raise HTTPException(502, str(e)) from e
    if fragment is None:
        raise HTTPException(404, "no address at this location")
    return {"address": fragment.address, "postalCode": fragment.postal_code, "city": fragment.city}

# ----------------------------------------------------------------------------- #
# Form sessions
# ----------------------------------------------------------------------------- #

@app.post("/forms", status_code=201)
def open_form(
    user: User = Depends(current_user),
    store: ListingStore = Depends(get_store),
    geocoder: GeocodingAdapter = Depends(get_geocoder),
    forms: dict = Depends(get_forms),
):
    _expire_forms(forms)
    form_id = uuid.uuid4().hex
    form = MarketForm(geocoder, store, MapSurface())
    forms[form_id] = FormSession(user.uid, form)
    return {"id": form_id, **form.snapshot()}


@app.get("/forms/{form_id}")
def get_form(form_id: str, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    return _form_for(form_id, user, forms).snapshot()


@app.patch("/forms/{form_id}")
async def edit_form(
    form_id: str,
    body: FormFields,
    user: User = Depends(current_user),
    forms: dict = Depends(get_forms),
):
    form = _form_for(form_id, user, forms)
    _apply_fields(form, body)
    return form.snapshot()


@app.post("/forms/{form_id}/days/{day}")
def toggle_day(form_id: str, day: str, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    form = _form_for(form_id, user, forms)
    try:
        form.toggle_day(day)
    except ValueError as e:
        raise HTTPException(422, str(e)) from e
    return form.snapshot()


@app.post("/forms/{form_id}/categories/{category}")
def toggle_category(form_id: str, category: str, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    form = _form_for(form_id, user, forms)
    try:
        form.toggle_category(category)
    except ValueError as e:
        raise HTTPException(422, str(e)) from e
    return form.snapshot()


@app.post("/forms/{form_id}/map-click")
async def map_click(form_id: str, body: LatLng, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    form = _form_for(form_id, user, forms)
    await form.map.click(body.coordinate())
    return form.snapshot()


@app.post("/forms/{form_id}/submit", status_code=201)
async def submit_form(form_id: str, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    form = _form_for(form_id, user, forms)
    result = await _submit(form, user)
    forms.pop(form_id, None)
    form.close()
    return result


@app.delete("/forms/{form_id}")
def close_form(form_id: str, user: User = Depends(current_user), forms: dict = Depends(get_forms)):
    form = _form_for(form_id, user, forms)
    form.close()
    forms.pop(form_id, None)
    return {"ok": True}

# ----------------------------------------------------------------------------- #
# Entrypoint
# ----------------------------------------------------------------------------- #

if __name__ == "__main__":
    import uvicorn
    config.configure_logging()
    uvicorn.run("api.app:app", host="127.0.0.1", port=8001, reload=True)
