# File: markets/cli.py
import asyncio
import json
from typing import List, Optional

import typer

from markets import config
from markets.directory import MarketDirectory
from markets.errors import DeletionFailure, GeocodeFailure, SubmissionFailure, ValidationError
from markets.export import export_from_profile
from markets.form import MarketForm
from markets.geocoding import GeocodingAdapter
from markets.models import Coordinate
from markets.store import open_store

APP = typer.Typer(help="Dutch Markets: browse, add and export local street markets.")

EXPORTS = "config/export_profiles.yml"


@APP.callback()
def main(
    store: str = typer.Option(None, "--store", help="Store backend (sqlite or firestore)"),
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level"),
):
    config.configure_logging(log_level.upper())
    if store:
        config.STORE_BACKEND = store.lower()


@APP.command("list")
def cmd_list():
    directory = MarketDirectory(open_store())
    markets = asyncio.run(directory.refresh())
    for m in markets:
        days = ", ".join(m.get("operatingDays") or [])
        typer.echo(f"{m['id']}  {m.get('name')}  ({m.get('city')})  {days} {m.get('startTime')}-{m.get('endTime')}")
    typer.echo(f"count={len(markets)}")


@APP.command("geocode")
def cmd_geocode(
    address: str = typer.Argument(..., help="Street name and number"),
    postal_code: str = typer.Argument(..., help="Dutch postal code, e.g. 1012 JS"),
    city: str = typer.Argument(...),
):
    try:
        coordinate = asyncio.run(GeocodingAdapter().forward_geocode(address, postal_code, city))
    except GeocodeFailure as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=2)
    if coordinate is None:
        typer.echo("[warn] No result", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(coordinate.to_dict()))


@APP.command("reverse")
def cmd_reverse(lat: float = typer.Argument(...), lng: float = typer.Argument(...)):
    try:
        fragment = asyncio.run(GeocodingAdapter().reverse_geocode(Coordinate(lat, lng)))
    except GeocodeFailure as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=2)
    if fragment is None:
        typer.echo("[warn] No result", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(fragment._asdict()))


async def _add(
    user: str,
    fields: dict,
    days: List[str],
    categories: List[str],
    location: Optional[Coordinate],
) -> dict:
    form = MarketForm(GeocodingAdapter(), open_store())
    try:
        for name, value in fields.items():
            if value is not None:
                form.set_field(name, value)
        for day in days:
            form.toggle_day(day)
        for category in categories:
            form.toggle_category(category)
        if location is not None:
            form.debouncer.cancel()
            await form.set_coordinate_from_map_click(location)
        else:
            await form.debouncer.flush()
        listing = await form.submit(user)
        return {"id": form.listing_id, **listing.to_document()}
    finally:
        form.close()


@APP.command("add")
def cmd_add(
    user: str = typer.Option(..., help="Creator uid"),
    name: str = typer.Option(...),
    description: str = typer.Option(...),
    address: str = typer.Option(None, help="Street name and number"),
    postal_code: str = typer.Option(None, help="Dutch postal code, e.g. 1234 AB"),
    city: str = typer.Option(None),
    day: List[str] = typer.Option([], "--day", help="Operating day (repeatable)"),
    category: List[str] = typer.Option([], "--category", help="Market category (repeatable)"),
    opens: str = typer.Option("09:00"),
    closes: str = typer.Option("17:00"),
    lat: float = typer.Option(None, help="Pick the location like a map click (fills the address)"),
    lng: float = typer.Option(None),
):
    location = Coordinate(lat, lng) if lat is not None and lng is not None else None
    fields = {
        "name": name,
        "description": description,
        "address": address,
        "postal_code": postal_code,
        "city": city,
        "start_time": opens,
        "end_time": closes,
    }
    try:
        record = asyncio.run(_add(user, fields, day, category, location))
    except (KeyError, ValueError) as e:
        raise typer.BadParameter(str(e))
    except ValidationError as e:
        typer.echo(f"[error] {e.message}", err=True)
        raise typer.Exit(code=2)
    except SubmissionFailure as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=3)
    typer.echo(json.dumps(record, indent=2))


@APP.command("delete")
def cmd_delete(
    market_id: str = typer.Argument(...),
    user: str = typer.Option(..., help="Uid of the market's creator"),
):
    directory = MarketDirectory(open_store())
    try:
        asyncio.run(directory.delete(market_id, user))
    except KeyError:
        typer.echo(f"[error] Market not found: {market_id}", err=True)
        raise typer.Exit(code=1)
    except PermissionError as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=2)
    except DeletionFailure as e:
        typer.echo(f"[error] {e}", err=True)
        raise typer.Exit(code=3)
    typer.echo(f"deleted={market_id}")


@APP.command("export")
def cmd_export(profile: str = typer.Option(EXPORTS, help="Export profile YAML")):
    directory = MarketDirectory(open_store())
    markets = asyncio.run(directory.refresh())
    written = export_from_profile(markets, profile)
    typer.echo(json.dumps(written, indent=2))


if __name__ == "__main__":
    APP()
