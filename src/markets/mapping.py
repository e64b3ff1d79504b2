# File: markets/mapping.py
"""Map surface handle: the pins to draw and where clicks go."""
from __future__ import annotations

import inspect
import typing as t

from markets.config import DEFAULT_CENTER, DEFAULT_ZOOM
from markets.models import Coordinate


class Marker(t.TypedDict):
    position: dict[str, float]
    title: str


ClickHandler = t.Callable[[Coordinate], t.Any]


def marker(position: Coordinate, title: str) -> Marker:
    return {"position": position.to_dict(), "title": title}


def markers_for(listings: t.Iterable[dict[str, t.Any]]) -> list[Marker]:
    """Markers for stored listing documents; documents without a usable location are skipped."""
    items: list[Marker] = []
    for doc in listings:
        loc = doc.get("location") or {}
        try:
            position = Coordinate(float(loc["lat"]), float(loc["lng"]))
        except (KeyError, TypeError, ValueError):
            continue
        items.append(marker(position, doc.get("name") or "Market"))
    return items


class MapSurface:
    def __init__(self, markers: t.Iterable[Marker] = (), on_click: ClickHandler | None = None):
        self.markers: list[Marker] = list(markers)
        self.on_click = on_click
        self.center = Coordinate(*DEFAULT_CENTER)
        self.zoom = DEFAULT_ZOOM

    def set_markers(self, markers: t.Iterable[Marker]) -> None:
        self.markers = list(markers)

    async def click(self, coordinate: Coordinate) -> None:
        if self.on_click is None:
            return
        result = self.on_click(coordinate)
        if inspect.isawaitable(result):
            await result

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "center": self.center.to_dict(),
            "zoom": self.zoom,
            "markers": self.markers,
        }
