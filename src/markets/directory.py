# File: markets/directory.py
from __future__ import annotations

import logging
import typing as t

from markets.errors import DeletionFailure, StoreError
from markets.mapping import MapSurface, Marker, markers_for
from markets.store import ListingStore

logger = logging.getLogger(__name__)


class MarketDirectory:
    """The browse page: the current list of markets and their map pins.

    The store stays authoritative; ``markets`` is only what was last loaded.
    """

    def __init__(self, store: ListingStore, map_surface: MapSurface | None = None):
        self.store = store
        self.map = map_surface or MapSurface()
        self.markets: list[dict[str, t.Any]] = []

    async def refresh(self) -> list[dict[str, t.Any]]:
        try:
            self.markets = await self.store.list()
        except StoreError as e:
            logger.error("Error fetching markets: %s", e)
            return self.markets
        self.map.set_markers(markers_for(self.markets))
        return self.markets

    def markers(self) -> list[Marker]:
        return self.map.markers

    def can_delete(self, market: dict[str, t.Any], user_id: str | None) -> bool:
        return bool(user_id) and market.get("createdBy") == user_id

    async def delete(self, listing_id: str, user_id: str) -> None:
        market = next((m for m in self.markets if m.get("id") == listing_id), None)
        if market is None:
            try:
                market = await self.store.get(listing_id)
            except StoreError as e:
                raise DeletionFailure(str(e)) from e
        if market is None:
            raise KeyError(listing_id)
        if not self.can_delete(market, user_id):
            raise PermissionError("Only the creator of a market may delete it")

        try:
            await self.store.delete_by_id(listing_id)
        except StoreError as e:
            logger.error("Error deleting market %s: %s", listing_id, e)
            raise DeletionFailure("Error deleting market. Please try again.") from e

        self.markets = [m for m in self.markets if m.get("id") != listing_id]
        self.map.set_markers(markers_for(self.markets))
        logger.info("Deleted market %s", listing_id)
