# File: markets/store.py
"""Listing Store Gateway: create / list / get / delete market documents.

Two backends share one contract. Firestore is the hosted document store the
web client writes to; SQLite keeps one JSON document per row for local runs
and tests.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
import typing as t
import uuid

from markets import config
from markets.errors import StoreError
from markets.models import FinalizedListing

logger = logging.getLogger(__name__)


class ListingStore(t.Protocol):
    async def create(self, listing: FinalizedListing) -> str: ...

    async def list(self) -> list[dict[str, t.Any]]: ...

    async def get(self, listing_id: str) -> dict[str, t.Any] | None: ...

    async def delete_by_id(self, listing_id: str) -> None: ...


# ----------------------------------------------------------------------------- #
# SQLite
# ----------------------------------------------------------------------------- #

class SqliteListingStore:
    """Local single-file backend. Each call opens its own connection and runs
    in a worker thread via ``asyncio.to_thread`` so the event loop never blocks
    on disk I/O."""

    def __init__(self, path: str | None = None):
        self.path = path or config.DB_PATH
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with self._conn() as conn:
            conn.execute(
                """CREATE TABLE IF NOT EXISTS markets (
                     id TEXT PRIMARY KEY,
                     created_at TEXT,
                     body TEXT NOT NULL
                   )"""
            )

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def _insert(self, listing_id: str, doc: dict[str, t.Any]) -> None:
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO markets (id, created_at, body) VALUES (?, ?, ?)",
                (listing_id, doc["createdAt"], json.dumps(doc)),
            )

    def _select(self, listing_id: str | None = None) -> list[sqlite3.Row]:
        with self._conn() as conn:
            if listing_id is None:
                return conn.execute("SELECT id, body FROM markets ORDER BY created_at, rowid").fetchall()
            return conn.execute("SELECT id, body FROM markets WHERE id = ?", (listing_id,)).fetchall()

    def _delete(self, listing_id: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM markets WHERE id = ?", (listing_id,))

    async def create(self, listing: FinalizedListing) -> str:
        listing_id = uuid.uuid4().hex[:20]
        try:
            await asyncio.to_thread(self._insert, listing_id, listing.to_document())
        except sqlite3.Error as e:
            raise StoreError(f"Could not save market: {e}") from e
        return listing_id

    async def list(self) -> list[dict[str, t.Any]]:
        try:
            rows = await asyncio.to_thread(self._select)
        except sqlite3.Error as e:
            raise StoreError(f"Could not load markets: {e}") from e
        return [{"id": r["id"], **json.loads(r["body"])} for r in rows]

    async def get(self, listing_id: str) -> dict[str, t.Any] | None:
        try:
            rows = await asyncio.to_thread(self._select, listing_id)
        except sqlite3.Error as e:
            raise StoreError(f"Could not load market {listing_id}: {e}") from e
        if not rows:
            return None
        return {"id": rows[0]["id"], **json.loads(rows[0]["body"])}

    async def delete_by_id(self, listing_id: str) -> None:
        try:
            await asyncio.to_thread(self._delete, listing_id)
        except sqlite3.Error as e:
            raise StoreError(f"Could not delete market {listing_id}: {e}") from e


# ----------------------------------------------------------------------------- #
# Firestore
# ----------------------------------------------------------------------------- #

class FirestoreListingStore:
    def __init__(self, collection: str | None = None, db: t.Any = None):
        self.collection = collection or config.COLLECTION
        if db is None:
            from firebase_admin import firestore_async

            from markets.firebase import get_app

            db = firestore_async.client(get_app())
        self.db = db

    async def create(self, listing: FinalizedListing) -> str:
        try:
            _, ref = await self.db.collection(self.collection).add(listing.to_document())
        except Exception as e:
            logger.exception("Firestore add failed")
            raise StoreError(str(e) or "Could not save market") from e
        logger.info("Market added with ID: %s", ref.id)
        return ref.id

    async def list(self) -> list[dict[str, t.Any]]:
        try:
            return [{"id": doc.id, **doc.to_dict()} async for doc in self.db.collection(self.collection).stream()]
        except Exception as e:
            logger.exception("Firestore list failed")
            raise StoreError(str(e) or "Could not load markets") from e

    async def get(self, listing_id: str) -> dict[str, t.Any] | None:
        try:
            snap = await self.db.collection(self.collection).document(listing_id).get()
        except Exception as e:
            logger.exception("Firestore get failed for %s", listing_id)
            raise StoreError(str(e) or f"Could not load market {listing_id}") from e
        if not snap.exists:
            return None
        return {"id": snap.id, **snap.to_dict()}

    async def delete_by_id(self, listing_id: str) -> None:
        try:
            await self.db.collection(self.collection).document(listing_id).delete()
        except Exception as e:
            logger.exception("Firestore delete failed for %s", listing_id)
            raise StoreError(str(e) or f"Could not delete market {listing_id}") from e


def open_store(backend: str | None = None) -> ListingStore:
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "firestore":
        return FirestoreListingStore()
    if backend == "sqlite":
        return SqliteListingStore()
    raise ValueError(f"Unknown store backend '{backend}'. Available: firestore, sqlite")
