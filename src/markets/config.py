# File: markets/config.py
"""Runtime settings for Dutch Markets, read once from the environment."""
from __future__ import annotations

import logging
import os

# ----------------------------------------------------------------------------- #
# Geocoding
# ----------------------------------------------------------------------------- #

GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY", "").strip()
GEOCODE_API_BASE = os.getenv("GEOCODE_API_BASE", "https://maps.googleapis.com/maps/api/geocode/json")
GEOCODE_HTTP_TIMEOUT = float(os.getenv("GEOCODE_HTTP_TIMEOUT", "10"))
GEOCODE_REGION = os.getenv("GEOCODE_REGION", "nl")
DEBOUNCE_SECONDS = float(os.getenv("MARKETS_DEBOUNCE_SECONDS", "1.0"))
FORM_IDLE_SECONDS = float(os.getenv("MARKETS_FORM_IDLE_SECONDS", "1800"))

# ----------------------------------------------------------------------------- #
# Storage / identity
# ----------------------------------------------------------------------------- #

STORE_BACKEND = os.getenv("MARKETS_STORE", "sqlite").strip().lower()
DB_PATH = os.path.expanduser(os.getenv("MARKETS_DB_PATH", "~/dutchmarkets/db/markets.db"))
COLLECTION = os.getenv("MARKETS_COLLECTION", "markets")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "")
CREDENTIAL_SOURCE = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

# ----------------------------------------------------------------------------- #
# HTTP
# ----------------------------------------------------------------------------- #

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "ALLOWED_ORIGINS",
        "http://127.0.0.1:3000,http://localhost:3000,http://127.0.0.1:8000,http://localhost:8000",
    ).split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("MARKETS_LOG_LEVEL", "INFO").upper()

# ----------------------------------------------------------------------------- #
# Vocabularies
# ----------------------------------------------------------------------------- #

DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MARKET_CATEGORIES = (
    "Fresh Produce",
    "Street Food",
    "Flowers",
    "Clothing",
    "Antiques",
    "Crafts",
    "Fish",
    "Cheese",
    "Other",
)

# Amsterdam
DEFAULT_CENTER = (52.3676, 4.9041)
DEFAULT_ZOOM = 11


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
