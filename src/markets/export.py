# File: markets/export.py
"""Write the market list to static files for the public site, driven by a YAML profile."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
import yaml


def _ensure_parent(path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)


def markets_frame(markets: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten stored documents: location -> lat/lng, list fields -> ';'-joined text."""
    df = pd.json_normalize(markets, sep="_") if markets else pd.DataFrame()
    df = df.rename(columns={"location_lat": "lat", "location_lng": "lng"})
    for col in ("operatingDays", "categories"):
        if col in df.columns:
            df[col] = df[col].map(lambda v: ";".join(v) if isinstance(v, list) else v)
    return df


def export_from_profile(markets: List[Dict[str, Any]], profile_path: str) -> Dict[str, str]:
    with open(profile_path, "r", encoding="utf-8") as f:
        profiles = yaml.safe_load(f) or {}

    df = markets_frame(markets)
    written = {}
    for name, profile in profiles.items():
        path = Path(profile["path"])
        fields = profile.get("fields", ["*"])

        _ensure_parent(path)

        if fields == ["*"]:
            data = df
        else:
            keep = [f for f in fields if f in df.columns]
            data = df[keep]

        if profile.get("verified_only") and "verified" in df.columns:
            data = data[df["verified"].fillna(False).astype(bool)]

        if path.suffix == ".json":
            # Write JSON (minified for web)
            with open(path, "w", encoding="utf-8") as out:
                json.dump(json.loads(data.to_json(orient="records")), out, ensure_ascii=False, separators=(",", ":"))
        else:
            # Default to CSV
            data.to_csv(path, index=False)

        written[name] = str(path)

    return written
