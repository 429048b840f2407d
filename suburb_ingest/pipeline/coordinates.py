"""Coordinate extraction shared by every entity type."""

from __future__ import annotations

from typing import Any

from suburb_ingest.common.models import Coordinates
from suburb_ingest.pipeline.fields import LAT_PATHS, LNG_PATHS, first_match, to_finite_float

DEDUPE_PLACES = 5


def resolve_coordinates(record: Any) -> Coordinates | None:
    if not isinstance(record, dict):
        return None
    lat = first_match(record, LAT_PATHS, to_finite_float)
    lng = first_match(record, LNG_PATHS, to_finite_float)
    if lat is None or lng is None:
        return None
    return Coordinates(lat=lat, lng=lng)


def coordinate_key(lat: float, lng: float, places: int = DEDUPE_PLACES) -> tuple[float, float]:
    # round() can return -0.0; normalise so it keys the same as 0.0.
    return round(lat, places) + 0.0, round(lng, places) + 0.0
