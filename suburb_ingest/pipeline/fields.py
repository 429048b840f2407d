"""Field-candidate tables and the generic first-match resolvers.

Upstream records spell the same field several ways and sometimes nest it. Each
canonical field is described by an ordered tuple of key paths; the first path
whose value survives the coercion wins.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, TypeVar

T = TypeVar("T")

FieldPath = tuple[str, ...]

LAT_PATHS: tuple[FieldPath, ...] = (
    ("latitude",),
    ("lat",),
    ("coordinates", "latitude"),
    ("coordinates", "lat"),
)
LNG_PATHS: tuple[FieldPath, ...] = (
    ("longitude",),
    ("lon",),
    ("lng",),
    ("coordinates", "longitude"),
    ("coordinates", "lon"),
    ("coordinates", "lng"),
)

AMENITY_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "category": (("category",), ("type",)),
    "name": (("name",),),
    "address": (("address",),),
    "distance": (("distance",),),
}

SCHOOL_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "name": (("name",), ("school_name",)),
    "level": (("school_level_type",), ("level",)),
    "sector": (("school_sector_type",), ("sector",)),
    "rating": (("naplan",), ("rating",)),
    "naplan_rank": (("naplan_rank",),),
    "attendance_rate": (("attendance_rate",),),
}

PROPERTY_FIELDS: dict[str, tuple[FieldPath, ...]] = {
    "price_text": (("price_text",), ("priceText",), ("price_display",), ("listing_price",)),
    "price": (("price",),),
    "bedrooms": (("bedrooms",), ("beds",), ("attributes", "bedrooms")),
    "bathrooms": (("bathrooms",), ("baths",), ("attributes", "bathrooms")),
    "car_spaces": (("parking",), ("car_spaces",), ("garage",), ("attributes", "garage_spaces")),
    "listing_date": (("listing_date",), ("date_listed",), ("listed_at",), ("listedDate",)),
    "property_type": (("property_type",), ("propertyType",), ("category",)),
    "area": (("area_name",), ("suburb",)),
}


def lookup_path(record: Any, path: FieldPath) -> Any:
    node = record
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def first_match(
    record: Any,
    paths: Iterable[FieldPath],
    coerce: Callable[[Any], T | None],
) -> T | None:
    for path in paths:
        value = coerce(lookup_path(record, path))
        if value is not None:
            return value
    return None


def to_finite_float(value: Any) -> float | None:
    # JSON booleans are ints in Python but never coordinates.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_clean_string(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return None


def title_words(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.split())


def coordinate_label(prefix: str, lat: float, lng: float) -> str:
    return f"{prefix} ({lat:.4f}, {lng:.4f})"


def derive_display_label(*candidates: str | None, fallback: str) -> str:
    for candidate in candidates:
        if candidate:
            return candidate
    return fallback
