"""Amenity normalisation: labels, dedupe and ordering."""

from __future__ import annotations

from typing import Any

from suburb_ingest.common.models import Amenity
from suburb_ingest.pipeline.coordinates import coordinate_key, resolve_coordinates
from suburb_ingest.pipeline.envelope import extract_records
from suburb_ingest.pipeline.fields import (
    AMENITY_FIELDS,
    coordinate_label,
    derive_display_label,
    first_match,
    title_words,
    to_clean_string,
    to_finite_float,
)

DEFAULT_CATEGORY = "Other"
ENVELOPE_ALIAS = "amenities"


def normalise_amenity(record: dict[str, Any]) -> Amenity | None:
    coords = resolve_coordinates(record)
    if coords is None:
        return None

    explicit_category = first_match(record, AMENITY_FIELDS["category"], to_clean_string)
    category = title_words(explicit_category) if explicit_category else DEFAULT_CATEGORY
    raw_name = first_match(record, AMENITY_FIELDS["name"], to_clean_string)
    category_label = category if explicit_category else None

    display_name = derive_display_label(
        raw_name,
        category_label,
        fallback=coordinate_label("Amenity", coords.lat, coords.lng),
    )
    display_short = derive_display_label(raw_name, category_label, fallback=display_name)

    return Amenity(
        lat=coords.lat,
        lng=coords.lng,
        category=category,
        raw_name=raw_name,
        display_name=display_name,
        display_short=display_short,
        address=first_match(record, AMENITY_FIELDS["address"], to_clean_string) or "",
        distance=first_match(record, AMENITY_FIELDS["distance"], to_finite_float),
    )


def normalize_amenities(payload: Any) -> list[Amenity]:
    seen: set[tuple[str, float, float]] = set()
    amenities: list[Amenity] = []

    for record in extract_records(payload, ENVELOPE_ALIAS):
        amenity = normalise_amenity(record)
        if amenity is None:
            continue

        key = (amenity.category.lower(), *coordinate_key(amenity.lat, amenity.lng))
        if key in seen:
            continue
        seen.add(key)
        amenities.append(amenity)

    return sorted(amenities, key=lambda amenity: (amenity.display_name, amenity.category))


def amenity_categories(amenities: list[Amenity]) -> list[str]:
    return sorted({amenity.category for amenity in amenities})
