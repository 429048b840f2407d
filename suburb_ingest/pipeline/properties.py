"""Property listing normalisation."""

from __future__ import annotations

from typing import Any, Callable

from suburb_ingest.common.models import Property
from suburb_ingest.pipeline.coordinates import coordinate_key, resolve_coordinates
from suburb_ingest.pipeline.envelope import extract_records
from suburb_ingest.pipeline.fields import PROPERTY_FIELDS, first_match, to_clean_string, to_finite_float

ENVELOPE_ALIAS = "properties"
ADDRESS_UNAVAILABLE = "Address unavailable"


def format_address(record: dict[str, Any]) -> str:
    address = record.get("address")
    if isinstance(address, str) and address.strip():
        return address.strip()

    if isinstance(address, dict):
        parts = [
            to_clean_string(address.get("street")),
            to_clean_string(address.get("sal")) or to_clean_string(address.get("suburb")),
            to_clean_string(address.get("state")),
        ]
        formatted = ", ".join(part for part in parts if part)
        if formatted:
            return formatted

    return first_match(record, PROPERTY_FIELDS["area"], to_clean_string) or ADDRESS_UNAVAILABLE


def _price_text(record: dict[str, Any]) -> str | None:
    text = first_match(record, PROPERTY_FIELDS["price_text"], to_clean_string)
    if text:
        return text
    price = first_match(record, PROPERTY_FIELDS["price"], to_finite_float)
    if price is not None and price > 0:
        return f"${price:,.0f}"
    return None


def normalise_property(record: dict[str, Any]) -> Property | None:
    coords = resolve_coordinates(record)
    if coords is None:
        return None

    return Property(
        lat=coords.lat,
        lng=coords.lng,
        address=format_address(record),
        price_text=_price_text(record),
        bedrooms=first_match(record, PROPERTY_FIELDS["bedrooms"], to_finite_float),
        bathrooms=first_match(record, PROPERTY_FIELDS["bathrooms"], to_finite_float),
        car_spaces=first_match(record, PROPERTY_FIELDS["car_spaces"], to_finite_float),
        listing_date=first_match(record, PROPERTY_FIELDS["listing_date"], to_clean_string),
        property_type=first_match(record, PROPERTY_FIELDS["property_type"], to_clean_string),
        record=record,
    )


def normalize_properties(
    payload: Any,
    sort_key: Callable[[Property], Any] | None = None,
) -> list[Property]:
    properties = []
    for record in extract_records(payload, ENVELOPE_ALIAS):
        listing = normalise_property(record)
        if listing is not None:
            properties.append(listing)
    if sort_key is not None:
        return sorted(properties, key=sort_key)
    return properties


def build_coordinate_lookup(properties: list[Property]) -> dict[tuple[float, float], Property]:
    """Map rounded coordinates to a listing for map-focus lookups; the first listing at a spot wins."""
    lookup: dict[tuple[float, float], Property] = {}
    for listing in properties:
        lookup.setdefault(coordinate_key(listing.lat, listing.lng), listing)
    return lookup
