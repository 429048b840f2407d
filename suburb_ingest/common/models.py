"""Canonical records produced by the normalizers."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise ValueError(f"Coordinates must be finite: ({self.lat}, {self.lng})")


@dataclass(frozen=True)
class Amenity:
    lat: float
    lng: float
    category: str
    raw_name: str | None
    display_name: str
    display_short: str
    address: str = ""
    distance: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "category": self.category,
            "rawName": self.raw_name,
            "displayName": self.display_name,
            "displayShort": self.display_short,
            "address": self.address,
            "distance": self.distance,
        }


@dataclass(frozen=True)
class School:
    lat: float
    lng: float
    name: str
    level: str | None
    sector: str | None
    rating: float | None
    naplan_rank: str | None = None
    attendance_rate: float | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Property:
    lat: float
    lng: float
    address: str
    price_text: str | None
    bedrooms: float | None
    bathrooms: float | None
    car_spaces: float | None
    listing_date: str | None
    property_type: str | None
    record: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.record)
        out.update(
            {
                "lat": self.lat,
                "lng": self.lng,
                "address": self.address,
                "price_text": self.price_text,
                "bedrooms": self.bedrooms,
                "bathrooms": self.bathrooms,
                "car_spaces": self.car_spaces,
                "listing_date": self.listing_date,
                "property_type": self.property_type,
            }
        )
        return out


@dataclass(frozen=True)
class SimilarSuburb:
    name: str
    area_name: str
    similarity: float | None
    summary: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
