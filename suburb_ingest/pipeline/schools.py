"""School normalisation and cross-referencing with amenity coordinates."""

from __future__ import annotations

from typing import Any

from suburb_ingest.common.models import School
from suburb_ingest.pipeline.coordinates import coordinate_key, resolve_coordinates
from suburb_ingest.pipeline.envelope import extract_records
from suburb_ingest.pipeline.fields import (
    SCHOOL_FIELDS,
    coordinate_label,
    first_match,
    to_clean_string,
    to_finite_float,
)

ENVELOPE_ALIAS = "schools"
SCHOOL_CATEGORY = "school"


def normalise_school(record: dict[str, Any]) -> School | None:
    coords = resolve_coordinates(record)
    if coords is None:
        return None

    name = first_match(record, SCHOOL_FIELDS["name"], to_clean_string)
    return School(
        lat=coords.lat,
        lng=coords.lng,
        name=name or coordinate_label("School", coords.lat, coords.lng),
        level=first_match(record, SCHOOL_FIELDS["level"], to_clean_string),
        sector=first_match(record, SCHOOL_FIELDS["sector"], to_clean_string),
        rating=first_match(record, SCHOOL_FIELDS["rating"], to_finite_float),
        naplan_rank=first_match(record, SCHOOL_FIELDS["naplan_rank"], to_clean_string),
        attendance_rate=first_match(record, SCHOOL_FIELDS["attendance_rate"], to_finite_float),
        raw=record,
    )


def normalize_schools(payload: Any) -> list[School]:
    seen: set[tuple[float, float]] = set()
    schools: list[School] = []

    for record in extract_records(payload, ENVELOPE_ALIAS):
        school = normalise_school(record)
        if school is None:
            continue

        key = coordinate_key(school.lat, school.lng)
        if key in seen:
            continue
        seen.add(key)
        schools.append(school)

    return sorted(schools, key=lambda school: (school.name, school.level or ""))


def _norm_name(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _names_match(school_name: str, amenity_name: str) -> bool:
    if not school_name or not amenity_name:
        return False
    return school_name == amenity_name or school_name in amenity_name or amenity_name in school_name


def locate_schools(schools_payload: Any, amenities_payload: Any) -> list[dict[str, Any]]:
    """Attach amenity coordinates to school records that carry none of their own.

    The schools endpoint often omits coordinates while the amenity endpoint lists
    the same schools (category ``school``) with a location; they are joined on a
    loose, case-insensitive name match. Records already carrying coordinates are
    left alone.
    """
    school_amenities = []
    for amenity in extract_records(amenities_payload, "amenities"):
        if _norm_name(amenity.get("category")) != SCHOOL_CATEGORY:
            continue
        coords = resolve_coordinates(amenity)
        if coords is not None:
            school_amenities.append((_norm_name(amenity.get("name")), coords))

    located: list[dict[str, Any]] = []
    for record in extract_records(schools_payload, ENVELOPE_ALIAS):
        if resolve_coordinates(record) is not None:
            located.append(record)
            continue
        school_name = _norm_name(first_match(record, SCHOOL_FIELDS["name"], to_clean_string))
        for amenity_name, coords in school_amenities:
            if _names_match(school_name, amenity_name):
                located.append({**record, "latitude": coords.lat, "longitude": coords.lng})
                break
    return located
