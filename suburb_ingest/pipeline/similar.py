"""Similar-suburb normalisation."""

from __future__ import annotations

from typing import Any

from suburb_ingest.common.models import SimilarSuburb
from suburb_ingest.pipeline.envelope import extract_records
from suburb_ingest.pipeline.fields import derive_display_label, to_clean_string, to_finite_float

ENVELOPE_ALIAS = "similar"
UNKNOWN = "Unknown"


def _summary(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, str) else None


def normalize_similar(payload: Any) -> list[SimilarSuburb]:
    results = []
    for record in extract_records(payload, ENVELOPE_ALIAS):
        name = to_clean_string(record.get("name"))
        area_name = to_clean_string(record.get("area_name"))
        results.append(
            SimilarSuburb(
                name=derive_display_label(name, area_name, fallback=UNKNOWN),
                area_name=derive_display_label(area_name, name, fallback=UNKNOWN),
                similarity=to_finite_float(record.get("similarity")),
                summary=_summary(record.get("summary")),
            )
        )
    return results
