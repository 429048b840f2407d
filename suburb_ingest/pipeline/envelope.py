"""Accepted top-level payload shapes."""

from __future__ import annotations

from typing import Any

RESULTS_KEY = "results"


def extract_records(payload: Any, alias: str | None = None) -> list[dict[str, Any]]:
    """Return the record list from a bare array, ``{results: [...]}`` or ``{<alias>: [...]}``.

    Any other shape yields an empty list. Non-object elements are dropped.
    """
    records: list[Any] = []
    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict):
        for key in (RESULTS_KEY, alias):
            if key is not None and isinstance(payload.get(key), list):
                records = payload[key]
                break
    return [record for record in records if isinstance(record, dict)]
