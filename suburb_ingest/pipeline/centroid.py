"""Suburb centroid from amenity locations, memoised by suburb name."""

from __future__ import annotations

import threading
from typing import Any

from suburb_ingest.common.memo import KeyValueStore, get_or_compute
from suburb_ingest.common.models import Coordinates
from suburb_ingest.common.suburb import memo_key
from suburb_ingest.fetch.outcome import FetchOutcome, FetchSuccess
from suburb_ingest.fetch.upstream import UpstreamClient
from suburb_ingest.pipeline.coordinates import resolve_coordinates
from suburb_ingest.pipeline.envelope import extract_records


def centroid_of(payload: Any) -> Coordinates | None:
    points = [coords for coords in map(resolve_coordinates, extract_records(payload, "amenities")) if coords]
    if not points:
        return None
    return Coordinates(
        lat=sum(point.lat for point in points) / len(points),
        lng=sum(point.lng for point in points) / len(points),
    )


def resolve_centroid(
    suburb: str,
    upstream: UpstreamClient,
    store: KeyValueStore[Coordinates],
    *,
    cancel_event: threading.Event | None = None,
) -> FetchOutcome:
    """Return ``FetchSuccess(data=Coordinates | None)`` or the upstream failure.

    Only located centroids are memoised; failures and empty payloads are retried
    on the next lookup.
    """
    failures = []

    def _compute() -> Coordinates | None:
        outcome = upstream.fetch("amenity", suburb, cancel_event=cancel_event)
        if not outcome.ok:
            failures.append(outcome)
            return None
        return centroid_of(outcome.data)

    centroid = get_or_compute(store, memo_key(suburb), _compute)
    if failures:
        return failures[0]
    return FetchSuccess(status=200, data=centroid)
