"""Request-level orchestration: fetch, normalise and apply the failure policy.

Each ``run_*`` function answers one dashboard request. Upstream failures never
raise; they become either a 502 body (``error`` policy) or an empty 200 body with
a warning (``degrade`` policy), as configured per runner.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from suburb_ingest.common.config_loader import IngestConfig
from suburb_ingest.common.constants import PROPERTY_TYPE_ENDPOINTS, PROPERTY_TYPES
from suburb_ingest.common.logging import log_event
from suburb_ingest.common.memo import KeyValueStore
from suburb_ingest.common.models import Coordinates, Property
from suburb_ingest.common.suburb import normalize_suburb_name
from suburb_ingest.common.time_utils import elapsed_ms
from suburb_ingest.fetch.outcome import FetchFailure
from suburb_ingest.fetch.upstream import UpstreamClient
from suburb_ingest.pipeline.amenities import amenity_categories, normalize_amenities
from suburb_ingest.pipeline.centroid import resolve_centroid
from suburb_ingest.pipeline.envelope import extract_records
from suburb_ingest.pipeline.properties import normalize_properties
from suburb_ingest.pipeline.schools import locate_schools, normalize_schools
from suburb_ingest.pipeline.similar import normalize_similar

ERROR_STATUS = 502
BAD_REQUEST_STATUS = 400
INVALID_PROPERTY_TYPE = "INVALID_PROPERTY_TYPE"

_default_logger = logging.getLogger("suburb_ingest.runner")


@dataclass(frozen=True)
class RunnerResponse:
    status: int
    body: Any
    degraded: bool = False


def resolve_suburb(raw: str | None, config: IngestConfig) -> str:
    return normalize_suburb_name(raw) or config.default_suburb


def failure_response(
    runner: str,
    failure: FetchFailure,
    config: IngestConfig,
    empty_body: dict[str, Any],
) -> RunnerResponse:
    if config.policy_for(runner) == "degrade":
        meta: dict[str, Any] = {"warning": failure.describe(), "error_code": failure.kind.value}
        if failure.raw_snippet:
            meta["snippet"] = failure.raw_snippet
        return RunnerResponse(status=200, body={**empty_body, "meta": meta}, degraded=True)

    body: dict[str, Any] = {"error": failure.describe(), "error_code": failure.kind.value}
    if failure.raw_snippet:
        body["snippet"] = failure.raw_snippet
    return RunnerResponse(status=ERROR_STATUS, body=body)


def _log_result(
    logger: logging.Logger | None,
    runner: str,
    suburb: str,
    started: float,
    response: RunnerResponse,
    *,
    rows_in: int | None = None,
    rows_out: int | None = None,
    error_code: str | None = None,
) -> RunnerResponse:
    if response.status >= 400:
        event = "RUNNER_FAIL"
    elif response.degraded:
        event = "RUNNER_DEGRADED"
    else:
        event = "RUNNER_OK"
    log_event(
        logger or _default_logger,
        f"{runner} {suburb}",
        stage=runner,
        suburb=suburb,
        event=event,
        status=response.status,
        duration_ms=elapsed_ms(started),
        rows_in=rows_in,
        rows_out=rows_out,
        error_code=error_code,
    )
    return response


def _fail(runner, suburb, started, failure, config, empty_body, logger) -> RunnerResponse:
    response = failure_response(runner, failure, config, empty_body)
    return _log_result(logger, runner, suburb, started, response, error_code=failure.kind.value)


def _reject_property_type(runner, suburb, started, property_type, logger) -> RunnerResponse:
    # Not subject to the failure policy.
    body = {"error": f"Unsupported property type: {property_type}", "error_code": INVALID_PROPERTY_TYPE}
    response = RunnerResponse(status=BAD_REQUEST_STATUS, body=body)
    return _log_result(logger, runner, suburb, started, response, error_code=INVALID_PROPERTY_TYPE)


def run_amenities(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    outcome = upstream.fetch("amenity", suburb, cancel_event=cancel_event)
    if not outcome.ok:
        empty = {"results": [], "categories": [], "suburb": suburb}
        return _fail("amenities", suburb, started, outcome, config, empty, logger)

    amenities = normalize_amenities(outcome.data)
    body = {
        "results": [amenity.to_dict() for amenity in amenities],
        "categories": amenity_categories(amenities),
        "suburb": suburb,
    }
    return _log_result(
        logger,
        "amenities",
        suburb,
        started,
        RunnerResponse(status=200, body=body),
        rows_in=len(extract_records(outcome.data, "amenities")),
        rows_out=len(amenities),
    )


def run_schools(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    outcome = upstream.fetch("schools", suburb, cancel_event=cancel_event)
    if not outcome.ok:
        return _fail("schools", suburb, started, outcome, config, {"results": [], "suburb": suburb}, logger)

    schools = normalize_schools(outcome.data)
    body = {"results": [school.to_dict() for school in schools], "suburb": suburb}
    return _log_result(
        logger,
        "schools",
        suburb,
        started,
        RunnerResponse(status=200, body=body),
        rows_in=len(extract_records(outcome.data, "schools")),
        rows_out=len(schools),
    )


def run_located_schools(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    """Schools placed on the map using amenity coordinates; both calls must succeed."""
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    outcomes = upstream.fetch_many(
        {"schools": ("schools", {}), "amenity": ("amenity", {})},
        suburb=suburb,
        cancel_event=cancel_event,
    )
    for name in ("schools", "amenity"):
        outcome = outcomes[name]
        if not outcome.ok:
            empty = {"results": [], "suburb": suburb}
            return _fail("located-schools", suburb, started, outcome, config, empty, logger)

    located = locate_schools(outcomes["schools"].data, outcomes["amenity"].data)
    schools = normalize_schools(located)
    body = {"results": [school.to_dict() for school in schools], "suburb": suburb}
    return _log_result(
        logger,
        "located-schools",
        suburb,
        started,
        RunnerResponse(status=200, body=body),
        rows_in=len(extract_records(outcomes["schools"].data, "schools")),
        rows_out=len(schools),
    )


def run_properties(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    property_type: str | None = None,
    sort_key: Callable[[Property], Any] | None = None,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    property_type = property_type or config.default_property_type
    if property_type not in PROPERTY_TYPES:
        return _reject_property_type("properties", suburb, started, property_type, logger)
    outcome = upstream.fetch(
        "properties",
        suburb,
        property_type=property_type,
        cancel_event=cancel_event,
    )
    if not outcome.ok:
        empty = {"results": [], "total": 0, "suburb": suburb}
        return _fail("properties", suburb, started, outcome, config, empty, logger)

    properties = normalize_properties(outcome.data, sort_key=sort_key)
    body = {
        "results": [listing.to_dict() for listing in properties],
        "total": len(properties),
        "suburb": suburb,
    }
    return _log_result(
        logger,
        "properties",
        suburb,
        started,
        RunnerResponse(status=200, body=body),
        rows_in=len(extract_records(outcome.data, "properties")),
        rows_out=len(properties),
    )


def run_centroid(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    store: KeyValueStore[Coordinates],
    *,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    outcome = resolve_centroid(suburb, upstream, store, cancel_event=cancel_event)
    if not outcome.ok:
        empty = {"suburb": suburb, "lat": None, "lng": None}
        return _fail("centroid", suburb, started, outcome, config, empty, logger)

    centroid = outcome.data
    body = {
        "suburb": suburb,
        "lat": centroid.lat if centroid else None,
        "lng": centroid.lng if centroid else None,
    }
    return _log_result(logger, "centroid", suburb, started, RunnerResponse(status=200, body=body))


def run_similar(
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    outcome = upstream.fetch("similar", suburb, cancel_event=cancel_event)
    if not outcome.ok:
        return _fail("similar", suburb, started, outcome, config, {"results": [], "suburb": suburb}, logger)

    similar = normalize_similar(outcome.data)
    body = {"results": [item.to_dict() for item in similar], "suburb": suburb}
    return _log_result(
        logger,
        "similar",
        suburb,
        started,
        RunnerResponse(status=200, body=body),
        rows_in=len(extract_records(outcome.data, "similar")),
        rows_out=len(similar),
    )


def run_passthrough(
    endpoint: str,
    upstream: UpstreamClient,
    config: IngestConfig,
    suburb_raw: str | None,
    *,
    property_type: str | None = None,
    logger: logging.Logger | None = None,
    cancel_event: threading.Event | None = None,
) -> RunnerResponse:
    """Market, risk and summary payloads go through sanitised but otherwise as-is."""
    if endpoint not in ("market", "risk", "summary"):
        raise ValueError(f"Not a pass-through endpoint: {endpoint}")

    started = time.monotonic()
    suburb = resolve_suburb(suburb_raw, config)
    if endpoint in PROPERTY_TYPE_ENDPOINTS and property_type is not None and property_type not in PROPERTY_TYPES:
        return _reject_property_type(endpoint, suburb, started, property_type, logger)
    outcome = upstream.fetch(endpoint, suburb, property_type=property_type, cancel_event=cancel_event)
    if endpoint == "summary":
        empty: dict[str, Any] = {"results": []}
    else:
        empty = {}
    if not outcome.ok:
        return _fail(endpoint, suburb, started, outcome, config, empty, logger)

    if endpoint == "summary":
        body: Any = {"results": extract_records(outcome.data)}
    elif isinstance(outcome.data, (dict, list)):
        body = outcome.data
    else:
        body = empty
    return _log_result(logger, endpoint, suburb, started, RunnerResponse(status=200, body=body))
