"""Suburb-scoped endpoint family of the upstream data API."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_exponential_jitter

from suburb_ingest.common.config_loader import IngestConfig, RetryConfig
from suburb_ingest.common.constants import ENDPOINT_PATHS, PROPERTY_TYPE_ENDPOINTS, PROPERTY_TYPES
from suburb_ingest.fetch.http import HttpClient
from suburb_ingest.fetch.outcome import FailureKind, FetchOutcome

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}
RETRYABLE_KINDS = {FailureKind.TIMEOUT, FailureKind.NETWORK_FAILURE}


def is_retryable(outcome: FetchOutcome) -> bool:
    if outcome.ok:
        return False
    if outcome.kind in RETRYABLE_KINDS:
        return True
    return outcome.kind == FailureKind.UPSTREAM_HTTP_ERROR and outcome.status in RETRYABLE_STATUS_CODES


def _last_outcome(retry_state) -> FetchOutcome:
    return retry_state.outcome.result()


class UpstreamClient:
    def __init__(self, config: IngestConfig, http_client: HttpClient | None = None) -> None:
        self.config = config
        self.http = http_client or HttpClient(
            token=config.token,
            timeout_ms=config.timeout_ms,
            snippet_limit=config.snippet_limit,
        )

    def close(self) -> None:
        self.http.close()

    def build_url(self, endpoint: str) -> str:
        path = ENDPOINT_PATHS.get(endpoint)
        if path is None:
            raise ValueError(f"Unknown upstream endpoint: {endpoint}")
        return f"{self.config.base_url}/suburb/{path}"

    def build_params(self, endpoint: str, suburb: str, property_type: str | None = None) -> dict[str, str]:
        params = {"suburb": suburb}
        if endpoint in PROPERTY_TYPE_ENDPOINTS:
            if property_type is None and endpoint == "market":
                property_type = "all"
            if property_type is not None:
                if property_type not in PROPERTY_TYPES:
                    raise ValueError(f"Unsupported property type: {property_type}")
                params["property_type"] = property_type
        return params

    def _with_retry(self, call, retry: RetryConfig) -> FetchOutcome:
        if retry.max_attempts <= 1:
            return call()
        retrying = Retrying(
            stop=stop_after_attempt(retry.max_attempts),
            wait=wait_exponential_jitter(initial=retry.multiplier, max=retry.max_wait, jitter=retry.multiplier),
            retry=retry_if_result(is_retryable),
            retry_error_callback=_last_outcome,
        )
        return retrying(call)

    def fetch(
        self,
        endpoint: str,
        suburb: str,
        *,
        property_type: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FetchOutcome:
        url = self.build_url(endpoint)
        params = self.build_params(endpoint, suburb, property_type)

        def _call() -> FetchOutcome:
            return self.http.fetch_json(url, params=params, cancel_event=cancel_event)

        return self._with_retry(_call, self.config.retry)

    def fetch_many(
        self,
        calls: dict[str, tuple[str, dict[str, Any]]],
        *,
        suburb: str,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, FetchOutcome]:
        """Run several endpoint calls concurrently and wait for all of them."""
        if not calls:
            return {}
        with ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="upstream-many") as pool:
            futures = {
                name: pool.submit(self.fetch, endpoint, suburb, cancel_event=cancel_event, **kwargs)
                for name, (endpoint, kwargs) in calls.items()
            }
            return {name: future.result() for name, future in futures.items()}
