"""HTTP client with a hard deadline and total result classification."""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import requests

from suburb_ingest.common.constants import DEFAULT_SNIPPET_LIMIT, DEFAULT_TIMEOUT_MS, USER_AGENT
from suburb_ingest.common.logging import log_event
from suburb_ingest.common.time_utils import elapsed_ms
from suburb_ingest.fetch.outcome import (
    FailureKind,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
    truncate_snippet,
)
from suburb_ingest.fetch.sanitize import sanitize_json_text

POLL_INTERVAL_S = 0.05
GATEWAY_STATUS = 502
CHUNK_SIZE = 16 * 1024


class _DeadlineExceeded(Exception):
    pass


class _Cancelled(Exception):
    pass


@dataclass(frozen=True)
class RawResponse:
    status: int
    content_type: str
    text: str


class _Transfer:
    """The in-flight response of one fetch, shared by the worker and the waiting caller.

    ``abort`` shuts the response socket down so a read blocked on a slow body
    returns at once and the worker thread is released.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.aborted = False
        self.response: requests.Response | None = None

    def attach(self, response: requests.Response) -> bool:
        with self.lock:
            if self.aborted:
                return False
            self.response = response
            return True

    def detach(self) -> None:
        with self.lock:
            self.response = None

    def abort(self) -> None:
        with self.lock:
            self.aborted = True
            if self.response is not None:
                self.response.raw.shutdown()
                self.response = None


def _decode(body: bytes, encoding: str | None) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class HttpClient:
    def __init__(
        self,
        *,
        token: str = "test",
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        snippet_limit: int = DEFAULT_SNIPPET_LIMIT,
        max_workers: int = 8,
        logger: logging.Logger | None = None,
    ) -> None:
        self.token = token
        self.timeout_ms = timeout_ms
        self.snippet_limit = snippet_limit
        self.session = requests.Session()
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upstream-fetch")
        self.logger = logger or logging.getLogger("suburb_ingest.http")

    def close(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
            "Cache-Control": "no-store",
        }

    def _send(
        self,
        url: str,
        params: dict[str, Any] | None,
        timeout_s: float,
        transfer: _Transfer,
    ) -> RawResponse:
        response = self.session.request(
            method="GET",
            url=url,
            params=params,
            headers=self._headers(),
            timeout=(timeout_s, timeout_s),
            stream=True,
        )
        with response:
            if not transfer.attach(response):
                raise _Cancelled()
            try:
                chunks: list[bytes] = []
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if transfer.aborted:
                        raise _Cancelled()
                    chunks.append(chunk)
            finally:
                transfer.detach()
            return RawResponse(
                status=response.status_code,
                content_type=response.headers.get("Content-Type", "") or "",
                text=_decode(b"".join(chunks), response.encoding),
            )

    def _await(
        self,
        future: Future,
        timeout_s: float,
        cancel_event: threading.Event | None,
    ) -> RawResponse:
        deadline = time.monotonic() + timeout_s
        while True:
            remaining = deadline - time.monotonic()
            done, _ = wait([future], timeout=max(0.0, min(remaining, POLL_INTERVAL_S)))
            if done:
                return future.result()
            if cancel_event is not None and cancel_event.is_set():
                raise _Cancelled()
            if deadline - time.monotonic() <= 0:
                raise _DeadlineExceeded()

    def _classify(self, raw: RawResponse) -> FetchOutcome:
        if not 200 <= raw.status < 300:
            body = raw.text.strip()
            message = truncate_snippet(body, self.snippet_limit) if body else f"Upstream error {raw.status}"
            return FetchFailure(
                status=raw.status,
                message=message,
                kind=FailureKind.UPSTREAM_HTTP_ERROR,
                raw_snippet=truncate_snippet(raw.text, self.snippet_limit),
            )

        sanitized = sanitize_json_text(raw.text).strip()
        if not sanitized:
            return FetchSuccess(status=raw.status, data=None)

        # CDN error and login pages come back as 200 text/html.
        if "json" not in raw.content_type.lower() and not sanitized.startswith(("{", "[")):
            return FetchFailure(
                status=GATEWAY_STATUS,
                message="Upstream returned non-JSON payload.",
                kind=FailureKind.NON_JSON_PAYLOAD,
                raw_snippet=truncate_snippet(raw.text, self.snippet_limit),
            )

        try:
            data = json.loads(sanitized)
        except ValueError as exc:
            return FetchFailure(
                status=raw.status,
                message=str(exc) or "Failed to parse sanitized JSON",
                kind=FailureKind.DECODE_FAILURE,
                raw_snippet=truncate_snippet(sanitized, self.snippet_limit),
            )
        return FetchSuccess(status=raw.status, data=data)

    def _fetch(
        self,
        url: str,
        params: dict[str, Any] | None,
        timeout_ms: int,
        cancel_event: threading.Event | None,
    ) -> FetchOutcome:
        timeout_s = timeout_ms / 1000
        transfer = _Transfer()
        future = self.executor.submit(self._send, url, params, timeout_s, transfer)
        try:
            raw = self._await(future, timeout_s, cancel_event)
        except (_DeadlineExceeded, requests.Timeout):
            return FetchFailure(
                status=GATEWAY_STATUS,
                message=f"Request timed out after {timeout_ms}ms",
                kind=FailureKind.TIMEOUT,
            )
        except _Cancelled:
            return FetchFailure(status=GATEWAY_STATUS, message="Request cancelled", kind=FailureKind.CANCELLED)
        except requests.RequestException as exc:
            return FetchFailure(
                status=GATEWAY_STATUS,
                message=str(exc) or exc.__class__.__name__,
                kind=FailureKind.NETWORK_FAILURE,
            )
        finally:
            if not future.done():
                future.cancel()
                transfer.abort()
        return self._classify(raw)

    def fetch_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        timeout_ms: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> FetchOutcome:
        effective_timeout_ms = timeout_ms or self.timeout_ms
        started = time.monotonic()
        outcome = self._fetch(url, params, effective_timeout_ms, cancel_event)
        log_event(
            self.logger,
            f"GET {url}" if outcome.ok else f"GET {url} :: {outcome.message}",
            event="UPSTREAM_FETCH",
            endpoint=url,
            status=outcome.status,
            duration_ms=elapsed_ms(started),
            error_code=None if outcome.ok else outcome.kind.value,
        )
        return outcome
