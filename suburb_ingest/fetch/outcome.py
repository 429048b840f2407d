"""Discriminated result of an upstream call."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from suburb_ingest.common.errors import UpstreamError


class FailureKind(str, Enum):
    NETWORK_FAILURE = "NETWORK_FAILURE"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    UPSTREAM_HTTP_ERROR = "UPSTREAM_HTTP_ERROR"
    NON_JSON_PAYLOAD = "NON_JSON_PAYLOAD"
    DECODE_FAILURE = "DECODE_FAILURE"


@dataclass(frozen=True)
class FetchSuccess:
    status: int
    data: Any

    ok = True

    def unwrap(self) -> Any:
        return self.data


@dataclass(frozen=True)
class FetchFailure:
    status: int
    message: str
    kind: FailureKind
    raw_snippet: str | None = None

    ok = False

    def unwrap(self) -> Any:
        raise UpstreamError(self)

    def describe(self) -> str:
        return f"Upstream {self.status}: {self.message}"


FetchOutcome = Union[FetchSuccess, FetchFailure]


def truncate_snippet(text: str | None, limit: int) -> str | None:
    if text is None:
        return None
    if len(text) <= limit:
        return text
    return text[:limit]
