"""Shared fixtures: an in-code config and a scripted stand-in for HttpClient."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from suburb_ingest.common.config_loader import IngestConfig, RetryConfig
from suburb_ingest.fetch.outcome import FailureKind, FetchFailure, FetchSuccess


def _base_config() -> IngestConfig:
    return IngestConfig(
        base_url="https://upstream.test/api",
        token="test",
        timeout_ms=500,
        snippet_limit=400,
        retry=RetryConfig(max_attempts=1, multiplier=0.0, max_wait=0.0),
        default_suburb="Belmont North",
        default_property_type="all",
        failure_policy={
            "amenities": "degrade",
            "schools": "error",
            "located-schools": "error",
            "properties": "error",
            "centroid": "error",
            "similar": "degrade",
            "market": "error",
            "risk": "error",
            "summary": "error",
        },
        memo_max_entries=16,
    )


class ScriptedHttp:
    """Answers fetch_json by URL suffix; lists are consumed one outcome per call."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.calls: list[tuple[str, dict]] = []

    def fetch_json(self, url, *, params=None, timeout_ms=None, cancel_event=None):
        self.calls.append((url, dict(params or {})))
        for suffix, answer in self.routes.items():
            if url.endswith(suffix):
                if isinstance(answer, list):
                    return answer.pop(0)
                return answer
        raise AssertionError(f"unexpected url {url}")

    def close(self):
        return None


def ok(payload, status: int = 200) -> FetchSuccess:
    # Round-trip through JSON so tests see what the decoder would produce.
    return FetchSuccess(status=status, data=json.loads(json.dumps(payload)))


def fail(status: int = 502, message: str = "boom", kind: FailureKind = FailureKind.UPSTREAM_HTTP_ERROR, snippet=None):
    return FetchFailure(status=status, message=message, kind=kind, raw_snippet=snippet)


@pytest.fixture
def config() -> IngestConfig:
    return _base_config()


@pytest.fixture
def make_config():
    def _make(**overrides) -> IngestConfig:
        return replace(_base_config(), **overrides)

    return _make
