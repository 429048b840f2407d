from __future__ import annotations

import threading
import time

import pytest
from conftest import ScriptedHttp, fail, ok

from suburb_ingest.common.config_loader import RetryConfig
from suburb_ingest.fetch.outcome import FailureKind
from suburb_ingest.fetch.upstream import UpstreamClient, is_retryable


def test_build_url_for_endpoint_family(config):
    upstream = UpstreamClient(config, ScriptedHttp({}))
    assert upstream.build_url("amenity") == "https://upstream.test/api/suburb/amenity"
    assert upstream.build_url("summary") == "https://upstream.test/api/suburb/summary"
    with pytest.raises(ValueError):
        upstream.build_url("weather")


def test_build_params_property_type_rules(config):
    upstream = UpstreamClient(config, ScriptedHttp({}))
    assert upstream.build_params("amenity", "Belmont North", "house") == {"suburb": "Belmont North"}
    assert upstream.build_params("market", "Belmont North") == {"suburb": "Belmont North", "property_type": "all"}
    assert upstream.build_params("properties", "Belmont North") == {"suburb": "Belmont North"}
    assert upstream.build_params("properties", "X", "unit") == {"suburb": "X", "property_type": "unit"}
    with pytest.raises(ValueError):
        upstream.build_params("properties", "X", "castle")


def test_fetch_passes_suburb_query(config):
    http = ScriptedHttp({"/suburb/schools": ok({"results": []})})
    outcome = UpstreamClient(config, http).fetch("schools", "Belmont North")

    assert outcome.ok
    assert http.calls == [("https://upstream.test/api/suburb/schools", {"suburb": "Belmont North"})]


def test_single_attempt_does_not_retry(config):
    http = ScriptedHttp({"/suburb/risk": [fail(503), ok({})]})
    outcome = UpstreamClient(config, http).fetch("risk", "X")

    assert outcome.status == 503
    assert len(http.calls) == 1


def test_retry_policy_retries_retryable_failures(make_config):
    config = make_config(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    http = ScriptedHttp({"/suburb/risk": [fail(503), fail(502, kind=FailureKind.TIMEOUT), ok({"level": "low"})]})

    outcome = UpstreamClient(config, http).fetch("risk", "X")

    assert outcome.ok
    assert outcome.data == {"level": "low"}
    assert len(http.calls) == 3


def test_retry_policy_returns_last_failure_when_exhausted(make_config):
    config = make_config(retry=RetryConfig(max_attempts=2, multiplier=0.0, max_wait=0.0))
    http = ScriptedHttp({"/suburb/risk": [fail(503, "first"), fail(503, "second")]})

    outcome = UpstreamClient(config, http).fetch("risk", "X")

    assert not outcome.ok
    assert outcome.message == "second"


def test_retry_policy_skips_non_retryable(make_config):
    config = make_config(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    http = ScriptedHttp({"/suburb/risk": [fail(404, "not found"), ok({})]})

    outcome = UpstreamClient(config, http).fetch("risk", "X")

    assert outcome.status == 404
    assert len(http.calls) == 1


def test_is_retryable_classification():
    assert is_retryable(fail(429))
    assert is_retryable(fail(502, kind=FailureKind.NETWORK_FAILURE))
    assert not is_retryable(fail(200, kind=FailureKind.DECODE_FAILURE))
    assert not is_retryable(fail(502, kind=FailureKind.CANCELLED))
    assert not is_retryable(ok({}))


class SlowHttp(ScriptedHttp):
    def __init__(self, routes, delay: float):
        super().__init__(routes)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def fetch_json(self, url, **kwargs):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(self.delay)
        with self.lock:
            self.active -= 1
        return super().fetch_json(url, **kwargs)


def test_fetch_many_runs_calls_concurrently(config):
    http = SlowHttp({"/suburb/schools": ok([1]), "/suburb/amenity": ok([2])}, delay=0.2)

    outcomes = UpstreamClient(config, http).fetch_many(
        {"schools": ("schools", {}), "amenity": ("amenity", {})},
        suburb="X",
    )

    assert outcomes["schools"].data == [1]
    assert outcomes["amenity"].data == [2]
    assert http.max_active == 2
