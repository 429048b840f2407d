from __future__ import annotations

from pathlib import Path

import pytest
from conftest import ScriptedHttp, ok

from suburb_ingest.fetch.http import HttpClient
from suburb_ingest.fetch.upstream import UpstreamClient
from suburb_ingest.pipeline import runner

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


class FakeResponse:
    def __init__(self, text: str):
        self.status_code = 200
        self.text = text
        self.headers = {"Content-Type": "application/json; charset=utf-8"}
        self.encoding = "utf-8"

    def iter_content(self, chunk_size=1):
        body = self.text.encode("utf-8")
        for start in range(0, len(body), chunk_size):
            yield body[start : start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


@pytest.mark.regression
def test_recorded_amenity_payload_normalises_to_pinned_body(config, monkeypatch):
    text = (FIXTURES / "amenity_belmont_north.txt").read_text(encoding="utf-8")
    client = HttpClient(token=config.token, timeout_ms=2000)
    monkeypatch.setattr(client.session, "request", lambda **kwargs: FakeResponse(text))

    try:
        response = runner.run_amenities(UpstreamClient(config, client), config, "Belmont%20North")
    finally:
        client.close()

    assert response.status == 200
    assert response.body == {
        "suburb": "Belmont North",
        "categories": ["Cafe", "Other", "Park"],
        "results": [
            {
                "lat": -33.0231,
                "lng": 151.6672,
                "category": "Park",
                "rawName": "Belmont Lagoon Reserve",
                "displayName": "Belmont Lagoon Reserve",
                "displayShort": "Belmont Lagoon Reserve",
                "address": "",
                "distance": None,
            },
            {
                "lat": -33.019,
                "lng": 151.6601,
                "category": "Cafe",
                "rawName": None,
                "displayName": "Cafe",
                "displayShort": "Cafe",
                "address": "12 Pacific Hwy",
                "distance": None,
            },
            {
                "lat": -33.0201,
                "lng": 151.6655,
                "category": "Other",
                "rawName": "Opal Pharmacy",
                "displayName": "Opal Pharmacy",
                "displayShort": "Opal Pharmacy",
                "address": "",
                "distance": 0.8,
            },
        ],
    }


@pytest.mark.regression
def test_repeated_runs_produce_identical_bodies(config):
    payload = {
        "results": [
            {"name": "B", "category": "shop", "lat": 1, "lon": 1},
            {"name": "A", "category": "shop", "lat": 2, "lon": 2},
            {"name": "A", "category": "park", "lat": 3, "lon": 3},
        ]
    }
    bodies = [
        runner.run_amenities(
            UpstreamClient(config, ScriptedHttp({"/suburb/amenity": ok(payload)})), config, "X"
        ).body
        for _ in range(3)
    ]

    assert bodies[0] == bodies[1] == bodies[2]
    assert [(a["displayName"], a["category"]) for a in bodies[0]["results"]] == [
        ("A", "Park"),
        ("A", "Shop"),
        ("B", "Shop"),
    ]
