from __future__ import annotations

import pytest
from conftest import ScriptedHttp, fail, ok

from suburb_ingest.fetch.upstream import UpstreamClient
from suburb_ingest.pipeline import runner

SCHOOLS = {
    "results": [
        {"id": 1, "name": "Belmont North Public School", "school_level_type": "Primary", "school_sector_type": "Government"},
        {"id": 2, "name": "Unlisted College"},
    ]
}
AMENITIES = {
    "results": [
        {"name": "Belmont North Public", "category": "School", "lat": -33.02, "lon": 151.67},
        {"name": "Park", "category": "Park", "lat": -33.01, "lon": 151.66},
    ]
}


@pytest.mark.integration
def test_located_schools_join_amenity_coordinates(config):
    http = ScriptedHttp({"/suburb/schools": ok(SCHOOLS), "/suburb/amenity": ok(AMENITIES)})

    response = runner.run_located_schools(UpstreamClient(config, http), config, "Belmont North")

    assert response.status == 200
    results = response.body["results"]
    assert len(results) == 1
    assert results[0]["name"] == "Belmont North Public School"
    assert (results[0]["lat"], results[0]["lng"]) == (-33.02, 151.67)
    assert results[0]["level"] == "Primary"
    assert results[0]["sector"] == "Government"
    assert sorted(url.rsplit("/", 1)[-1] for url, _ in http.calls) == ["amenity", "schools"]


@pytest.mark.integration
@pytest.mark.parametrize(
    "routes, status",
    [
        ({"/suburb/schools": fail(500, "schools down"), "/suburb/amenity": ok(AMENITIES)}, 502),
        ({"/suburb/schools": ok(SCHOOLS), "/suburb/amenity": fail(404, "not found")}, 502),
    ],
)
def test_located_schools_fail_when_either_call_fails(config, routes, status):
    response = runner.run_located_schools(UpstreamClient(config, ScriptedHttp(routes)), config, "X")

    assert response.status == status
    assert "results" not in response.body
    assert response.body["error"].startswith("Upstream ")
