"""Tests for the FastAPI server endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from street_alignment.config import Settings
from street_alignment.server import create_app


@pytest.fixture
def client():
    transport = ASGITransport(app=create_app(Settings()))
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.asyncio
class TestSegments:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_json(self, client, overpass_payload):
        resp = await client.post("/segments?format=json", json=overpass_payload)
        assert resp.status_code == 200
        segments = resp.json()["segments"]
        assert len(segments) == 3
        assert {s["way_id"] for s in segments} == {1, 2}

    async def test_csv(self, client, overpass_payload):
        resp = await client.post("/segments?format=csv", json=overpass_payload)
        assert resp.status_code == 200
        assert "text/csv" in resp.headers["content-type"]
        lines = resp.text.strip().split("\n")
        assert lines[0].startswith("way_id,road_type,segment_count,")
        assert len(lines) == 4  # header + 3 segments

    async def test_empty_payload(self, client):
        resp = await client.post("/segments", json={})
        assert resp.status_code == 200
        assert resp.json() == {"segments": []}


@pytest.mark.asyncio
class TestScore:
    async def test_with_azimuth(self, client, overpass_payload):
        body = {"elements": overpass_payload["elements"], "sun_azimuth": 0.0}
        resp = await client.post("/score", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["sun_azimuth"] == 0.0
        assert data["stats"]["total"] == 3
        straight = [s for s in data["segments"] if s["segment"]["way_id"] == 1]
        assert straight[0]["alignment_score"] == pytest.approx(1.0)

    async def test_with_date_and_location(self, client, overpass_payload):
        body = {
            "elements": overpass_payload["elements"],
            "date": "2023-06-21",
            "lat": 51.0,
            "lng": -0.1,
            "is_sunrise": False,
        }
        resp = await client.post("/score", json=body)
        assert resp.status_code == 200
        assert 290 < resp.json()["sun_azimuth"] < 330

    async def test_csv(self, client, overpass_payload):
        body = {"elements": overpass_payload["elements"], "sun_azimuth": 90.0}
        resp = await client.post("/score?format=csv", json=body)
        assert resp.status_code == 200
        lines = resp.text.strip().split("\n")
        assert lines[0].endswith("sun_azimuth,alignment_score")
        assert len(lines) == 4

    async def test_missing_azimuth_source_returns_422(self, client, overpass_payload):
        resp = await client.post("/score", json={"elements": overpass_payload["elements"]})
        assert resp.status_code == 422

    async def test_polar_night_returns_400(self, client, overpass_payload):
        body = {"elements": overpass_payload["elements"], "date": "2023-12-21", "lat": 85.0, "lng": 0.0}
        resp = await client.post("/score", json=body)
        assert resp.status_code == 400


@pytest.mark.asyncio
class TestOptimalDay:
    async def test_no_events_returns_400(self, client):
        body = {"street_bearing": 90, "lat": 43.47, "lng": -80.54, "include_sunrise": False, "include_sunset": False}
        resp = await client.post("/optimal-day", json=body)
        assert resp.status_code == 400

    async def test_invalid_bearing_returns_422(self, client):
        resp = await client.post("/optimal-day", json={"street_bearing": 400, "lat": 0, "lng": 0})
        assert resp.status_code == 422

    async def test_east_facing_street(self, client):
        body = {"street_bearing": 90, "lat": 43.47, "lng": -80.54, "year": 2023, "include_sunset": False}
        resp = await client.post("/optimal-day", json=body)
        assert resp.status_code == 200
        data = resp.json()
        assert data["statistics"]["total_days"] == 365
        assert data["best_day"]["best_alignment"]["type"] == "sunrise"
        assert data["best_day"]["best_alignment"]["alignment_score"] > 0.99
        assert 1 <= len(data["top_days"]) <= 5
        assert data["search_params"]["include_sunset"] is False
