import math

import pytest

from street_alignment.config import BatchingConfig
from street_alignment.models import Point, StreetWay

BEND_DEGREES = 5.0
STEP = 0.001  # degrees, ~111 m


def _bent_points() -> list[dict]:
    # Two steps due north from the equator, then two steps 5 degrees east of north
    dlat = STEP * math.cos(math.radians(BEND_DEGREES))
    dlon = STEP * math.sin(math.radians(BEND_DEGREES))
    return [
        {"lat": 0.0, "lon": 0.0},
        {"lat": STEP, "lon": 0.0},
        {"lat": 2 * STEP, "lon": 0.0},
        {"lat": 2 * STEP + dlat, "lon": dlon},
        {"lat": 2 * STEP + 2 * dlat, "lon": 2 * dlon},
    ]


def _straight_points() -> list[dict]:
    return [{"lat": 51.0 + i * STEP, "lon": -0.1} for i in range(5)]


@pytest.fixture
def straight_way():
    return StreetWay(id=1, geometry=[Point(**p) for p in _straight_points()], tags={"highway": "residential"})


@pytest.fixture
def bent_way():
    return StreetWay(id=2, geometry=[Point(**p) for p in _bent_points()], tags={"highway": "primary"})


@pytest.fixture
def strict_batching():
    return BatchingConfig(bearing_tolerance=0.5, max_bearing_drift=1.0, min_batch_length=1, require_batching=True)


@pytest.fixture
def overpass_payload():
    """An Overpass ``out geom`` response with a mix of usable and unusable elements."""
    return {
        "version": 0.6,
        "elements": [
            {"type": "way", "id": 1, "geometry": _straight_points(), "tags": {"highway": "residential"}},
            {"type": "way", "id": 2, "geometry": _bent_points(), "tags": {"highway": "primary"}},
            {"type": "way", "id": 3, "geometry": _straight_points(), "tags": {"highway": "motorway"}},
            {"type": "way", "id": 4, "geometry": [{"lat": 1.0, "lon": 1.0}], "tags": {"highway": "footway"}},
            {"type": "way", "id": 5, "geometry": [{"lat": 1.0}, {"lat": 2.0}], "tags": {"highway": "path"}},
            {"type": "node", "id": 6, "lat": 1.0, "lon": 1.0},
        ],
    }
