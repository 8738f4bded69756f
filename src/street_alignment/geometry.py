"""Spherical geometry helpers: bearings, distances and sun alignment."""

import math

from .models import Point

EARTH_RADIUS_M = 6_371_000


def bearing(p1: Point, p2: Point) -> float:
    """Forward azimuth from ``p1`` to ``p2`` in degrees, normalised to [0, 360)."""
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    delta_lambda = math.radians(p2.lon - p1.lon)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)

    theta = math.atan2(x, y)
    return (math.degrees(theta) + 360) % 360


def distance(p1: Point, p2: Point) -> float:
    """Haversine great-circle distance in metres."""
    phi1 = math.radians(p1.lat)
    phi2 = math.radians(p2.lat)
    delta_phi = math.radians(p2.lat - p1.lat)
    delta_lambda = math.radians(p2.lon - p1.lon)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def bearing_difference(b1: float, b2: float) -> float:
    """Smallest angle between two bearings, in [0, 180]."""
    diff = abs(b1 - b2) % 360
    return min(diff, 360 - diff)


def signed_bearing_offset(origin: float, other: float) -> float:
    """Signed offset from ``origin`` to ``other`` in (-180, 180]."""
    offset = (other - origin) % 360
    return offset - 360 if offset > 180 else offset


def alignment_score(street_bearing: float, sun_azimuth: float) -> float:
    """How parallel a street is to the sun's azimuth, in [0, 1].

    Streets are bidirectional, so a bearing and its reverse score the same:
    1.0 when parallel or antiparallel, 0.0 when perpendicular, linear between.
    """
    diff = abs(street_bearing - sun_azimuth) % 180
    diff = min(diff, 180 - diff)
    return min(1.0, max(0.0, 1 - diff / 90))
