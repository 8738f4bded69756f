"""NOAA solar position and sunrise/sunset azimuths.

This is the default ``sun_azimuth`` collaborator. The pipeline only depends on
the ``SunAzimuthFn`` signature, so any other solar library can be swapped in.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import NamedTuple, Protocol

from .cache import LRUCache, solar_key

logger = logging.getLogger(__name__)

REFRACTION_HORIZON = -0.833  # degrees, standard atmospheric refraction


class SunAzimuthFn(Protocol):
    def __call__(self, date: dt.date, lat: float, lng: float, is_sunrise: bool) -> float: ...


class SunPosition(NamedTuple):
    azimuth: float  # degrees from North, clockwise
    altitude: float  # degrees above horizon
    time: dt.datetime


class NoSunEventError(Exception):
    """Raised when the sun does not rise or set on a date (polar day or night)."""

    def __init__(self, message: str, is_polar_day: bool):
        super().__init__(message)
        self.is_polar_day = is_polar_day


def julian_day(when: dt.datetime) -> float:
    """Julian Day for a naive UTC datetime."""
    year = when.year
    month = when.month
    day = when.day + when.hour / 24.0 + when.minute / 1440.0 + when.second / 86400.0

    if month <= 2:
        year -= 1
        month += 12

    a = int(year / 100)
    b = 2 - a + int(a / 4)
    return int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524.5


def sun_position(when: dt.datetime, lat: float, lon: float) -> SunPosition:
    """Sun azimuth and altitude at a naive UTC datetime."""
    jc = (julian_day(when) - 2451545) / 36525

    l0 = (280.46646 + jc * (36000.76983 + 0.0003032 * jc)) % 360
    m = math.radians(357.52911 + jc * (35999.05029 - 0.0001537 * jc))
    e = 0.016708634 - jc * (0.000042037 + 0.0000001267 * jc)

    center = (
        math.sin(m) * (1.914602 - jc * (0.004817 + 0.000014 * jc))
        + math.sin(2 * m) * (0.019993 - 0.000101 * jc)
        + math.sin(3 * m) * 0.000289
    )
    omega = math.radians(125.04 - 1934.136 * jc)
    app_lon = l0 + center - 0.00569 - 0.00478 * math.sin(omega)

    obliq_mean = 23 + (26 + (21.448 - jc * (46.8150 + jc * (0.00059 - jc * 0.001813))) / 60) / 60
    obliq = math.radians(obliq_mean + 0.00256 * math.cos(omega))
    declin = math.asin(math.sin(obliq) * math.sin(math.radians(app_lon)))

    var_y = math.tan(obliq / 2) ** 2
    l0_rad = math.radians(l0)
    eq_time = 4 * math.degrees(
        var_y * math.sin(2 * l0_rad)
        - 2 * e * math.sin(m)
        + 4 * e * var_y * math.sin(m) * math.cos(2 * l0_rad)
        - 0.5 * var_y**2 * math.sin(4 * l0_rad)
        - 1.25 * e**2 * math.sin(2 * m)
    )

    minutes = when.hour * 60 + when.minute + when.second / 60 + when.microsecond / 6e7
    true_solar_time = (minutes + eq_time + 4 * lon) % 1440
    hour_angle = true_solar_time / 4 - 180

    lat_rad = math.radians(lat)
    cos_zenith = math.sin(lat_rad) * math.sin(declin) + math.cos(lat_rad) * math.cos(declin) * math.cos(
        math.radians(hour_angle)
    )
    zenith = math.acos(max(-1.0, min(1.0, cos_zenith)))
    altitude = 90 - math.degrees(zenith)

    denom = math.cos(lat_rad) * math.sin(zenith)
    if abs(denom) < 1e-9:
        azimuth = 180.0
    else:
        az_arg = (math.sin(lat_rad) * math.cos(zenith) - math.sin(declin)) / denom
        az = math.degrees(math.acos(max(-1.0, min(1.0, az_arg))))
        azimuth = (az + 180) % 360 if hour_angle > 0 else (540 - az) % 360

    return SunPosition(azimuth=azimuth, altitude=altitude, time=when)


def find_sun_event(date: dt.date, lat: float, lon: float, is_sunrise: bool) -> SunPosition:
    """Sun position at sunrise or sunset on ``date`` (UTC times).

    Raises:
        NoSunEventError: if the sun stays above or below the horizon all day.
    """
    label = "sunrise" if is_sunrise else "sunset"
    solar_noon = dt.datetime(date.year, date.month, date.day, 12) - dt.timedelta(hours=lon / 15)

    altitudes = [
        sun_position(solar_noon + dt.timedelta(hours=h), lat, lon).altitude for h in range(-12, 12, 1)
    ]
    if max(altitudes) < REFRACTION_HORIZON:
        raise NoSunEventError(f"No {label} on {date.isoformat()}: polar night", is_polar_day=False)
    if min(altitudes) > REFRACTION_HORIZON:
        raise NoSunEventError(f"No {label} on {date.isoformat()}: midnight sun", is_polar_day=True)

    step = dt.timedelta(minutes=-5 if is_sunrise else 5)
    inside = solar_noon
    outside = solar_noon
    for _ in range(12 * 14):
        outside = inside + step
        if sun_position(outside, lat, lon).altitude < REFRACTION_HORIZON:
            break
        inside = outside
    else:
        logger.debug("Horizon crossing not found within %d steps of solar noon", 12 * 14)
        raise NoSunEventError(f"Could not bracket {label} on {date.isoformat()}", is_polar_day=True)

    # Bisect between the last time above the horizon and the first below it
    for _ in range(20):
        mid = inside + (outside - inside) / 2
        if sun_position(mid, lat, lon).altitude > REFRACTION_HORIZON:
            inside = mid
        else:
            outside = mid

    return sun_position(inside + (outside - inside) / 2, lat, lon)


class SolarCalculator:
    """Cached sunrise/sunset azimuth lookups; usable as a ``SunAzimuthFn``."""

    def __init__(self, cache: LRUCache[float] | None = None):
        self.cache: LRUCache[float] = cache if cache is not None else LRUCache(max_size=2000)

    def sun_azimuth(self, date: dt.date, lat: float, lng: float, is_sunrise: bool = True) -> float:
        key = solar_key(date, lat, lng, is_sunrise)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        azimuth = find_sun_event(date, lat, lng, is_sunrise).azimuth
        self.cache.set(key, azimuth)
        return azimuth

    __call__ = sun_azimuth
