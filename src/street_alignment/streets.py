"""Street data acquisition from the Overpass API and conversion to batched segments."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable

import httpx
from pydantic import ValidationError

from .cache import LRUCache, bounds_key
from .config import Settings, StreetsConfig
from .models import Bounds, RepresentativeSegment, StreetWay
from .segments import filter_ways_by_type, process_ways

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111.0

OVERPASS_QUERY_TEMPLATE = """\
[out:json][timeout:{timeout}];
(
  way["highway"~"^({included})$"]
    ["highway"!~"^({excluded})$"]
    ({south},{west},{north},{east});
);
out geom;
"""


def build_overpass_query(
    bounds: Bounds,
    included: Iterable[str],
    excluded: Iterable[str],
    timeout: int = 25,
) -> str:
    return OVERPASS_QUERY_TEMPLATE.format(
        timeout=timeout,
        included="|".join(included),
        excluded="|".join(excluded) or "$^",
        south=bounds.south,
        west=bounds.west,
        north=bounds.north,
        east=bounds.east,
    )


def parse_osm_ways(data: dict) -> list[StreetWay]:
    """Extract street ways from an Overpass JSON payload, skipping malformed elements."""
    elements = data.get("elements") if isinstance(data, dict) else None
    if not isinstance(elements, list):
        logger.warning("Invalid OSM data received: no elements list")
        return []

    ways: list[StreetWay] = []
    for element in elements:
        if not isinstance(element, dict) or element.get("type") != "way" or not element.get("geometry"):
            continue
        try:
            ways.append(StreetWay.model_validate(element))
        except ValidationError as exc:
            logger.warning("Skipping malformed way %s: %s", element.get("id"), exc.errors()[0]["msg"])
    return ways


def process_osm_data(data: dict, config: StreetsConfig | None = None) -> list[RepresentativeSegment]:
    """Parse, type-filter and batch an Overpass payload."""
    config = config or StreetsConfig()
    ways = parse_osm_ways(data)
    ways = filter_ways_by_type(ways, config.included_types, config.excluded_types)
    return process_ways(ways, config.batching)


def estimate_bounds_area(bounds: Bounds) -> float:
    """Approximate area of ``bounds`` in square kilometres."""
    lat_km = (bounds.north - bounds.south) * KM_PER_DEGREE
    mid_lat = math.radians((bounds.north + bounds.south) / 2)
    lng_km = (bounds.east - bounds.west) * KM_PER_DEGREE * math.cos(mid_lat)
    return abs(lat_km * lng_km)


def bounds_too_large(bounds: Bounds, max_area_km2: float = 10_000.0) -> bool:
    return estimate_bounds_area(bounds) > max_area_km2


class StreetDataManager:
    """Fetches and caches batched street segments per bounding box.

    Only one request is in flight at a time: a newer fetch cancels the older
    one, which then resolves to an empty list.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        cache: LRUCache[list[RepresentativeSegment]] | None = None,
    ):
        self.settings = settings or Settings()
        self.client = client or httpx.AsyncClient(timeout=self.settings.api.request_timeout)
        self.cache: LRUCache[list[RepresentativeSegment]] = (
            cache
            if cache is not None
            else LRUCache(
                max_size=self.settings.cache.street_cache_size,
                max_age=self.settings.cache.street_max_age,
            )
        )
        self._inflight: asyncio.Task | None = None

    @property
    def is_loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def fetch_street_data(self, bounds: Bounds) -> list[RepresentativeSegment]:
        key = bounds_key(bounds)
        if self.cache.has(key):
            logger.info("Using cached street data for %s", key)
            return self.cache.get(key)

        self.cancel_request()
        task = asyncio.create_task(self._request(bounds))
        self._inflight = task

        try:
            data = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.info("Street data request for %s was cancelled", key)
            return []
        except (httpx.HTTPError, ValueError) as exc:
            fallback = self.cache.peek(key)
            if fallback is not None:
                logger.warning("Street data fetch failed (%s); using stale cached data", exc)
                return fallback
            logger.error("Street data fetch failed for %s: %s", key, exc)
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        segments = process_osm_data(data, self.settings.streets)
        self.cache.set(key, segments)
        return segments

    async def _request(self, bounds: Bounds) -> dict:
        streets = self.settings.streets
        query = build_overpass_query(
            bounds,
            streets.included_types,
            streets.excluded_types,
            timeout=int(self.settings.api.request_timeout),
        )
        logger.info("Fetching street data from Overpass API")
        response = await self.client.post(
            self.settings.api.overpass_url,
            content=query,
            headers={"Content-Type": "text/plain"},
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Overpass payload of type {type(data).__name__}")
        elements = data.get("elements")
        logger.info("Received %d elements from Overpass API", len(elements) if isinstance(elements, list) else 0)
        return data

    def cancel_request(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    def bounds_too_large(self, bounds: Bounds) -> bool:
        return bounds_too_large(bounds, self.settings.api.max_area_km2)

    def cache_stats(self) -> dict:
        return self.cache.stats()

    async def aclose(self) -> None:
        self.cancel_request()
        await self.client.aclose()
