"""Bounded least-recently-used caches and their key encodings."""

from __future__ import annotations

import datetime as dt
import time
from collections import OrderedDict
from typing import Any, Callable, Generic, NamedTuple, TypeVar

from .models import Bounds

V = TypeVar("V")

BOUNDS_PRECISION = 4  # ~11 m


class _Entry(NamedTuple):
    value: Any
    timestamp: float


class LRUCache(Generic[V]):
    """Size-bounded LRU store with optional age-based expiry.

    ``max_age`` (seconds) applies to ``get`` and ``has``. Expired entries are
    kept until evicted or overwritten, so ``peek`` can still serve them as a
    stale fallback.
    """

    def __init__(
        self,
        max_size: int = 100,
        max_age: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.max_age = max_age
        self._clock = clock
        self._data: OrderedDict[str, _Entry] = OrderedDict()

    def get(self, key: str, default: V | None = None) -> V | None:
        if not self.has(key):
            return default
        self._data.move_to_end(key)
        return self._data[key].value

    def peek(self, key: str, default: V | None = None) -> V | None:
        entry = self._data.get(key)
        return default if entry is None else entry.value

    def set(self, key: str, value: V) -> None:
        if key in self._data:
            del self._data[key]
        else:
            while len(self._data) >= self.max_size:
                self._data.popitem(last=False)
        self._data[key] = _Entry(value, self._clock())

    def has(self, key: str, max_age: float | None = None) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        limit = max_age if max_age is not None else self.max_age
        return limit is None or self._clock() - entry.timestamp <= limit

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def stats(self) -> dict:
        return {"size": len(self._data), "max_size": self.max_size, "keys": list(self._data)}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return self.has(key)


def bounds_key(bounds: Bounds, precision: int = BOUNDS_PRECISION) -> str:
    """Encode bounds as ``north,south,east,west`` rounded to ``precision`` decimals."""
    return ",".join(
        f"{value:.{precision}f}" for value in (bounds.north, bounds.south, bounds.east, bounds.west)
    )


def _flag(value: bool) -> str:
    return "true" if value else "false"


def optimal_day_key(
    street_bearing: float,
    lat: float,
    lng: float,
    year: int,
    include_sunrise: bool,
    include_sunset: bool,
) -> str:
    return "_".join(
        [
            f"{street_bearing:.4f}",
            f"{lat:.6f}",
            f"{lng:.6f}",
            str(year),
            _flag(include_sunrise),
            _flag(include_sunset),
        ]
    )


def score_key(sun_azimuth: float, street_bearing: float, precision: int = 4) -> str:
    return f"{sun_azimuth:.{precision}f}_{street_bearing:.{precision}f}"


def solar_key(date: dt.date, lat: float, lng: float, is_sunrise: bool) -> str:
    return f"{date.isoformat()}_{lat:.4f}_{lng:.4f}_{_flag(is_sunrise)}"
