"""Year-long search for the days a street best lines up with sunrise or sunset.

The scan is resumable: ``DayScan.advance(n)`` processes ``n`` more days and
returns, so callers decide how often to hand control back. The async entry
point yields to the event loop between chunks; the sync one simply loops.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import math
from collections.abc import Callable, Sequence

from .cache import LRUCache, optimal_day_key
from .geometry import alignment_score
from .models import Alignment, DayResult, DayStatistics, OptimalDayResult, SearchParams
from .solar import SunAzimuthFn

logger = logging.getLogger(__name__)

ProgressFn = Callable[[float], None]


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def day_of_year_to_date(day_of_year: int, year: int) -> dt.date:
    return dt.date(year, 1, 1) + dt.timedelta(days=day_of_year - 1)


def find_local_maxima(days: Sequence[DayResult]) -> list[DayResult]:
    """Days whose best score beats both chronological neighbours, best first.

    The first and last day count when they beat their single neighbour. With
    fewer than three days there is no interior, so every day is ranked.
    """
    if len(days) < 3:
        return sorted(days, key=lambda d: d.score, reverse=True)

    ordered = sorted(days, key=lambda d: d.day_of_year)
    maxima = [
        ordered[i]
        for i in range(1, len(ordered) - 1)
        if ordered[i].score > ordered[i - 1].score and ordered[i].score > ordered[i + 1].score
    ]
    if ordered[0].score > ordered[1].score:
        maxima.append(ordered[0])
    if ordered[-1].score > ordered[-2].score:
        maxima.append(ordered[-1])

    return sorted(maxima, key=lambda d: d.score, reverse=True)


def average_alignment(days: Sequence[DayResult]) -> float:
    if not days:
        return 0.0
    return sum(d.score for d in days) / len(days)


def day_statistics(days: Sequence[DayResult]) -> DayStatistics:
    stats = DayStatistics(total_days=len(days))
    for day in days:
        if day.score >= 0.9:
            stats.excellent += 1
        elif day.score >= 0.7:
            stats.good += 1
        elif day.score >= 0.5:
            stats.fair += 1
        else:
            stats.poor += 1
    return stats


class DayScan:
    """Resumable day-by-day alignment scan over one calendar year."""

    def __init__(
        self,
        sun_azimuth: SunAzimuthFn,
        street_bearing: float,
        lat: float,
        lng: float,
        year: int,
        include_sunrise: bool = True,
        include_sunset: bool = True,
        progress: ProgressFn | None = None,
        progress_every: int = 10,
    ):
        if progress_every < 1:
            raise ValueError("progress_every must be at least 1")
        self.sun_azimuth = sun_azimuth
        self.street_bearing = street_bearing
        self.lat = lat
        self.lng = lng
        self.year = year
        self.include_sunrise = include_sunrise
        self.include_sunset = include_sunset
        self.progress_fn = progress
        self.progress_every = progress_every

        self.total_days = days_in_year(year)
        self.days_processed = 0
        self.results: list[DayResult] = []

    @property
    def done(self) -> bool:
        return self.days_processed >= self.total_days

    @property
    def progress(self) -> float:
        return self.days_processed / self.total_days * 100

    def advance(self, n_days: int) -> bool:
        """Process up to ``n_days`` more days; return True once the year is complete."""
        stop = min(self.days_processed + n_days, self.total_days)
        while self.days_processed < stop:
            self.days_processed += 1
            day = self._scan_day(self.days_processed)
            if day is not None:
                self.results.append(day)
            if self.progress_fn and self.days_processed % self.progress_every == 0:
                self.progress_fn(self.progress)
        return self.done

    def _scan_day(self, day_of_year: int) -> DayResult | None:
        date = day_of_year_to_date(day_of_year, self.year)
        alignments: list[Alignment] = []

        for kind, enabled in (("sunrise", self.include_sunrise), ("sunset", self.include_sunset)):
            if not enabled:
                continue
            alignment = self._alignment(date, kind)
            if alignment is not None:
                alignments.append(alignment)

        if not alignments:
            return None

        best = alignments[0]
        for candidate in alignments[1:]:
            if candidate.alignment_score > best.alignment_score:
                best = candidate
        return DayResult(date=date, day_of_year=day_of_year, alignments=alignments, best_alignment=best)

    def _alignment(self, date: dt.date, kind: str) -> Alignment | None:
        try:
            azimuth = float(self.sun_azimuth(date, self.lat, self.lng, kind == "sunrise"))
        except Exception as exc:
            logger.warning("Error calculating %s for %s: %s", kind, date.isoformat(), exc)
            return None
        if not math.isfinite(azimuth):
            logger.warning("Invalid %s azimuth for %s: %r", kind, date.isoformat(), azimuth)
            return None

        azimuth %= 360
        return Alignment(
            type=kind,
            sun_azimuth=azimuth,
            alignment_score=alignment_score(self.street_bearing, azimuth),
        )


class OptimalDaySearch:
    """Finds local-maximum alignment days for a street, caching whole results."""

    def __init__(
        self,
        sun_azimuth: SunAzimuthFn,
        cache: LRUCache[OptimalDayResult] | None = None,
        progress_every: int = 10,
        chunk_size: int = 20,
        top_n: int = 5,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if progress_every < 1:
            raise ValueError("progress_every must be at least 1")
        self.sun_azimuth = sun_azimuth
        self.cache: LRUCache[OptimalDayResult] = cache if cache is not None else LRUCache(max_size=100)
        self.progress_every = progress_every
        self.chunk_size = chunk_size
        self.top_n = top_n

    def find_optimal_day(
        self,
        street_bearing: float,
        lat: float,
        lng: float,
        year: int | None = None,
        include_sunrise: bool = True,
        include_sunset: bool = True,
        progress: ProgressFn | None = None,
    ) -> OptimalDayResult:
        year = year or dt.date.today().year
        key = optimal_day_key(street_bearing, lat, lng, year, include_sunrise, include_sunset)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        scan = self._scan(street_bearing, lat, lng, year, include_sunrise, include_sunset, progress)
        while not scan.advance(self.chunk_size):
            pass
        return self._finish(key, scan, progress)

    async def find_optimal_day_async(
        self,
        street_bearing: float,
        lat: float,
        lng: float,
        year: int | None = None,
        include_sunrise: bool = True,
        include_sunset: bool = True,
        progress: ProgressFn | None = None,
    ) -> OptimalDayResult:
        """Like ``find_optimal_day`` but yields to the event loop every ``chunk_size`` days."""
        year = year or dt.date.today().year
        key = optimal_day_key(street_bearing, lat, lng, year, include_sunrise, include_sunset)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        scan = self._scan(street_bearing, lat, lng, year, include_sunrise, include_sunset, progress)
        while not scan.advance(self.chunk_size):
            await asyncio.sleep(0)
        return self._finish(key, scan, progress)

    def _scan(self, street_bearing, lat, lng, year, include_sunrise, include_sunset, progress) -> DayScan:
        return DayScan(
            self.sun_azimuth,
            street_bearing,
            lat,
            lng,
            year,
            include_sunrise=include_sunrise,
            include_sunset=include_sunset,
            progress=progress,
            progress_every=self.progress_every,
        )

    def _finish(self, key: str, scan: DayScan, progress: ProgressFn | None) -> OptimalDayResult:
        if progress:
            progress(100.0)

        maxima = find_local_maxima(scan.results)
        if not scan.results:
            logger.info("No alignment data for bearing %.2f in %d", scan.street_bearing, scan.year)

        result = OptimalDayResult(
            street_bearing=scan.street_bearing,
            year=scan.year,
            search_params=SearchParams(include_sunrise=scan.include_sunrise, include_sunset=scan.include_sunset),
            best_day=maxima[0] if maxima else None,
            top_days=maxima[: self.top_n],
            total_local_maxima=len(maxima),
            average_alignment=average_alignment(scan.results),
            statistics=day_statistics(scan.results),
        )
        self.cache.set(key, result)
        return result
