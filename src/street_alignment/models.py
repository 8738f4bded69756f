"""Pydantic data models for the street alignment pipeline."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """A geographic coordinate in degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class Bounds(BaseModel):
    """A lat/lon bounding box."""

    north: float
    south: float
    east: float
    west: float


class StreetWay(BaseModel):
    """A street polyline as delivered by Overpass (``out geom``)."""

    id: int
    geometry: list[Point] = Field(default_factory=list)
    tags: dict[str, str] = Field(default_factory=dict)

    @property
    def highway(self) -> str | None:
        return self.tags.get("highway")


class UnitSegment(BaseModel):
    """The directed edge between two consecutive vertices of a street polyline."""

    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point
    bearing: float
    way_id: int
    segment_index: int
    road_type: str | None = None

    @property
    def length(self) -> float:
        from .geometry import distance

        return distance(self.start, self.end)


class RepresentativeSegment(BaseModel):
    """A straight street section merged from one or more unit segments."""

    model_config = ConfigDict(frozen=True)

    start: Point
    end: Point
    bearing: float
    way_id: int
    road_type: str | None = None
    segment_count: int = Field(ge=1)
    total_length: float
    constituents: list[int]


class ScoredSegment(BaseModel):
    """A representative segment paired with its alignment against one sun azimuth."""

    model_config = ConfigDict(frozen=True)

    segment: RepresentativeSegment
    alignment_score: float
    sun_azimuth: float

    @property
    def bearing(self) -> float:
        return self.segment.bearing

    @property
    def way_id(self) -> int:
        return self.segment.way_id

    @property
    def road_type(self) -> str | None:
        return self.segment.road_type


class AlignmentStats(BaseModel):
    """Aggregate view over a list of scored segments."""

    total: int = 0
    average_score: float = 0.0
    perfect: int = 0
    good: int = 0
    poor: int = 0
    percentage_perfect: float = 0.0
    percentage_good: float = 0.0
    percentage_poor: float = 0.0


class DistributionBin(BaseModel):
    min_score: float
    max_score: float
    count: int
    percentage: float


class Alignment(BaseModel):
    """Alignment of a street with the sun at one sunrise or sunset."""

    type: Literal["sunrise", "sunset"]
    sun_azimuth: float
    alignment_score: float


class DayResult(BaseModel):
    date: dt.date
    day_of_year: int
    alignments: list[Alignment]
    best_alignment: Alignment

    @property
    def score(self) -> float:
        return self.best_alignment.alignment_score


class DayStatistics(BaseModel):
    total_days: int = 0
    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class SearchParams(BaseModel):
    include_sunrise: bool = True
    include_sunset: bool = True


class OptimalDayResult(BaseModel):
    """Ranked local-maximum days for one street bearing and location."""

    street_bearing: float
    year: int
    search_params: SearchParams
    best_day: DayResult | None = None
    top_days: list[DayResult] = Field(default_factory=list)
    total_local_maxima: int = 0
    average_alignment: float = 0.0
    statistics: DayStatistics = Field(default_factory=DayStatistics)
