"""FastAPI server exposing street batching, alignment scoring and optimal-day search."""

from __future__ import annotations

import csv
import datetime as dt
import io
import logging
import os

from fastapi import Body, FastAPI, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, model_validator

from .cache import LRUCache
from .config import Settings, load_settings
from .models import AlignmentStats, OptimalDayResult, RepresentativeSegment, ScoredSegment
from .optimal_day import OptimalDaySearch
from .scoring import AlignmentScorer, alignment_stats
from .solar import NoSunEventError, SolarCalculator
from .streets import process_osm_data

logger = logging.getLogger(__name__)

CONFIG_ENV = "STREET_ALIGNMENT_CONFIG"


class ScoreRequest(BaseModel):
    """Overpass elements plus either a sun azimuth or a date/location to derive one."""

    elements: list[dict]
    sun_azimuth: float | None = Field(None, ge=0, lt=360)
    date: dt.date | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    is_sunrise: bool = True

    @model_validator(mode="after")
    def _azimuth_source(self):
        if self.sun_azimuth is None and (self.date is None or self.lat is None or self.lng is None):
            raise ValueError("Provide sun_azimuth, or date with lat and lng")
        return self


class ScoreResponse(BaseModel):
    sun_azimuth: float
    segments: list[ScoredSegment]
    stats: AlignmentStats


class OptimalDayRequest(BaseModel):
    street_bearing: float = Field(ge=0, lt=360)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    year: int | None = Field(None, ge=1, le=9999)
    include_sunrise: bool = True
    include_sunset: bool = True


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app with its own solar calculator, scorer and search caches."""
    settings = settings or Settings()
    app = FastAPI(title="Street Sun Alignment", version="0.1.0")

    cache_cfg = settings.cache
    solar = SolarCalculator(LRUCache(max_size=cache_cfg.solar_cache_size))
    app.state.settings = settings
    app.state.solar = solar
    app.state.scorer = AlignmentScorer(LRUCache(max_size=cache_cfg.score_cache_size))
    app.state.search = OptimalDaySearch(
        solar,
        LRUCache(max_size=cache_cfg.optimal_day_cache_size),
        progress_every=settings.search.progress_every,
        chunk_size=settings.search.chunk_size,
        top_n=settings.search.top_n,
    )

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/segments", batch_segments, methods=["POST"])
    app.add_api_route("/score", score_segments, methods=["POST"])
    app.add_api_route("/optimal-day", optimal_day, methods=["POST"], response_model=OptimalDayResult)
    return app


async def health():
    return {"status": "ok"}


async def batch_segments(
    request: Request,
    payload: dict = Body(...),
    format: str = Query("json", pattern="^(csv|json)$"),
):
    """Batch the ways of an Overpass JSON payload into straight street sections."""
    segments = process_osm_data(payload, request.app.state.settings.streets)
    if format == "csv":
        return _segments_to_csv_response(segments)
    return {"segments": segments}


async def score_segments(
    request: Request,
    body: ScoreRequest,
    format: str = Query("json", pattern="^(csv|json)$"),
):
    """Batch the ways and score each section against the sun azimuth."""
    state = request.app.state
    sun_azimuth = body.sun_azimuth
    if sun_azimuth is None:
        try:
            sun_azimuth = state.solar(body.date, body.lat, body.lng, body.is_sunrise)
        except NoSunEventError as exc:
            logger.warning("No sun event for %s at (%.4f, %.4f): %s", body.date, body.lat, body.lng, exc)
            raise HTTPException(status_code=400, detail=str(exc))

    segments = process_osm_data({"elements": body.elements}, state.settings.streets)
    scored = state.scorer.score(segments, sun_azimuth)

    if format == "csv":
        return _scored_to_csv_response(scored)
    return ScoreResponse(sun_azimuth=sun_azimuth, segments=scored, stats=alignment_stats(scored))


async def optimal_day(request: Request, body: OptimalDayRequest) -> OptimalDayResult:
    """Find the local-maximum alignment days of the year for one street bearing."""
    if not (body.include_sunrise or body.include_sunset):
        raise HTTPException(status_code=400, detail="Enable at least one of include_sunrise or include_sunset")

    search: OptimalDaySearch = request.app.state.search
    return await search.find_optimal_day_async(
        body.street_bearing,
        body.lat,
        body.lng,
        year=body.year,
        include_sunrise=body.include_sunrise,
        include_sunset=body.include_sunset,
    )


SEGMENT_FIELDS = [
    "way_id", "road_type", "segment_count",
    "start_lat", "start_lon", "end_lat", "end_lon",
    "bearing", "total_length",
]


def _segment_row(seg: RepresentativeSegment) -> dict:
    return {
        "way_id": seg.way_id,
        "road_type": seg.road_type,
        "segment_count": seg.segment_count,
        "start_lat": seg.start.lat,
        "start_lon": seg.start.lon,
        "end_lat": seg.end.lat,
        "end_lon": seg.end.lon,
        "bearing": seg.bearing,
        "total_length": seg.total_length,
    }


def _csv_response(rows, fieldnames: list[str], filename: str) -> StreamingResponse:
    def generate():
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=fieldnames)
        writer.writeheader()
        yield buf.getvalue()
        buf.seek(0)
        buf.truncate(0)

        for row in rows:
            writer.writerow(row)
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)

    return StreamingResponse(
        generate(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _segments_to_csv_response(segments: list[RepresentativeSegment]) -> StreamingResponse:
    return _csv_response((_segment_row(s) for s in segments), SEGMENT_FIELDS, "street_segments.csv")


def _scored_to_csv_response(scored: list[ScoredSegment]) -> StreamingResponse:
    fieldnames = SEGMENT_FIELDS + ["sun_azimuth", "alignment_score"]
    rows = (
        {**_segment_row(s.segment), "sun_azimuth": s.sun_azimuth, "alignment_score": s.alignment_score}
        for s in scored
    )
    return _csv_response(rows, fieldnames, "scored_segments.csv")


app = create_app(load_settings(os.environ.get(CONFIG_ENV)))
