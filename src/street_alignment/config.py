"""Configuration models for the street alignment pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_INCLUDED_TYPES = [
    "primary",
    "secondary",
    "tertiary",
    "residential",
    "footway",
    "cycleway",
    "path",
]
DEFAULT_EXCLUDED_TYPES = ["motorway", "trunk"]


class BatchingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bearing_tolerance: float = Field(2.5, ge=0, le=180)  # degrees, per step
    min_batch_length: float = Field(50.0, ge=0)  # metres, chord length
    max_bearing_drift: float = Field(1.0, ge=0)  # degrees, per direction
    require_batching: bool = True


class StreetsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    included_types: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDED_TYPES))
    excluded_types: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_TYPES))
    batching: BatchingConfig = Field(default_factory=BatchingConfig)

    @model_validator(mode="after")
    def _disjoint_types(self):
        overlap = set(self.included_types) & set(self.excluded_types)
        if overlap:
            raise ValueError(f"road types both included and excluded: {sorted(overlap)}")
        return self


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    request_timeout: float = Field(25.0, gt=0)  # seconds
    max_area_km2: float = Field(10_000.0, gt=0)


class CacheConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    street_cache_size: int = Field(50, ge=1)
    street_max_age: float = Field(300.0, gt=0)  # seconds
    score_cache_size: int = Field(100, ge=1)
    solar_cache_size: int = Field(2000, ge=1)
    optimal_day_cache_size: int = Field(100, ge=1)


class SearchConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    progress_every: int = Field(10, ge=1)  # days between progress reports
    chunk_size: int = Field(20, ge=1)  # days between cooperative yields
    top_n: int = Field(5, ge=1)


class LogConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_format: bool = False


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")
    streets: StreetsConfig = Field(default_factory=StreetsConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    log: LogConfig = Field(default_factory=LogConfig)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a JSON file, or return the defaults when ``path`` is None."""
    if path is None:
        return Settings()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return Settings.model_validate_json(path.read_text())
