"""Street–sun alignment pipeline library."""

from .cache import LRUCache, bounds_key, optimal_day_key
from .config import BatchingConfig, Settings, StreetsConfig, load_settings
from .geometry import alignment_score, bearing, bearing_difference, distance
from .models import (
    Alignment,
    AlignmentStats,
    Bounds,
    DayResult,
    OptimalDayResult,
    Point,
    RepresentativeSegment,
    ScoredSegment,
    StreetWay,
    UnitSegment,
)
from .optimal_day import OptimalDaySearch, find_local_maxima, is_leap_year
from .scoring import AlignmentScorer, alignment_stats
from .segments import batch_straight_segments, compute_unit_segments, process_ways
from .solar import NoSunEventError, SolarCalculator
from .streets import StreetDataManager, process_osm_data

__all__ = [
    "Alignment",
    "AlignmentScorer",
    "AlignmentStats",
    "BatchingConfig",
    "Bounds",
    "DayResult",
    "LRUCache",
    "NoSunEventError",
    "OptimalDayResult",
    "OptimalDaySearch",
    "Point",
    "RepresentativeSegment",
    "ScoredSegment",
    "Settings",
    "SolarCalculator",
    "StreetDataManager",
    "StreetWay",
    "StreetsConfig",
    "UnitSegment",
    "alignment_score",
    "alignment_stats",
    "batch_straight_segments",
    "bearing",
    "bearing_difference",
    "bounds_key",
    "compute_unit_segments",
    "distance",
    "find_local_maxima",
    "is_leap_year",
    "load_settings",
    "optimal_day_key",
    "process_osm_data",
    "process_ways",
]
