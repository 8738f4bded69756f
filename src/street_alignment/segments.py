"""Unit segment decomposition and straight-section batching."""

import logging
from collections.abc import Iterable

from .config import BatchingConfig
from .geometry import bearing, bearing_difference, distance, signed_bearing_offset
from .models import RepresentativeSegment, StreetWay, UnitSegment

logger = logging.getLogger(__name__)


def compute_unit_segments(way: StreetWay) -> list[UnitSegment]:
    """Compute the directed segments between consecutive vertices of a way."""
    segments: list[UnitSegment] = []
    points = way.geometry

    for i in range(1, len(points)):
        p1, p2 = points[i - 1], points[i]
        seg = UnitSegment(
            start=p1,
            end=p2,
            bearing=bearing(p1, p2),
            way_id=way.id,
            segment_index=i - 1,
            road_type=way.highway,
        )
        segments.append(seg)

    return segments


def batch_straight_segments(
    segments: list[UnitSegment],
    config: BatchingConfig | None = None,
) -> list[RepresentativeSegment]:
    """Merge runs of similar-bearing unit segments into straight sections.

    Each unclaimed segment seeds a batch which grows forward, then backward,
    while every candidate stays within ``bearing_tolerance`` of the seed and the
    cumulative drift in that direction stays within ``max_bearing_drift``.
    """
    config = config or BatchingConfig()
    claimed: set[tuple[int, int]] = set()
    results: list[RepresentativeSegment] = []

    for seed_idx, seed in enumerate(segments):
        if _identity(seed) in claimed:
            continue

        forward = _grow(segments, seed_idx, range(seed_idx + 1, len(segments)), claimed, config)
        backward = _grow(segments, seed_idx, range(seed_idx - 1, -1, -1), claimed, config)
        batch = list(reversed(backward)) + [seed_idx] + forward

        for idx in batch:
            claimed.add(_identity(segments[idx]))

        rep = _representative([segments[idx] for idx in batch], seed)
        if rep.total_length < config.min_batch_length:
            continue
        if config.require_batching and rep.segment_count < 2:
            continue
        results.append(rep)

    return results


def _identity(seg: UnitSegment) -> tuple[int, int]:
    return seg.way_id, seg.segment_index


def _grow(
    segments: list[UnitSegment],
    seed_idx: int,
    indices: Iterable[int],
    claimed: set[tuple[int, int]],
    config: BatchingConfig,
) -> list[int]:
    """Walk ``indices`` away from the seed, returning the indices that join the batch."""
    seed_bearing = segments[seed_idx].bearing
    drift = 0.0
    grown: list[int] = []

    for idx in indices:
        candidate = segments[idx]
        if _identity(candidate) in claimed:
            break
        diff = bearing_difference(seed_bearing, candidate.bearing)
        if diff > config.bearing_tolerance or drift + diff > config.max_bearing_drift:
            break
        drift += diff
        grown.append(idx)

    return grown


def _representative(constituents: list[UnitSegment], seed: UnitSegment) -> RepresentativeSegment:
    start = constituents[0].start
    end = constituents[-1].end

    # Weighted mean of offsets from the seed keeps batches that straddle north intact
    total_weight = 0.0
    weighted_offset = 0.0
    for seg in constituents:
        length = seg.length
        total_weight += length
        weighted_offset += length * signed_bearing_offset(seed.bearing, seg.bearing)
    mean_offset = weighted_offset / total_weight if total_weight > 0 else 0.0

    return RepresentativeSegment(
        start=start,
        end=end,
        bearing=(seed.bearing + mean_offset) % 360,
        way_id=seed.way_id,
        road_type=seed.road_type,
        segment_count=len(constituents),
        total_length=distance(start, end),
        constituents=[seg.segment_index for seg in constituents],
    )


def process_way(way: StreetWay, config: BatchingConfig | None = None) -> list[RepresentativeSegment]:
    """Decompose one way and batch it into straight sections."""
    return batch_straight_segments(compute_unit_segments(way), config)


def process_ways(ways: Iterable[StreetWay], config: BatchingConfig | None = None) -> list[RepresentativeSegment]:
    """Batch every way independently, skipping ways that fail to process."""
    config = config or BatchingConfig()
    batched: list[RepresentativeSegment] = []
    unit_count = 0

    for way in ways:
        try:
            units = compute_unit_segments(way)
            unit_count += len(units)
            batched.extend(batch_straight_segments(units, config))
        except (ValueError, ArithmeticError) as exc:
            logger.warning("Error processing way %s: %s", way.id, exc)

    logger.info(
        "Processed %d unit segments into %d batched segments (min length %.1fm, require batching: %s)",
        unit_count,
        len(batched),
        config.min_batch_length,
        config.require_batching,
    )
    return batched


def _type_allowed(road_type: str | None, included: Iterable[str] | None, excluded: Iterable[str] | None) -> bool:
    if road_type is None:
        return False
    if included is not None and road_type not in included:
        return False
    if excluded is not None and road_type in excluded:
        return False
    return True


def filter_ways_by_type(
    ways: Iterable[StreetWay],
    included: Iterable[str] | None = None,
    excluded: Iterable[str] | None = None,
) -> list[StreetWay]:
    """Keep ways whose ``highway`` tag passes the allow/deny lists."""
    included = set(included) if included is not None else None
    excluded = set(excluded) if excluded is not None else None
    return [w for w in ways if _type_allowed(w.highway, included, excluded)]


def filter_segments_by_type(
    segments: Iterable[RepresentativeSegment],
    included: Iterable[str] | None = None,
    excluded: Iterable[str] | None = None,
) -> list[RepresentativeSegment]:
    """Keep batched segments whose road type passes the allow/deny lists."""
    included = set(included) if included is not None else None
    excluded = set(excluded) if excluded is not None else None
    return [s for s in segments if _type_allowed(s.road_type, included, excluded)]


def as_unit_segments(representatives: Iterable[RepresentativeSegment]) -> list[list[UnitSegment]]:
    """Re-express each representative as a one-segment polyline for re-batching."""
    return [
        [
            UnitSegment(
                start=rep.start,
                end=rep.end,
                bearing=rep.bearing,
                way_id=rep.way_id,
                segment_index=0,
                road_type=rep.road_type,
            )
        ]
        for rep in representatives
    ]

