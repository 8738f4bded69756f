"""Alignment scoring of batched street segments against a sun azimuth."""

from __future__ import annotations

from collections.abc import Iterable

from .cache import LRUCache, score_key
from .geometry import alignment_score
from .models import AlignmentStats, DistributionBin, RepresentativeSegment, ScoredSegment

DEFAULT_MIN_SCORE = 0.1

QUALITY_BANDS = [
    ("perfect", 0.9),
    ("excellent", 0.8),
    ("good", 0.6),
    ("fair", 0.4),
    ("poor", 0.2),
    ("very_poor", 0.0),
]


class AlignmentScorer:
    """Scores segments against a sun azimuth, memoising per (azimuth, bearing)."""

    def __init__(self, cache: LRUCache[float] | None = None, precision: int = 4):
        self.cache: LRUCache[float] = cache if cache is not None else LRUCache(max_size=100)
        self.precision = precision

    def score(self, segments: Iterable[RepresentativeSegment], sun_azimuth: float) -> list[ScoredSegment]:
        return [
            ScoredSegment(segment=seg, alignment_score=self.score_bearing(seg.bearing, sun_azimuth), sun_azimuth=sun_azimuth)
            for seg in segments
        ]

    def score_bearing(self, street_bearing: float, sun_azimuth: float) -> float:
        key = score_key(sun_azimuth, street_bearing, self.precision)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        value = alignment_score(street_bearing, sun_azimuth)
        self.cache.set(key, value)
        return value


def alignment_stats(scored: list[ScoredSegment]) -> AlignmentStats:
    if not scored:
        return AlignmentStats()

    scores = [s.alignment_score for s in scored]
    total = len(scores)
    perfect = sum(1 for v in scores if v >= 0.9)
    good = sum(1 for v in scores if 0.6 <= v < 0.9)
    poor = sum(1 for v in scores if v < 0.3)

    return AlignmentStats(
        total=total,
        average_score=sum(scores) / total,
        perfect=perfect,
        good=good,
        poor=poor,
        percentage_perfect=perfect / total * 100,
        percentage_good=good / total * 100,
        percentage_poor=poor / total * 100,
    )


def filter_by_alignment(scored: Iterable[ScoredSegment], min_score: float = DEFAULT_MIN_SCORE) -> list[ScoredSegment]:
    return [s for s in scored if s.alignment_score >= min_score]


def group_by_quality(scored: Iterable[ScoredSegment]) -> dict[str, list[ScoredSegment]]:
    """Bucket segments into quality bands, highest first."""
    groups: dict[str, list[ScoredSegment]] = {name: [] for name, _ in QUALITY_BANDS}
    for seg in scored:
        for name, floor in QUALITY_BANDS:
            if seg.alignment_score >= floor:
                groups[name].append(seg)
                break
    return groups


def sort_by_alignment(scored: Iterable[ScoredSegment], descending: bool = True) -> list[ScoredSegment]:
    return sorted(scored, key=lambda s: s.alignment_score, reverse=descending)


def best_aligned(scored: Iterable[ScoredSegment], top_n: int = 10) -> list[ScoredSegment]:
    return sort_by_alignment(scored)[:top_n]


def alignment_distribution(scored: list[ScoredSegment], bins: int = 10) -> list[DistributionBin]:
    """Histogram of scores over ``bins`` equal-width bins on [0, 1]."""
    counts = [0] * bins
    bin_size = 1 / bins
    for seg in scored:
        counts[min(int(seg.alignment_score / bin_size), bins - 1)] += 1

    total = len(scored)
    return [
        DistributionBin(
            min_score=i * bin_size,
            max_score=(i + 1) * bin_size,
            count=count,
            percentage=count / total * 100 if total else 0.0,
        )
        for i, count in enumerate(counts)
    ]
