"""Tests for the alignment scorer and its aggregate views."""

import pytest

from street_alignment.cache import LRUCache
from street_alignment.models import Point, RepresentativeSegment
from street_alignment.scoring import (
    AlignmentScorer,
    alignment_distribution,
    alignment_stats,
    best_aligned,
    filter_by_alignment,
    group_by_quality,
    sort_by_alignment,
)


def _rep(bearing: float, way_id: int = 1) -> RepresentativeSegment:
    return RepresentativeSegment(
        start=Point(lat=0.0, lon=0.0),
        end=Point(lat=0.001, lon=0.0),
        bearing=bearing,
        way_id=way_id,
        road_type="residential",
        segment_count=2,
        total_length=111.2,
        constituents=[0, 1],
    )


@pytest.fixture
def scored():
    # Against a sun azimuth of 0: scores 1.0, 0.9, 2/3, 0.5, 2/9, 0.0
    segments = [_rep(b, way_id=i) for i, b in enumerate([180.0, 9.0, 30.0, 45.0, 70.0, 90.0])]
    return AlignmentScorer().score(segments, 0.0)


class TestScorer:
    def test_enriches_without_mutating(self):
        rep = _rep(45.0)
        (result,) = AlignmentScorer().score([rep], 90.0)
        assert result.segment is rep
        assert result.alignment_score == pytest.approx(0.5)
        assert result.sun_azimuth == 90.0
        assert result.bearing == 45.0
        assert not hasattr(rep, "alignment_score")

    def test_memoises_by_azimuth_and_bearing(self):
        cache = LRUCache(max_size=10)
        scorer = AlignmentScorer(cache)
        scorer.score([_rep(45.0), _rep(45.0, way_id=2), _rep(10.0)], 90.0)
        assert len(cache) == 2
        assert "90.0000_45.0000" in cache

    def test_uses_cached_value(self):
        cache = LRUCache(max_size=10)
        cache.set("90.0000_45.0000", 0.123)
        (result,) = AlignmentScorer(cache).score([_rep(45.0)], 90.0)
        assert result.alignment_score == 0.123

    def test_empty_input(self):
        assert AlignmentScorer().score([], 10.0) == []


class TestStats:
    def test_empty_is_zeroed(self):
        stats = alignment_stats([])
        assert stats.total == 0
        assert stats.average_score == 0.0
        assert stats.percentage_perfect == 0.0

    def test_bands(self, scored):
        stats = alignment_stats(scored)
        assert stats.total == 6
        assert stats.perfect == 2
        assert stats.good == 1
        assert stats.poor == 2
        assert stats.percentage_perfect == pytest.approx(100 * 2 / 6)
        assert stats.average_score == pytest.approx((1.0 + 0.9 + 2 / 3 + 0.5 + 2 / 9 + 0.0) / 6)


class TestViews:
    def test_filter(self, scored):
        assert len(filter_by_alignment(scored)) == 5
        assert len(filter_by_alignment(scored, min_score=0.6)) == 3

    def test_group_by_quality(self, scored):
        groups = group_by_quality(scored)
        assert list(groups) == ["perfect", "excellent", "good", "fair", "poor", "very_poor"]
        assert len(groups["perfect"]) == 2
        assert len(groups["good"]) == 1
        assert len(groups["fair"]) == 1
        assert len(groups["poor"]) == 1
        assert len(groups["very_poor"]) == 1
        assert sum(len(v) for v in groups.values()) == len(scored)

    def test_sort_does_not_mutate(self, scored):
        reversed_input = list(reversed(scored))
        ordered = sort_by_alignment(reversed_input)
        assert [s.way_id for s in ordered] == [0, 1, 2, 3, 4, 5]
        assert reversed_input[0].way_id == 5
        assert [s.way_id for s in sort_by_alignment(scored, descending=False)][0] == 5

    def test_best_aligned(self, scored):
        assert [s.way_id for s in best_aligned(scored, top_n=2)] == [0, 1]

    def test_distribution(self, scored):
        bins = alignment_distribution(scored, bins=10)
        assert len(bins) == 10
        assert sum(b.count for b in bins) == 6
        assert bins[9].count == 2  # 0.9 and 1.0 share the top bin
        assert bins[0].count == 1
        assert sum(b.percentage for b in bins) == pytest.approx(100.0)

    def test_distribution_empty(self):
        assert all(b.count == 0 and b.percentage == 0 for b in alignment_distribution([], bins=4))
