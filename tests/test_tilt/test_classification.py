"""Tests for line classification and outlier filtering."""

import pytest

from tiltscan.config.analysis_config import ClassificationSettings
from tiltscan.tilt.classification import (
    AngleBuckets,
    classify_segments,
    filter_buckets,
    normalize_angle,
    remove_outliers,
    segment_angle,
)
from tiltscan.tilt.models import LineSegment
from tests.fixtures.tilt_fixtures import horizontal_segment, vertical_segment


class TestNormalizeAngle:
    """Tests for normalize_angle."""

    @pytest.mark.parametrize("angle,expected", [
        (0.0, 0.0),
        (45.0, 45.0),
        (90.0, 90.0),
        (-90.0, 90.0),
        (135.0, -45.0),
        (-135.0, 45.0),
        (180.0, 0.0),
        (270.0, 90.0),
        (-180.0, 0.0),
    ])
    def test_range(self, angle, expected):
        """Angles fold into (-90, 90]."""
        assert normalize_angle(angle) == pytest.approx(expected)

    def test_reversed_segment_same_angle(self):
        """A segment and its reverse have the same direction."""
        forward = LineSegment(0, 0, 10, 30)
        backward = LineSegment(10, 30, 0, 0)
        assert segment_angle(forward) == pytest.approx(segment_angle(backward))

    def test_pure_vertical(self):
        assert abs(segment_angle(LineSegment(5, 0, 5, 100))) == pytest.approx(90.0)


class TestClassifySegments:
    """Tests for classify_segments."""

    def test_vertical_bucket_stores_deviation(self):
        """Near-vertical lines contribute 90 - |angle|."""
        buckets = classify_segments([vertical_segment(3.0)])
        assert buckets.vertical == [pytest.approx(3.0)]
        assert buckets.horizontal == []

    def test_horizontal_bucket_stores_angle(self):
        """Near-horizontal lines contribute |angle|."""
        buckets = classify_segments([horizontal_segment(-4.0)])
        assert buckets.horizontal == [pytest.approx(4.0)]
        assert buckets.vertical == []

    def test_diagonal_discarded(self):
        """Lines between 25 and 65 degrees are ambiguous."""
        buckets = classify_segments([horizontal_segment(45.0), horizontal_segment(30.0)])
        assert buckets.line_count == 0
        assert buckets.discarded == 2

    def test_just_inside_boundaries(self):
        """Lines just inside each boundary are bucketed."""
        buckets = classify_segments([
            LineSegment(0, 0, 100, 0),  # 0 degrees
            horizontal_segment(24.9),
            horizontal_segment(66.0),
        ])
        assert len(buckets.horizontal) == 2
        assert len(buckets.vertical) == 1
        assert buckets.vertical[0] == pytest.approx(24.0)

    def test_custom_settings(self):
        settings = ClassificationSettings(vertical_min_angle=80.0, horizontal_max_angle=10.0)
        buckets = classify_segments([vertical_segment(15.0), horizontal_segment(15.0)], settings)
        assert buckets.line_count == 0
        assert buckets.discarded == 2

    def test_empty(self):
        buckets = classify_segments([])
        assert buckets.line_count == 0
        assert buckets.discarded == 0


class TestRemoveOutliers:
    """Tests for remove_outliers."""

    def test_drops_far_sample(self):
        """A sample at the 2-sigma boundary is rejected."""
        assert remove_outliers([10, 10, 10, 10, 90]) == [10, 10, 10, 10]

    def test_small_bucket_unchanged(self):
        """Fewer than 3 samples pass through."""
        assert remove_outliers([1.0, 50.0]) == [1.0, 50.0]

    def test_zero_spread_unchanged(self):
        assert remove_outliers([2.0, 2.0, 2.0]) == [2.0, 2.0, 2.0]

    def test_tight_cluster_kept(self):
        values = [1.0, 1.2, 0.8, 1.1]
        assert remove_outliers(values) == pytest.approx(values)

    def test_preserves_order(self):
        values = [3.0, 1.0, 2.0, 2.5, 1.5]
        assert remove_outliers(values) == pytest.approx(values)

    def test_filtered_never_empty(self):
        """Some sample always lies within sigma of the mean."""
        for values in ([0, 0, 0, 100], [1, 2, 3, 4, 5, 60], [5, 5, 6]):
            assert remove_outliers(values)


class TestFilterBuckets:
    """Tests for filter_buckets."""

    def test_filters_both_buckets(self):
        buckets = AngleBuckets(
            vertical=[1, 1, 1, 1, 1, 20],
            horizontal=[0.5, 0.5, 0.5, 0.5, 0.5, 15],
            discarded=3,
        )
        filtered = filter_buckets(buckets)
        assert filtered.vertical == [1, 1, 1, 1, 1]
        assert filtered.horizontal == [0.5, 0.5, 0.5, 0.5, 0.5]
        assert filtered.discarded == 3
        assert filtered.line_count == 10
