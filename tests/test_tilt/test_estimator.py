"""Tests for single-image tilt estimation."""

import pytest

from tiltscan.config.analysis_config import ConfidenceSettings
from tiltscan.tilt.classification import AngleBuckets
from tiltscan.tilt.estimator import (
    base_confidence,
    bucket_mean,
    estimate_tilt,
    single_image_confidence,
)
from tiltscan.tilt.models import TiltSeverity


class TestBaseConfidence:
    """Tests for line-count confidence tiers."""

    @pytest.mark.parametrize("count,expected", [
        (0, 0.25),
        (2, 0.25),
        (3, 0.50),
        (5, 0.50),
        (6, 0.70),
        (11, 0.70),
        (12, 0.85),
        (19, 0.85),
        (20, 0.95),
        (500, 0.95),
    ])
    def test_tiers(self, count, expected):
        assert base_confidence(count) == expected

    def test_unsorted_custom_tiers(self):
        """Tiers are matched highest first regardless of input order."""
        settings = ConfidenceSettings(line_count_tiers=[(2, 0.4), (10, 0.9)])
        assert base_confidence(10, settings) == 0.9
        assert base_confidence(5, settings) == 0.4
        assert base_confidence(1, settings) == settings.fallback_confidence


class TestSingleImageConfidence:
    """Tests for single_image_confidence."""

    def test_tilt_penalty(self):
        assert single_image_confidence(4, 1.0) == pytest.approx(0.5 * (1 - 1.0 / 20))

    def test_zero_tilt_keeps_base(self):
        assert single_image_confidence(20, 0.0) == pytest.approx(0.95)

    def test_floor(self):
        """Large apparent tilt clamps to the floor."""
        assert single_image_confidence(20, 19.9) == pytest.approx(0.1)
        assert single_image_confidence(20, 35.0) == pytest.approx(0.1)

    def test_always_in_range(self):
        for count in (0, 3, 6, 12, 20):
            for tilt in (0.0, 5.0, 10.0, 24.0):
                assert 0.1 <= single_image_confidence(count, tilt) <= 1.0


class TestEstimateTilt:
    """Tests for estimate_tilt."""

    def test_bucket_mean_empty(self):
        assert bucket_mean([]) == 0.0

    def test_means_and_counts(self):
        buckets = AngleBuckets(vertical=[1.0, 1.2, 0.8, 1.1], horizontal=[0.5, 1.5])
        estimate = estimate_tilt(buckets)

        assert estimate.raw_vertical == pytest.approx(1.025)
        assert estimate.raw_horizontal == pytest.approx(1.0)
        assert estimate.corrected_vertical == estimate.raw_vertical
        assert estimate.line_count == 6
        assert estimate.confidence == pytest.approx(0.70 * (1 - 1.025 / 20))
        assert estimate.severity == TiltSeverity.MINOR
        assert estimate.camera_compensation is None

    def test_no_lines(self):
        """No lines gives zero tilt at the fallback confidence."""
        estimate = estimate_tilt(AngleBuckets())
        assert estimate.corrected_vertical == 0.0
        assert estimate.line_count == 0
        assert estimate.confidence == pytest.approx(0.25)
        assert estimate.severity == TiltSeverity.NONE

    def test_horizontal_only(self):
        """Horizontal tilt never feeds severity."""
        estimate = estimate_tilt(AngleBuckets(horizontal=[8.0, 8.0, 8.0]))
        assert estimate.corrected_horizontal == pytest.approx(8.0)
        assert estimate.corrected_vertical == 0.0
        assert estimate.severity == TiltSeverity.NONE
