"""Tests for multi-image aggregation."""

import numpy as np
import pytest

from tiltscan.sensors.models import OrientationSample
from tiltscan.tilt.aggregation import (
    NO_RELIABLE_WARNING,
    TiltAggregator,
    aggregate_estimates,
    reliable_estimates,
)
from tiltscan.tilt.analyzer import StructuralTiltAnalyzer
from tiltscan.tilt.models import FailureKind, TiltEstimate, TiltSeverity
from tests.fixtures.tilt_fixtures import (
    create_blank_image,
    create_structure_image,
    encode_png,
)


def make_estimate(vertical: float, confidence: float, lines: int = 10, horizontal: float = 0.0):
    return TiltEstimate(
        corrected_vertical=vertical,
        corrected_horizontal=horizontal,
        confidence=confidence,
        line_count=lines,
        severity=TiltSeverity.NONE,
    )


class TestAggregateEstimates:
    """Tests for aggregate_estimates."""

    def test_single_reliable_passes_through(self):
        """Aggregating one reliable estimate returns its values exactly."""
        estimate = make_estimate(1.7, 0.63, lines=14, horizontal=0.3)
        result = aggregate_estimates([estimate])

        assert result.corrected_vertical == estimate.corrected_vertical
        assert result.corrected_horizontal == estimate.corrected_horizontal
        assert result.confidence == estimate.confidence
        assert result.line_count == estimate.line_count
        assert result.severity == TiltSeverity.MINOR

    def test_empty(self):
        result = aggregate_estimates([])
        assert result.corrected_vertical == 0.0
        assert result.confidence == 0.0
        assert result.line_count == 0
        assert result.severity == TiltSeverity.NONE
        assert result.warning == NO_RELIABLE_WARNING

    def test_none_reliable(self):
        result = aggregate_estimates([make_estimate(3.0, 0.3), make_estimate(4.0, 0.1)])
        assert result.confidence == 0.0
        assert result.warning == NO_RELIABLE_WARNING

    def test_weighted_mean(self):
        """Tilts are confidence-weighted, confidence is a plain mean."""
        result = aggregate_estimates([
            make_estimate(1.0, 0.8, lines=10),
            make_estimate(5.0, 0.4, lines=5),
            make_estimate(20.0, 0.2, lines=30),  # unreliable, ignored
        ])

        expected = (1.0 * 0.8 + 5.0 * 0.4) / 1.2
        assert result.corrected_vertical == pytest.approx(expected)
        assert result.confidence == pytest.approx(0.6)
        assert result.line_count == 15
        assert result.severity == TiltSeverity.MODERATE
        assert result.warning is None

    def test_threshold_inclusive(self):
        assert len(reliable_estimates([make_estimate(1.0, 0.4)], 0.4)) == 1
        assert len(reliable_estimates([make_estimate(1.0, 0.399)], 0.4)) == 0

    def test_order_independent(self):
        estimates = [make_estimate(1.0, 0.5), make_estimate(2.5, 0.9), make_estimate(0.2, 0.7)]
        forward = aggregate_estimates(estimates)
        backward = aggregate_estimates(list(reversed(estimates)))
        assert forward.corrected_vertical == pytest.approx(backward.corrected_vertical)
        assert forward.confidence == pytest.approx(backward.confidence)

    def test_within_reliable_range(self):
        estimates = [make_estimate(0.5, 0.45), make_estimate(3.0, 0.95)]
        result = aggregate_estimates(estimates)
        assert 0.5 <= result.corrected_vertical <= 3.0
        assert 0.45 <= result.confidence <= 0.95


@pytest.fixture(scope="module")
def aggregator():
    return TiltAggregator(StructuralTiltAnalyzer(), max_workers=4)


class TestTiltAggregator:
    """Tests for TiltAggregator."""

    def test_defaults_from_config(self):
        aggregator = TiltAggregator()
        assert aggregator.max_workers == 4
        assert aggregator.reliable_threshold == 0.4

    def test_order_preserved(self, aggregator):
        images = [create_blank_image(), create_structure_image(), create_blank_image()]
        analyses = aggregator.analyze_all(images, sources=["a", "b", "c"])

        assert [a.source for a in analyses] == ["a", "b", "c"]
        assert analyses[0].estimate.line_count == 0
        assert analyses[1].estimate.line_count > 0

    def test_parallel_matches_sequential(self):
        analyzer = StructuralTiltAnalyzer()
        images = [create_structure_image(tilt_degrees=t) for t in (0.0, 2.0, 4.0)]
        sequential = TiltAggregator(analyzer, max_workers=1).analyze_all(images)
        parallel = TiltAggregator(analyzer, max_workers=3).analyze_all(images)

        for s, p in zip(sequential, parallel):
            assert s.estimate == p.estimate

    def test_failure_does_not_abort_batch(self, aggregator):
        images = [
            create_structure_image(),
            np.zeros((0, 0, 3), dtype=np.uint8),
            b"garbage",
        ]
        level = OrientationSample.from_angles(0.0, 0.0, timestamp=0.0)
        batch = aggregator.analyze_batch(images, [level, level, level])

        assert batch.image_count == 3
        assert batch.failed_count == 2
        assert batch.analyses[1].failure == FailureKind.INVALID_IMAGE
        assert batch.analyses[2].failure == FailureKind.DECODE_ERROR
        assert batch.reliable_count == 1
        assert batch.aggregate.corrected_vertical == batch.analyses[0].estimate.corrected_vertical

    def test_missing_samples_lower_confidence(self, aggregator):
        image = create_structure_image()
        level = OrientationSample.from_angles(0.0, 0.0, timestamp=0.0)
        analyses = aggregator.analyze_all([image, image], [level])

        assert analyses[1].estimate.confidence == pytest.approx(
            analyses[0].estimate.confidence * 0.7
        )

    def test_all_unreliable(self, aggregator):
        batch = aggregator.analyze_batch([create_blank_image(), encode_png(create_blank_image())])
        assert batch.reliable_count == 0
        assert batch.aggregate.warning == NO_RELIABLE_WARNING
        assert batch.aggregate.confidence == 0.0


class TestZeroThreshold:
    """A zero reliability threshold admits zero-confidence estimates."""

    def test_zero_confidence_estimates(self):
        result = aggregate_estimates([TiltEstimate.zero(), TiltEstimate.zero()], reliable_threshold=0.0)
        assert result.confidence == 0.0
        assert result.severity == TiltSeverity.NONE
        assert result.warning == NO_RELIABLE_WARNING

    def test_failed_images_in_batch(self):
        aggregator = TiltAggregator(StructuralTiltAnalyzer(), max_workers=1, reliable_threshold=0.0)
        batch = aggregator.analyze_batch([b"garbage", b"also garbage"])

        assert batch.failed_count == 2
        assert batch.aggregate.warning == NO_RELIABLE_WARNING

    def test_mixed_weights(self):
        """Zero-confidence estimates add nothing to the weighted mean."""
        result = aggregate_estimates(
            [TiltEstimate.zero(), make_estimate(3.0, 0.6)],
            reliable_threshold=0.0,
        )
        assert result.corrected_vertical == pytest.approx(3.0)
        assert result.confidence == pytest.approx(0.3)


class TestCompletionCallback:
    """Tests for the per-image completion callback."""

    @pytest.mark.parametrize("workers", [1, 3])
    def test_called_once_per_image(self, workers):
        images = [create_blank_image(), create_structure_image(), b"garbage"]
        seen = []
        aggregator = TiltAggregator(StructuralTiltAnalyzer(), max_workers=workers)

        analyses = aggregator.analyze_all(
            images,
            sources=["a", "b", "c"],
            on_complete=lambda i, analysis: seen.append((i, analysis)),
        )

        assert sorted(i for i, _ in seen) == [0, 1, 2]
        for i, analysis in seen:
            assert analysis is analyses[i]
