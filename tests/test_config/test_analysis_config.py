"""Tests for analysis configuration."""

import pytest

from tiltscan.config.analysis_config import (
    AggregationSettings,
    AnalysisConfig,
    ClassificationSettings,
    ConfidenceSettings,
    EdgeSettings,
    HoughSettings,
)


class TestDefaults:
    """Default values match the calibrated pipeline."""

    def test_edges(self):
        edges = EdgeSettings()
        assert edges.blur_kernel_size == 5
        assert (edges.canny_low, edges.canny_high) == (60, 180)

    def test_hough(self):
        hough = HoughSettings()
        assert hough.threshold == 60
        assert hough.max_line_gap == 15
        assert hough.min_length_ratio == 0.08
        assert hough.min_length_floor == 40

    def test_classification(self):
        classification = ClassificationSettings()
        assert classification.vertical_min_angle == 65.0
        assert classification.horizontal_max_angle == 25.0
        assert classification.outlier_sigma == 2.0

    def test_confidence(self):
        confidence = ConfidenceSettings()
        assert confidence.line_count_tiers == [(20, 0.95), (12, 0.85), (6, 0.70), (3, 0.50)]
        assert confidence.fallback_confidence == 0.25
        assert confidence.missing_sample_penalty == 0.7
        assert confidence.min_compensation_multiplier == 0.6
        assert confidence.max_compensation_multiplier == 1.3

    def test_aggregation(self):
        assert AggregationSettings().reliable_threshold == 0.4

    def test_default_factory(self):
        assert AnalysisConfig.default().to_dict() == AnalysisConfig().to_dict()


class TestValidation:
    """Invalid settings raise ValueError."""

    def test_even_blur_kernel(self):
        with pytest.raises(ValueError, match="blur_kernel_size"):
            EdgeSettings(blur_kernel_size=4)

    def test_canny_order(self):
        with pytest.raises(ValueError, match="canny_high"):
            EdgeSettings(canny_low=100, canny_high=50)

    def test_hough_ratio(self):
        with pytest.raises(ValueError, match="min_length_ratio"):
            HoughSettings(min_length_ratio=0.0)

    def test_bucket_order(self):
        with pytest.raises(ValueError):
            ClassificationSettings(vertical_min_angle=20.0, horizontal_max_angle=30.0)

    def test_tier_confidence_range(self):
        with pytest.raises(ValueError, match="tier confidence"):
            ConfidenceSettings(line_count_tiers=[(5, 1.5)])

    def test_multiplier_bounds(self):
        with pytest.raises(ValueError):
            ConfidenceSettings(min_compensation_multiplier=1.5, max_compensation_multiplier=1.0)

    def test_reliable_threshold(self):
        with pytest.raises(ValueError, match="reliable_threshold"):
            AggregationSettings(reliable_threshold=1.2)

    def test_max_workers(self):
        with pytest.raises(ValueError, match="max_workers"):
            AggregationSettings(max_workers=0)


class TestSerialization:
    """Tests for to_dict/from_dict and YAML loading."""

    def test_dict_roundtrip(self):
        config = AnalysisConfig(
            hough=HoughSettings(threshold=40),
            aggregation=AggregationSettings(reliable_threshold=0.5),
        )
        restored = AnalysisConfig.from_dict(config.to_dict())
        assert restored.hough.threshold == 40
        assert restored.aggregation.reliable_threshold == 0.5
        assert restored.confidence.line_count_tiers == config.confidence.line_count_tiers

    def test_partial_dict(self):
        config = AnalysisConfig.from_dict({"edges": {"canny_low": 30}})
        assert config.edges.canny_low == 30
        assert config.edges.canny_high == 180
        assert config.hough.threshold == 60

    def test_nested_dicts_converted(self):
        config = AnalysisConfig(classification={"outlier_sigma": 3.0})
        assert isinstance(config.classification, ClassificationSettings)
        assert config.classification.outlier_sigma == 3.0

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "tilt.yaml"
        path.write_text(
            "analysis:\n"
            "  hough:\n"
            "    threshold: 45\n"
            "  confidence:\n"
            "    line_count_tiers:\n"
            "      - [3, 0.5]\n"
            "      - [20, 0.95]\n"
            "  aggregation:\n"
            "    max_workers: 2\n"
        )
        config = AnalysisConfig.from_yaml(str(path))

        assert config.hough.threshold == 45
        assert config.confidence.line_count_tiers == [(20, 0.95), (3, 0.5)]
        assert config.aggregation.max_workers == 2

    def test_from_yaml_without_section(self, tmp_path):
        path = tmp_path / "tilt.yaml"
        path.write_text("edges:\n  blur_kernel_size: 7\n")
        assert AnalysisConfig.from_yaml(str(path)).edges.blur_kernel_size == 7

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert AnalysisConfig.from_yaml(str(path)).to_dict() == AnalysisConfig().to_dict()
