"""
Structural Tilt Module

Estimates how far a photographed vertical building element leans from true
vertical, compensated for camera attitude and scored for confidence.
"""

from .models import (
    TiltSeverity,
    TiltEstimate,
    LineSegment,
    FailureKind,
    ImageAnalysis,
    BatchAnalysis,
)
from .line_extraction import (
    LineExtractor,
    ExtractionCapability,
    probe_line_extraction,
    segments_from_hough,
)
from .classification import AngleBuckets, classify_segments, remove_outliers, normalize_angle
from .estimator import estimate_tilt, base_confidence
from .compensation import compensate
from .severity import classify_severity, risk_points
from .analyzer import StructuralTiltAnalyzer, image_from_base64
from .aggregation import TiltAggregator, aggregate_estimates

__all__ = [
    "TiltSeverity",
    "TiltEstimate",
    "LineSegment",
    "FailureKind",
    "ImageAnalysis",
    "BatchAnalysis",
    "LineExtractor",
    "ExtractionCapability",
    "probe_line_extraction",
    "segments_from_hough",
    "AngleBuckets",
    "classify_segments",
    "remove_outliers",
    "normalize_angle",
    "estimate_tilt",
    "base_confidence",
    "compensate",
    "classify_severity",
    "risk_points",
    "StructuralTiltAnalyzer",
    "image_from_base64",
    "TiltAggregator",
    "aggregate_estimates",
]
