"""
Structural Tilt Screening Package

Estimates out-of-plumb tilt of building elements from photographs and the
capturing device's orientation, for rapid safety screening.
"""

from .sensors import OrientationSample, OrientationMonitor
from .tilt import (
    StructuralTiltAnalyzer,
    TiltAggregator,
    TiltEstimate,
    TiltSeverity,
    classify_severity,
    risk_points,
)
from .config import AnalysisConfig

__version__ = "1.0.0"

__all__ = [
    "OrientationSample",
    "OrientationMonitor",
    "StructuralTiltAnalyzer",
    "TiltAggregator",
    "TiltEstimate",
    "TiltSeverity",
    "classify_severity",
    "risk_points",
    "AnalysisConfig",
]
