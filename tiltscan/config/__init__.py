"""
Analysis configuration.
"""

from .analysis_config import (
    AnalysisConfig,
    EdgeSettings,
    HoughSettings,
    ClassificationSettings,
    ConfidenceSettings,
    AggregationSettings,
)

__all__ = [
    "AnalysisConfig",
    "EdgeSettings",
    "HoughSettings",
    "ClassificationSettings",
    "ConfidenceSettings",
    "AggregationSettings",
]
