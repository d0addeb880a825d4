"""
Severity classification and risk scoring for structural tilt.
"""

from typing import Dict, List
import math

from .models import TiltSeverity

# Lower bounds (degrees) of each severity band, inclusive.
MINOR_THRESHOLD = 0.25
MODERATE_THRESHOLD = 2.0
SEVERE_THRESHOLD = 5.0

RISK_POINTS: Dict[TiltSeverity, int] = {
    TiltSeverity.NONE: 0,
    TiltSeverity.MINOR: 1,
    TiltSeverity.MODERATE: 2,
    TiltSeverity.SEVERE: 3,
}

SEVERITY_COLORS: Dict[TiltSeverity, str] = {
    TiltSeverity.NONE: "#10B981",
    TiltSeverity.MINOR: "#3B82F6",
    TiltSeverity.MODERATE: "#F59E0B",
    TiltSeverity.SEVERE: "#EF4444",
}

SEVERITY_DESCRIPTIONS: Dict[TiltSeverity, str] = {
    TiltSeverity.NONE: "No structural tilt detected. Element appears plumb.",
    TiltSeverity.MINOR: (
        "Minor tilt detected (0.25-2°). Continue monitoring during regular inspections."
    ),
    TiltSeverity.MODERATE: (
        "Moderate tilt detected (2-5°). Professional inspection recommended within 1-3 months."
    ),
    TiltSeverity.SEVERE: (
        "Severe tilt detected (5° or more). Contact a structural engineer immediately."
    ),
}

RECOMMENDED_ACTIONS: Dict[TiltSeverity, List[str]] = {
    TiltSeverity.NONE: [
        "Continue regular maintenance schedule",
        "No immediate action required",
    ],
    TiltSeverity.MINOR: [
        "Document with photos every 6 months",
        "Mark reference points to track progression",
        "Monitor for cracks or door/window issues",
    ],
    TiltSeverity.MODERATE: [
        "Schedule professional structural inspection",
        "Document current condition thoroughly",
        "Check foundation for settlement or cracks",
        "Monitor for rapid changes weekly",
    ],
    TiltSeverity.SEVERE: [
        "Contact structural engineer within 24-48 hours",
        "Document with dated photos immediately",
        "Assess foundation and soil conditions",
        "Consider temporary support measures",
    ],
}


def classify_severity(corrected_vertical: float) -> TiltSeverity:
    """
    Classify corrected vertical tilt into a severity band.

    Bands are half-open on the lower bound:
    [0, 0.25) NONE, [0.25, 2) MINOR, [2, 5) MODERATE, [5, inf) SEVERE.
    A NaN tilt carries no evidence and maps to NONE.

    Args:
        corrected_vertical: Compensated vertical tilt in degrees

    Returns:
        TiltSeverity
    """
    if math.isnan(corrected_vertical) or corrected_vertical < MINOR_THRESHOLD:
        return TiltSeverity.NONE
    if corrected_vertical < MODERATE_THRESHOLD:
        return TiltSeverity.MINOR
    if corrected_vertical < SEVERE_THRESHOLD:
        return TiltSeverity.MODERATE
    return TiltSeverity.SEVERE


def risk_points(severity: TiltSeverity) -> int:
    """Points contributed to an external aggregate risk score."""
    return RISK_POINTS[severity]


def describe_severity(severity: TiltSeverity) -> str:
    return SEVERITY_DESCRIPTIONS[severity]


def recommended_actions(severity: TiltSeverity) -> List[str]:
    return list(RECOMMENDED_ACTIONS[severity])


def severity_color(severity: TiltSeverity) -> str:
    return SEVERITY_COLORS[severity]
