"""
Capture quality assessment from device attitude.

Thresholds follow common photogrammetry practice: a device within 3 degrees
of level gives professional-grade captures, beyond 10 degrees perspective
distortion makes the photo unusable for tilt screening.
"""

from enum import Enum
from typing import Dict, Any

from .models import OrientationSample

EXCELLENT_THRESHOLD = 3.0
ACCEPTABLE_THRESHOLD = 5.0
REJECT_THRESHOLD = 10.0


class CaptureQuality(Enum):
    """Quality grade of a capture based on device tilt."""
    EXCELLENT = "excellent"
    ACCEPTABLE = "acceptable"
    MARGINAL = "marginal"
    REJECTED = "rejected"

    @property
    def multiplier(self) -> float:
        """Advisory confidence multiplier for this grade."""
        return _QUALITY_MULTIPLIERS[self]


_QUALITY_MULTIPLIERS = {
    CaptureQuality.EXCELLENT: 1.00,
    CaptureQuality.ACCEPTABLE: 0.95,
    CaptureQuality.MARGINAL: 0.85,
    CaptureQuality.REJECTED: 0.0,
}


def assess_capture_quality(sample: OrientationSample) -> CaptureQuality:
    """
    Grade a capture by the device tilt magnitude at shutter time.

    Args:
        sample: Orientation sample taken at capture

    Returns:
        CaptureQuality grade
    """
    if sample.magnitude <= EXCELLENT_THRESHOLD:
        return CaptureQuality.EXCELLENT
    if sample.magnitude <= ACCEPTABLE_THRESHOLD:
        return CaptureQuality.ACCEPTABLE
    if sample.magnitude <= REJECT_THRESHOLD:
        return CaptureQuality.MARGINAL
    return CaptureQuality.REJECTED


def capture_guidance(sample: OrientationSample) -> Dict[str, Any]:
    """Summarize capture quality for a live preview overlay."""
    quality = assess_capture_quality(sample)
    return {
        "quality": quality.value,
        "multiplier": quality.multiplier,
        "magnitude": sample.magnitude,
        "level_enough": quality in (CaptureQuality.EXCELLENT, CaptureQuality.ACCEPTABLE),
    }
