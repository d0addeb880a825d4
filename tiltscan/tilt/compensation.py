"""
Camera tilt compensation.

The phone is never perfectly level. Device pitch leans every vertical edge
in the frame and device roll leans every horizontal one, so the measured
device attitude is subtracted from the image-derived tilt.
"""

from typing import Optional
import logging

import numpy as np

from ..config.analysis_config import ConfidenceSettings
from ..sensors.models import OrientationSample
from .models import TiltEstimate
from .severity import classify_severity

logger = logging.getLogger(__name__)

NO_SAMPLE_WARNING = "no camera tilt data (reduced accuracy)"


def compensation_multiplier(
    magnitude: float,
    settings: Optional[ConfidenceSettings] = None,
) -> float:
    """Confidence multiplier for a device tilt magnitude, clamp(1 - m/20, 0.6, 1.3)."""
    settings = settings or ConfidenceSettings()
    return float(np.clip(
        1.0 - magnitude / settings.compensation_span,
        settings.min_compensation_multiplier,
        settings.max_compensation_multiplier,
    ))


def compensate(
    raw: TiltEstimate,
    sample: Optional[OrientationSample],
    settings: Optional[ConfidenceSettings] = None,
) -> TiltEstimate:
    """
    Remove device attitude from a raw estimate.

    Args:
        raw: Estimate from the single-image estimator
        sample: Orientation at capture time, or None if unavailable

    Returns:
        New TiltEstimate with corrected fields and severity recomputed
        from corrected vertical tilt
    """
    settings = settings or ConfidenceSettings()
    raw_vertical = raw.raw_vertical if raw.raw_vertical is not None else raw.corrected_vertical
    raw_horizontal = (
        raw.raw_horizontal if raw.raw_horizontal is not None else raw.corrected_horizontal
    )

    if sample is None:
        confidence = float(np.clip(raw.confidence * settings.missing_sample_penalty, 0.0, 1.0))
        return raw.with_changes(
            corrected_vertical=raw_vertical,
            corrected_horizontal=raw_horizontal,
            confidence=confidence,
            severity=classify_severity(raw_vertical),
            camera_compensation=None,
            warning=NO_SAMPLE_WARNING,
        )

    corrected_vertical = max(0.0, raw_vertical - abs(sample.pitch))
    corrected_horizontal = max(0.0, raw_horizontal - abs(sample.roll))
    multiplier = compensation_multiplier(sample.magnitude, settings)
    confidence = float(np.clip(raw.confidence * multiplier, 0.0, 1.0))

    logger.debug(
        f"Compensation: raw={raw_vertical:.2f}°, camera={sample.magnitude:.2f}°, "
        f"corrected={corrected_vertical:.2f}°, multiplier={multiplier:.3f}"
    )

    return raw.with_changes(
        corrected_vertical=corrected_vertical,
        corrected_horizontal=corrected_horizontal,
        confidence=confidence,
        severity=classify_severity(corrected_vertical),
        camera_compensation=sample.magnitude,
        raw_vertical=raw_vertical,
        raw_horizontal=raw_horizontal,
    )
