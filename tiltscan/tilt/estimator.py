"""
Single-image tilt estimation from filtered angle buckets.
"""

from typing import List, Optional
import logging

import numpy as np

from ..config.analysis_config import ConfidenceSettings
from .classification import AngleBuckets
from .models import TiltEstimate
from .severity import classify_severity

logger = logging.getLogger(__name__)


def bucket_mean(values: List[float]) -> float:
    """Mean of a bucket, 0.0 when empty."""
    if not values:
        return 0.0
    return float(np.mean(values))


def base_confidence(
    line_count: int,
    settings: Optional[ConfidenceSettings] = None,
) -> float:
    """
    Base confidence from the number of accepted lines.

    Defaults: >=20 -> 0.95, >=12 -> 0.85, >=6 -> 0.70, >=3 -> 0.50, else 0.25.
    """
    settings = settings or ConfidenceSettings()
    for min_count, confidence in settings.line_count_tiers:
        if line_count >= min_count:
            return confidence
    return settings.fallback_confidence


def single_image_confidence(
    line_count: int,
    raw_vertical: float,
    settings: Optional[ConfidenceSettings] = None,
) -> float:
    """
    Confidence for one image before camera compensation.

    Larger apparent tilts are trusted less: the base score is scaled by
    (1 - raw_vertical / 20) and clamped to [0.1, 1.0].
    """
    settings = settings or ConfidenceSettings()
    base = base_confidence(line_count, settings)
    scaled = base * (1.0 - raw_vertical / settings.tilt_penalty_span)
    return float(np.clip(scaled, settings.single_image_floor, settings.single_image_ceiling))


def estimate_tilt(
    buckets: AngleBuckets,
    settings: Optional[ConfidenceSettings] = None,
) -> TiltEstimate:
    """
    Reduce filtered buckets to a raw tilt estimate.

    Corrected fields equal the raw ones until compensation is applied.

    Args:
        buckets: Outlier-filtered angle buckets
        settings: Confidence scoring settings

    Returns:
        TiltEstimate with raw fields populated
    """
    raw_vertical = bucket_mean(buckets.vertical)
    raw_horizontal = bucket_mean(buckets.horizontal)
    line_count = buckets.line_count
    confidence = single_image_confidence(line_count, raw_vertical, settings)

    logger.debug(
        f"Raw estimate: {line_count} lines "
        f"({len(buckets.vertical)} vertical, {len(buckets.horizontal)} horizontal), "
        f"vertical={raw_vertical:.2f}°, horizontal={raw_horizontal:.2f}°, "
        f"confidence={confidence:.2f}"
    )

    return TiltEstimate(
        corrected_vertical=raw_vertical,
        corrected_horizontal=raw_horizontal,
        confidence=confidence,
        line_count=line_count,
        severity=classify_severity(raw_vertical),
        raw_vertical=raw_vertical,
        raw_horizontal=raw_horizontal,
    )
