"""
Line classification and outlier filtering.

Segments are reduced to an angle in (-90, 90], sorted into near-vertical
and near-horizontal buckets, and each bucket is cleaned with a sigma
filter before averaging.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional
import math

import numpy as np

from ..config.analysis_config import ClassificationSettings
from .models import LineSegment


@dataclass
class AngleBuckets:
    """
    Tilt samples grouped by line direction.

    Attributes:
        vertical: Deviation from vertical, 90 - |angle|, per near-vertical line
        horizontal: Deviation from horizontal, |angle|, per near-horizontal line
        discarded: Number of diagonal lines dropped as ambiguous
    """
    vertical: List[float] = field(default_factory=list)
    horizontal: List[float] = field(default_factory=list)
    discarded: int = 0

    @property
    def line_count(self) -> int:
        return len(self.vertical) + len(self.horizontal)


def normalize_angle(angle: float) -> float:
    """
    Fold an angle in degrees into (-90, 90].

    A segment and its reverse describe the same line, so angles are
    taken modulo 180.
    """
    folded = math.fmod(angle, 180.0)
    if folded > 90.0:
        folded -= 180.0
    elif folded <= -90.0:
        folded += 180.0
    return folded


def segment_angle(segment: LineSegment) -> float:
    """Normalized direction of a segment in degrees."""
    angle = math.degrees(math.atan2(segment.y2 - segment.y1, segment.x2 - segment.x1))
    return normalize_angle(angle)


def classify_segments(
    segments: Iterable[LineSegment],
    settings: Optional[ClassificationSettings] = None,
) -> AngleBuckets:
    """
    Bucket segments into near-vertical and near-horizontal tilt samples.

    Args:
        segments: Detected line segments
        settings: Bucket boundaries (defaults: vertical > 65°, horizontal < 25°)

    Returns:
        AngleBuckets with unfiltered samples
    """
    settings = settings or ClassificationSettings()
    buckets = AngleBuckets()

    for segment in segments:
        magnitude = abs(segment_angle(segment))

        if magnitude > settings.vertical_min_angle:
            buckets.vertical.append(90.0 - magnitude)
        elif magnitude < settings.horizontal_max_angle:
            buckets.horizontal.append(magnitude)
        else:
            buckets.discarded += 1

    return buckets


def remove_outliers(
    values: List[float],
    sigma: float = 2.0,
    min_samples: int = 3,
) -> List[float]:
    """
    Drop samples at or beyond `sigma` population standard deviations.

    Buckets smaller than `min_samples` pass through unchanged. A bucket
    with zero spread is returned as is.

    Args:
        values: Tilt samples in degrees
        sigma: Rejection distance in standard deviations
        min_samples: Minimum bucket size to attempt rejection

    Returns:
        Filtered samples in their original order
    """
    if len(values) < min_samples:
        return list(values)

    samples = np.asarray(values, dtype=np.float64)
    mean = samples.mean()
    std = samples.std()

    if std == 0:
        return list(values)

    keep = np.abs(samples - mean) < sigma * std
    return [float(v) for v in samples[keep]]


def filter_buckets(
    buckets: AngleBuckets,
    settings: Optional[ClassificationSettings] = None,
) -> AngleBuckets:
    """Apply outlier rejection to both buckets."""
    settings = settings or ClassificationSettings()
    return AngleBuckets(
        vertical=remove_outliers(
            buckets.vertical,
            settings.outlier_sigma,
            settings.min_samples_for_outliers,
        ),
        horizontal=remove_outliers(
            buckets.horizontal,
            settings.outlier_sigma,
            settings.min_samples_for_outliers,
        ),
        discarded=buckets.discarded,
    )
