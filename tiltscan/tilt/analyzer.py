"""
Structural tilt analyzer.

Runs the per-image pipeline: line extraction, classification, outlier
filtering, raw estimation, camera compensation and severity. Every failure
is converted into a tagged ImageAnalysis so callers always receive a
well-formed estimate.
"""

from pathlib import Path
from typing import Iterable, Optional, Union
import base64
import binascii
import logging

import numpy as np
import cv2

from ..config.analysis_config import AnalysisConfig
from ..sensors.models import OrientationSample
from .classification import classify_segments, filter_buckets
from .compensation import compensate
from .estimator import estimate_tilt
from .line_extraction import LineExtractor, ExtractionCapability
from .models import FailureKind, ImageAnalysis, LineSegment, TiltEstimate

logger = logging.getLogger(__name__)

ImageInput = Union[np.ndarray, bytes, str, Path]


def decode_image_bytes(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes (PNG, JPEG, ...) to a BGR array, or None."""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    return cv2.imdecode(buffer, cv2.IMREAD_COLOR)


def image_from_base64(base64_string: str) -> Optional[np.ndarray]:
    """Decode a base64 image string (optionally a data URL) to a BGR array."""
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        img_bytes = base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError):
        return None

    return decode_image_bytes(img_bytes)


class StructuralTiltAnalyzer:
    """
    Estimates how far a photographed structure leans from vertical.

    Example:
        >>> analyzer = StructuralTiltAnalyzer()
        >>> sample = OrientationSample.from_angles(pitch=1.5, roll=0.4)
        >>> result = analyzer.analyze(image, sample)
        >>> result.estimate.severity
        <TiltSeverity.MINOR: 'minor'>
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        extractor: Optional[LineExtractor] = None,
    ):
        """
        Initialize analyzer.

        Args:
            config: Analysis configuration
            extractor: Pre-built line extractor (its capability is reused)
        """
        self.config = config or AnalysisConfig()
        self.extractor = extractor or LineExtractor(
            edges=self.config.edges,
            hough=self.config.hough,
        )
        if not self.capability.available:
            logger.warning(
                f"Line extraction unavailable, all results will be degraded: "
                f"{self.capability.reason}"
            )

    @property
    def capability(self) -> ExtractionCapability:
        return self.extractor.capability

    def analyze(
        self,
        image: np.ndarray,
        sample: Optional[OrientationSample] = None,
        source: Optional[str] = None,
    ) -> ImageAnalysis:
        """
        Analyze one image.

        Args:
            image: Raster image (grayscale, BGR or BGRA)
            sample: Device orientation at capture time
            source: Optional label (e.g. file name) carried into the result

        Returns:
            ImageAnalysis; failed analyses carry a zero estimate
        """
        if not self.capability.available:
            return ImageAnalysis.failed(
                FailureKind.CAPABILITY_UNAVAILABLE,
                f"line extraction unavailable ({self.capability.reason})",
                source=source,
            )

        try:
            segments = self.extractor.extract(image)
            estimate = self.analyze_segments(segments, sample)
        except ValueError as e:
            logger.error(f"Invalid image {source or ''}: {e}")
            return ImageAnalysis.failed(FailureKind.INVALID_IMAGE, str(e), source=source)
        except Exception as e:
            logger.error(f"Tilt analysis failed {source or ''}: {e}")
            return ImageAnalysis.failed(FailureKind.PROCESSING_ERROR, str(e), source=source)

        return ImageAnalysis(estimate=estimate, source=source)

    def analyze_segments(
        self,
        segments: Iterable[LineSegment],
        sample: Optional[OrientationSample] = None,
    ) -> TiltEstimate:
        """
        Run classification, estimation and compensation on detected segments.

        Args:
            segments: Line segments from extraction
            sample: Device orientation at capture time

        Returns:
            Compensated TiltEstimate
        """
        buckets = classify_segments(segments, self.config.classification)
        filtered = filter_buckets(buckets, self.config.classification)
        raw = estimate_tilt(filtered, self.config.confidence)
        return compensate(raw, sample, self.config.confidence)

    def analyze_file(
        self,
        image_path: Union[str, Path],
        sample: Optional[OrientationSample] = None,
    ) -> ImageAnalysis:
        """Load an image file and analyze it."""
        source = str(image_path)
        image = cv2.imread(source, cv2.IMREAD_COLOR)
        if image is None:
            return ImageAnalysis.failed(
                FailureKind.DECODE_ERROR,
                f"failed to load image: {source}",
                source=source,
            )
        return self.analyze(image, sample, source=source)

    def analyze_bytes(
        self,
        data: bytes,
        sample: Optional[OrientationSample] = None,
        source: Optional[str] = None,
    ) -> ImageAnalysis:
        """Decode encoded image bytes and analyze them."""
        image = decode_image_bytes(data)
        if image is None:
            return ImageAnalysis.failed(
                FailureKind.DECODE_ERROR,
                "failed to decode image data",
                source=source,
            )
        return self.analyze(image, sample, source=source)

    def analyze_input(
        self,
        image: ImageInput,
        sample: Optional[OrientationSample] = None,
        source: Optional[str] = None,
    ) -> ImageAnalysis:
        """Analyze an array, encoded bytes, or a file path."""
        if isinstance(image, (str, Path)):
            return self.analyze_file(image, sample)
        if isinstance(image, (bytes, bytearray)):
            return self.analyze_bytes(bytes(image), sample, source=source)
        return self.analyze(image, sample, source=source)

    def estimate(
        self,
        image: np.ndarray,
        sample: Optional[OrientationSample] = None,
    ) -> TiltEstimate:
        """Analyze one image and return only its estimate."""
        return self.analyze(image, sample).estimate
