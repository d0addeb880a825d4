"""
Line segment extraction for structural tilt analysis.

Pipeline: grayscale -> Gaussian blur -> Canny -> probabilistic Hough.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

import numpy as np
import cv2

from ..config.analysis_config import EdgeSettings, HoughSettings
from .models import LineSegment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionCapability:
    """
    Whether the line extraction primitives can run in this process.

    Attributes:
        available: True if edge detection and Hough extraction initialized
        reason: Why extraction is unavailable, if it is
        backend: Backend identifier (OpenCV version)
    """
    available: bool
    reason: Optional[str] = None
    backend: Optional[str] = None

    @classmethod
    def unavailable(cls, reason: str) -> "ExtractionCapability":
        return cls(available=False, reason=reason)


def probe_line_extraction() -> ExtractionCapability:
    """
    Run the extraction primitives once on a tiny synthetic image.

    Returns:
        ExtractionCapability describing the outcome
    """
    try:
        probe = np.zeros((16, 16), dtype=np.uint8)
        cv2.line(probe, (8, 0), (8, 15), 255, 1)
        edges = cv2.Canny(cv2.GaussianBlur(probe, (5, 5), 0), 60, 180)
        cv2.HoughLinesP(edges, 1, np.pi / 180, 5, minLineLength=4, maxLineGap=1)
    except (cv2.error, AttributeError) as e:
        logger.error(f"Line extraction unavailable: {e}")
        return ExtractionCapability.unavailable(str(e))

    return ExtractionCapability(available=True, backend=f"opencv {cv2.__version__}")


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convert a raster image to single-channel 8-bit.

    Accepts grayscale, 3-channel BGR and 4-channel BGRA arrays.

    Raises:
        ValueError: If the array is empty or has an unsupported shape/dtype
    """
    if image is None or not isinstance(image, np.ndarray):
        raise ValueError("image must be a numpy array")
    if image.size == 0:
        raise ValueError("image is empty")
    if image.dtype != np.uint8:
        raise ValueError(f"unsupported image dtype: {image.dtype}")

    if image.ndim == 2:
        return image
    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 1:
            return np.ascontiguousarray(image[:, :, 0])
        if channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

    raise ValueError(f"unsupported image shape: {image.shape}")


def segments_from_hough(lines: Optional[np.ndarray]) -> List[LineSegment]:
    """
    Convert HoughLinesP output to segments.

    OpenCV 4 returns shape (N, 1, 4) and OpenCV 5 returns (N, 4); both are
    flattened to rows of (x1, y1, x2, y2).
    """
    if lines is None:
        return []

    return [
        LineSegment(float(x1), float(y1), float(x2), float(y2))
        for x1, y1, x2, y2 in np.asarray(lines).reshape(-1, 4)
    ]


class LineExtractor:
    """
    Extracts candidate straight line segments from an image.

    Example:
        >>> extractor = LineExtractor()
        >>> if extractor.capability.available:
        ...     segments = extractor.extract(image)
    """

    def __init__(
        self,
        edges: Optional[EdgeSettings] = None,
        hough: Optional[HoughSettings] = None,
        capability: Optional[ExtractionCapability] = None,
    ):
        """
        Initialize extractor.

        Args:
            edges: Blur and Canny settings
            hough: Hough transform settings
            capability: Pre-computed capability; probed when not given
        """
        self.edges = edges or EdgeSettings()
        self.hough = hough or HoughSettings()
        self.capability = capability or probe_line_extraction()

    def detect_edges(self, image: np.ndarray) -> np.ndarray:
        """Grayscale, blur and Canny edge map of an image."""
        gray = to_grayscale(image)
        return self._edges_from_gray(gray)

    def _edges_from_gray(self, gray: np.ndarray) -> np.ndarray:
        kernel = (self.edges.blur_kernel_size, self.edges.blur_kernel_size)
        blurred = cv2.GaussianBlur(gray, kernel, 0)
        return cv2.Canny(blurred, self.edges.canny_low, self.edges.canny_high)

    def extract(self, image: np.ndarray) -> List[LineSegment]:
        """
        Detect line segments in an image.

        Args:
            image: Raster image (grayscale, BGR or BGRA)

        Returns:
            List of LineSegment (possibly empty)

        Raises:
            RuntimeError: If the extraction capability is unavailable
            ValueError: If the image is malformed
        """
        if not self.capability.available:
            raise RuntimeError(f"line extraction unavailable: {self.capability.reason}")

        gray = to_grayscale(image)
        width = gray.shape[1]
        edges = self._edges_from_gray(gray)

        lines = cv2.HoughLinesP(
            edges,
            rho=self.hough.rho,
            theta=np.deg2rad(self.hough.theta_degrees),
            threshold=self.hough.threshold,
            minLineLength=self.hough.min_line_length(width),
            maxLineGap=self.hough.max_line_gap,
        )

        segments = segments_from_hough(lines)

        logger.debug(f"Extracted {len(segments)} segments from {width}px wide image")
        return segments
