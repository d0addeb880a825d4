"""
Data structures for structural tilt estimation.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Any, List, Optional
import math


class TiltSeverity(Enum):
    """Ordinal out-of-plumb severity of a structure."""
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        """Ordinal position, NONE=0 through SEVERE=3."""
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other: "TiltSeverity") -> bool:
        if not isinstance(other, TiltSeverity):
            return NotImplemented
        return self.rank < other.rank


_SEVERITY_ORDER = [
    TiltSeverity.NONE,
    TiltSeverity.MINOR,
    TiltSeverity.MODERATE,
    TiltSeverity.SEVERE,
]


@dataclass(frozen=True)
class LineSegment:
    """A detected straight segment between two pixel endpoints."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)


class FailureKind(Enum):
    """Why a single image produced no usable measurement."""
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    DECODE_ERROR = "decode_error"
    INVALID_IMAGE = "invalid_image"
    PROCESSING_ERROR = "processing_error"


@dataclass(frozen=True)
class TiltEstimate:
    """
    Tilt estimate for one image or an aggregated batch.

    Attributes:
        corrected_vertical: Out-of-plumb tilt after camera compensation (degrees)
        corrected_horizontal: Out-of-level tilt after camera compensation (degrees)
        confidence: Trust score 0.0-1.0
        line_count: Accepted line segments behind the estimate
        severity: Classification of corrected_vertical
        raw_vertical: Vertical tilt before compensation (diagnostic)
        raw_horizontal: Horizontal tilt before compensation (diagnostic)
        camera_compensation: Device tilt magnitude removed, if a sample was used
        warning: Why confidence may be low
    """
    corrected_vertical: float
    corrected_horizontal: float
    confidence: float
    line_count: int
    severity: TiltSeverity
    raw_vertical: Optional[float] = None
    raw_horizontal: Optional[float] = None
    camera_compensation: Optional[float] = None
    warning: Optional[str] = None

    def __post_init__(self):
        """Validate fields."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be 0.0-1.0, got {self.confidence}")
        if self.line_count < 0:
            raise ValueError(f"line_count must be >= 0, got {self.line_count}")

    @classmethod
    def zero(cls, warning: Optional[str] = None) -> "TiltEstimate":
        """Create the default zero-tilt, zero-confidence estimate."""
        return cls(
            corrected_vertical=0.0,
            corrected_horizontal=0.0,
            confidence=0.0,
            line_count=0,
            severity=TiltSeverity.NONE,
            warning=warning,
        )

    def with_changes(self, **changes: Any) -> "TiltEstimate":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "corrected_vertical": self.corrected_vertical,
            "corrected_horizontal": self.corrected_horizontal,
            "confidence": self.confidence,
            "line_count": self.line_count,
            "severity": self.severity.name,
            "camera_compensation": self.camera_compensation,
            "raw_vertical": self.raw_vertical,
            "raw_horizontal": self.raw_horizontal,
            "warning": self.warning,
        }


@dataclass(frozen=True)
class ImageAnalysis:
    """
    Outcome of the per-image pipeline.

    A failed analysis still carries a well-formed degraded estimate, so
    callers that only want the number never have to branch.
    """
    estimate: TiltEstimate
    failure: Optional[FailureKind] = None
    error: Optional[str] = None
    source: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        message: str,
        source: Optional[str] = None,
    ) -> "ImageAnalysis":
        """Create a failed analysis with a zero estimate."""
        return cls(
            estimate=TiltEstimate.zero(warning=f"analysis error: {message}"),
            failure=kind,
            error=message,
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source": self.source,
            "succeeded": self.succeeded,
            "failure": self.failure.value if self.failure else None,
            "error": self.error,
            "estimate": self.estimate.to_dict(),
        }


@dataclass(frozen=True)
class BatchAnalysis:
    """Aggregate estimate plus the per-image outcomes that produced it."""
    aggregate: TiltEstimate
    analyses: List[ImageAnalysis] = field(default_factory=list)
    reliable_count: int = 0

    @property
    def image_count(self) -> int:
        return len(self.analyses)

    @property
    def failed_count(self) -> int:
        return sum(1 for a in self.analyses if not a.succeeded)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "aggregate": self.aggregate.to_dict(),
            "image_count": self.image_count,
            "reliable_count": self.reliable_count,
            "failed_count": self.failed_count,
            "images": [a.to_dict() for a in self.analyses],
        }
