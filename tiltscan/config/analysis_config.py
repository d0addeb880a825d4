"""
Configuration for structural tilt analysis.

Defaults reproduce the calibrated screening pipeline: Canny 60/180 on a 5x5
Gaussian blur, probabilistic Hough with a 60-vote threshold, 65/25 degree
bucketing, a 2-sigma outlier filter and the line-count confidence tiers.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Tuple


@dataclass
class EdgeSettings:
    """Settings for preprocessing and Canny edge detection."""
    blur_kernel_size: int = 5
    canny_low: int = 60
    canny_high: int = 180

    def __post_init__(self):
        """Validate edge settings."""
        if self.blur_kernel_size < 1 or self.blur_kernel_size % 2 == 0:
            raise ValueError(
                f"blur_kernel_size must be a positive odd number, got {self.blur_kernel_size}"
            )
        if self.canny_low < 0:
            raise ValueError(f"canny_low must be >= 0, got {self.canny_low}")
        if self.canny_high <= self.canny_low:
            raise ValueError(
                f"canny_high must be greater than canny_low, got {self.canny_high} <= {self.canny_low}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "blur_kernel_size": self.blur_kernel_size,
            "canny_low": self.canny_low,
            "canny_high": self.canny_high,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EdgeSettings":
        """Create from dictionary."""
        return cls(
            blur_kernel_size=data.get("blur_kernel_size", 5),
            canny_low=data.get("canny_low", 60),
            canny_high=data.get("canny_high", 180),
        )


@dataclass
class HoughSettings:
    """
    Settings for probabilistic Hough line extraction.

    The minimum segment length scales with image width:
    max(min_length_ratio * width, min_length_floor).
    """
    min_length_ratio: float = 0.08
    min_length_floor: int = 40
    max_line_gap: int = 15
    threshold: int = 60
    rho: float = 1.0
    theta_degrees: float = 1.0

    def __post_init__(self):
        """Validate Hough settings."""
        if not (0.0 < self.min_length_ratio <= 1.0):
            raise ValueError(
                f"min_length_ratio must be between 0.0 and 1.0, got {self.min_length_ratio}"
            )
        if self.min_length_floor < 1:
            raise ValueError(f"min_length_floor must be >= 1, got {self.min_length_floor}")
        if self.max_line_gap < 0:
            raise ValueError(f"max_line_gap must be >= 0, got {self.max_line_gap}")
        if self.threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {self.threshold}")
        if self.rho <= 0 or self.theta_degrees <= 0:
            raise ValueError("rho and theta_degrees must be positive")

    def min_line_length(self, width: int) -> float:
        """Minimum segment length in pixels for an image of the given width."""
        return max(self.min_length_ratio * width, float(self.min_length_floor))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "min_length_ratio": self.min_length_ratio,
            "min_length_floor": self.min_length_floor,
            "max_line_gap": self.max_line_gap,
            "threshold": self.threshold,
            "rho": self.rho,
            "theta_degrees": self.theta_degrees,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HoughSettings":
        """Create from dictionary."""
        return cls(
            min_length_ratio=data.get("min_length_ratio", 0.08),
            min_length_floor=data.get("min_length_floor", 40),
            max_line_gap=data.get("max_line_gap", 15),
            threshold=data.get("threshold", 60),
            rho=data.get("rho", 1.0),
            theta_degrees=data.get("theta_degrees", 1.0),
        )


@dataclass
class ClassificationSettings:
    """Angle buckets and outlier rejection."""
    vertical_min_angle: float = 65.0
    horizontal_max_angle: float = 25.0
    outlier_sigma: float = 2.0
    min_samples_for_outliers: int = 3

    def __post_init__(self):
        """Validate classification settings."""
        if not (0.0 < self.horizontal_max_angle <= self.vertical_min_angle < 90.0):
            raise ValueError(
                "expected 0 < horizontal_max_angle <= vertical_min_angle < 90, got "
                f"{self.horizontal_max_angle} and {self.vertical_min_angle}"
            )
        if self.outlier_sigma <= 0:
            raise ValueError(f"outlier_sigma must be > 0, got {self.outlier_sigma}")
        if self.min_samples_for_outliers < 2:
            raise ValueError(
                f"min_samples_for_outliers must be >= 2, got {self.min_samples_for_outliers}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "vertical_min_angle": self.vertical_min_angle,
            "horizontal_max_angle": self.horizontal_max_angle,
            "outlier_sigma": self.outlier_sigma,
            "min_samples_for_outliers": self.min_samples_for_outliers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationSettings":
        """Create from dictionary."""
        return cls(
            vertical_min_angle=data.get("vertical_min_angle", 65.0),
            horizontal_max_angle=data.get("horizontal_max_angle", 25.0),
            outlier_sigma=data.get("outlier_sigma", 2.0),
            min_samples_for_outliers=data.get("min_samples_for_outliers", 3),
        )


def _default_tiers() -> List[Tuple[int, float]]:
    return [(20, 0.95), (12, 0.85), (6, 0.70), (3, 0.50)]


@dataclass
class ConfidenceSettings:
    """
    Confidence scoring for single images and camera compensation.

    Attributes:
        line_count_tiers: (minimum line count, base confidence), highest first
        fallback_confidence: Base confidence below the lowest tier
        tilt_penalty_span: Degrees of raw vertical tilt that zero the tilt factor
        single_image_floor: Lower clamp for single-image confidence
        single_image_ceiling: Upper clamp for single-image confidence
        missing_sample_penalty: Multiplier when no orientation sample exists
        compensation_span: Degrees of device tilt that zero the multiplier
        min_compensation_multiplier: Lower clamp of the compensation multiplier
        max_compensation_multiplier: Upper clamp of the compensation multiplier
    """
    line_count_tiers: List[Tuple[int, float]] = field(default_factory=_default_tiers)
    fallback_confidence: float = 0.25
    tilt_penalty_span: float = 20.0
    single_image_floor: float = 0.1
    single_image_ceiling: float = 1.0
    missing_sample_penalty: float = 0.7
    compensation_span: float = 20.0
    min_compensation_multiplier: float = 0.6
    max_compensation_multiplier: float = 1.3

    def __post_init__(self):
        """Validate confidence settings."""
        self.line_count_tiers = sorted(
            ((int(count), float(value)) for count, value in self.line_count_tiers),
            key=lambda tier: tier[0],
            reverse=True,
        )
        for count, value in self.line_count_tiers:
            if count < 0:
                raise ValueError(f"tier line count must be >= 0, got {count}")
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"tier confidence must be 0.0-1.0, got {value}")
        if not (0.0 <= self.fallback_confidence <= 1.0):
            raise ValueError(
                f"fallback_confidence must be 0.0-1.0, got {self.fallback_confidence}"
            )
        if self.tilt_penalty_span <= 0 or self.compensation_span <= 0:
            raise ValueError("tilt_penalty_span and compensation_span must be > 0")
        if not (0.0 <= self.single_image_floor <= self.single_image_ceiling <= 1.0):
            raise ValueError(
                "expected 0 <= single_image_floor <= single_image_ceiling <= 1, got "
                f"{self.single_image_floor} and {self.single_image_ceiling}"
            )
        if not (0.0 <= self.missing_sample_penalty <= 1.0):
            raise ValueError(
                f"missing_sample_penalty must be 0.0-1.0, got {self.missing_sample_penalty}"
            )
        if not (0.0 <= self.min_compensation_multiplier <= self.max_compensation_multiplier):
            raise ValueError(
                "expected 0 <= min_compensation_multiplier <= max_compensation_multiplier, got "
                f"{self.min_compensation_multiplier} and {self.max_compensation_multiplier}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "line_count_tiers": [list(tier) for tier in self.line_count_tiers],
            "fallback_confidence": self.fallback_confidence,
            "tilt_penalty_span": self.tilt_penalty_span,
            "single_image_floor": self.single_image_floor,
            "single_image_ceiling": self.single_image_ceiling,
            "missing_sample_penalty": self.missing_sample_penalty,
            "compensation_span": self.compensation_span,
            "min_compensation_multiplier": self.min_compensation_multiplier,
            "max_compensation_multiplier": self.max_compensation_multiplier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfidenceSettings":
        """Create from dictionary."""
        tiers = data.get("line_count_tiers")
        return cls(
            line_count_tiers=[tuple(t) for t in tiers] if tiers else _default_tiers(),
            fallback_confidence=data.get("fallback_confidence", 0.25),
            tilt_penalty_span=data.get("tilt_penalty_span", 20.0),
            single_image_floor=data.get("single_image_floor", 0.1),
            single_image_ceiling=data.get("single_image_ceiling", 1.0),
            missing_sample_penalty=data.get("missing_sample_penalty", 0.7),
            compensation_span=data.get("compensation_span", 20.0),
            min_compensation_multiplier=data.get("min_compensation_multiplier", 0.6),
            max_compensation_multiplier=data.get("max_compensation_multiplier", 1.3),
        )


@dataclass
class AggregationSettings:
    """Settings for multi-image aggregation."""
    reliable_threshold: float = 0.4
    max_workers: int = 4

    def __post_init__(self):
        """Validate aggregation settings."""
        if not (0.0 <= self.reliable_threshold <= 1.0):
            raise ValueError(
                f"reliable_threshold must be 0.0-1.0, got {self.reliable_threshold}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "reliable_threshold": self.reliable_threshold,
            "max_workers": self.max_workers,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregationSettings":
        """Create from dictionary."""
        return cls(
            reliable_threshold=data.get("reliable_threshold", 0.4),
            max_workers=data.get("max_workers", 4),
        )


@dataclass
class AnalysisConfig:
    """
    Complete configuration for the tilt analysis pipeline.

    Attributes:
        edges: Preprocessing and edge detection settings
        hough: Line segment extraction settings
        classification: Angle bucketing and outlier settings
        confidence: Confidence scoring settings
        aggregation: Multi-image aggregation settings
    """
    edges: EdgeSettings = field(default_factory=EdgeSettings)
    hough: HoughSettings = field(default_factory=HoughSettings)
    classification: ClassificationSettings = field(default_factory=ClassificationSettings)
    confidence: ConfidenceSettings = field(default_factory=ConfidenceSettings)
    aggregation: AggregationSettings = field(default_factory=AggregationSettings)

    def __post_init__(self):
        """Convert nested sections given as dicts."""
        sections = {
            "edges": EdgeSettings,
            "hough": HoughSettings,
            "classification": ClassificationSettings,
            "confidence": ConfidenceSettings,
            "aggregation": AggregationSettings,
        }
        for name, section_cls in sections.items():
            value = getattr(self, name)
            if isinstance(value, dict):
                object.__setattr__(self, name, section_cls.from_dict(value))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "edges": self.edges.to_dict(),
            "hough": self.hough.to_dict(),
            "classification": self.classification.to_dict(),
            "confidence": self.confidence.to_dict(),
            "aggregation": self.aggregation.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Create from dictionary (e.g., from YAML config)."""
        return cls(
            edges=EdgeSettings.from_dict(data.get("edges", {})),
            hough=HoughSettings.from_dict(data.get("hough", {})),
            classification=ClassificationSettings.from_dict(data.get("classification", {})),
            confidence=ConfidenceSettings.from_dict(data.get("confidence", {})),
            aggregation=AggregationSettings.from_dict(data.get("aggregation", {})),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "AnalysisConfig":
        """Load configuration from YAML file."""
        import yaml

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("analysis", data))

    @classmethod
    def default(cls) -> "AnalysisConfig":
        """Create default configuration."""
        return cls()
