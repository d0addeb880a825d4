"""
Data structures for device orientation readings.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional, Sequence, Tuple
import math
import time

import numpy as np
from scipy.spatial.transform import Rotation


def rotation_vector_to_matrix(values: Sequence[float]) -> np.ndarray:
    """
    Convert a fused rotation vector to a 3x3 rotation matrix.

    The vector holds the quaternion's (x, y, z) components and optionally
    its scalar part w. When w is missing it is reconstructed from the unit
    norm constraint.

    Args:
        values: 3 or more floats (x, y, z[, w, ...])

    Returns:
        3x3 rotation matrix mapping device coordinates to world coordinates
    """
    if len(values) < 3:
        raise ValueError(f"rotation vector needs at least 3 components, got {len(values)}")

    x, y, z = float(values[0]), float(values[1]), float(values[2])
    if len(values) >= 4:
        w = float(values[3])
    else:
        w = math.sqrt(max(0.0, 1.0 - (x * x + y * y + z * z)))

    return Rotation.from_quat([x, y, z, w]).as_matrix()


def matrix_to_pitch_roll(matrix: np.ndarray) -> Tuple[float, float]:
    """
    Extract pitch and roll (degrees) from a device rotation matrix.

    Pitch is the rotation about the device's lateral axis (forward/backward
    lean), roll about its longitudinal axis (left/right lean).
    """
    pitch = math.asin(float(np.clip(-matrix[2, 1], -1.0, 1.0)))
    roll = math.atan2(float(-matrix[2, 0]), float(matrix[2, 2]))
    return math.degrees(pitch), math.degrees(roll)


@dataclass(frozen=True)
class OrientationSample:
    """
    Point-in-time snapshot of device attitude.

    Attributes:
        pitch: Forward/backward tilt in degrees
        roll: Left/right tilt in degrees
        magnitude: Overall deviation from level, sqrt(pitch^2 + roll^2)
        timestamp: Capture time in seconds since the epoch
    """
    pitch: float
    roll: float
    magnitude: float
    timestamp: float

    def __post_init__(self):
        """Validate sample values."""
        for name in ("pitch", "roll", "magnitude"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        if self.magnitude < 0:
            raise ValueError(f"magnitude must be >= 0, got {self.magnitude}")

    @classmethod
    def from_angles(
        cls,
        pitch: float,
        roll: float,
        timestamp: Optional[float] = None,
    ) -> "OrientationSample":
        """Create a sample from pitch and roll, deriving the magnitude."""
        return cls(
            pitch=float(pitch),
            roll=float(roll),
            magnitude=math.hypot(pitch, roll),
            timestamp=time.time() if timestamp is None else float(timestamp),
        )

    @classmethod
    def from_rotation_vector(
        cls,
        values: Sequence[float],
        timestamp: Optional[float] = None,
    ) -> "OrientationSample":
        """Create a sample from a raw fused rotation vector."""
        pitch, roll = matrix_to_pitch_roll(rotation_vector_to_matrix(values))
        return cls.from_angles(pitch, roll, timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pitch": self.pitch,
            "roll": self.roll,
            "magnitude": self.magnitude,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrientationSample":
        """
        Create from dictionary.

        Only pitch and roll are required; magnitude is always recomputed.
        """
        if "pitch" not in data or "roll" not in data:
            raise ValueError("orientation data requires 'pitch' and 'roll'")
        return cls.from_angles(
            data["pitch"],
            data["roll"],
            data.get("timestamp"),
        )
