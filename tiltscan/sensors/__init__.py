"""
Device Orientation Module

Samples a fused rotation source and exposes point-in-time pitch/roll
snapshots used to compensate structural tilt for camera attitude.
"""

from .models import OrientationSample, rotation_vector_to_matrix, matrix_to_pitch_roll
from .monitor import OrientationMonitor, RotationSource, ReplayRotationSource
from .quality import CaptureQuality, assess_capture_quality, capture_guidance

__all__ = [
    "OrientationSample",
    "rotation_vector_to_matrix",
    "matrix_to_pitch_roll",
    "OrientationMonitor",
    "RotationSource",
    "ReplayRotationSource",
    "CaptureQuality",
    "assess_capture_quality",
    "capture_guidance",
]
