"""
Live device orientation monitoring.

The monitor subscribes to a fused rotation source and keeps only the most
recent reading. Sensor callbacks are the single writer; any thread may call
sample() to read the latest published snapshot.
"""

from typing import Callable, List, Optional, Protocol, Sequence
import logging
import threading
import time

from .models import OrientationSample

logger = logging.getLogger(__name__)

RotationCallback = Callable[[Sequence[float], Optional[float]], None]


class RotationSource(Protocol):
    """A fused 3-axis rotation sensor delivering rotation vectors."""

    def is_available(self) -> bool:
        ...

    def register(self, callback: RotationCallback) -> None:
        ...

    def unregister(self, callback: RotationCallback) -> None:
        ...


class ReplayRotationSource:
    """
    In-process rotation source fed by explicit emit() calls.

    Used to replay recorded sensor logs and to drive the monitor from
    threads other than a hardware callback loop.
    """

    def __init__(self, available: bool = True):
        self._available = available
        self._lock = threading.Lock()
        self._callbacks: List[RotationCallback] = []

    def is_available(self) -> bool:
        return self._available

    def register(self, callback: RotationCallback) -> None:
        with self._lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def unregister(self, callback: RotationCallback) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def emit(self, values: Sequence[float], timestamp: Optional[float] = None) -> None:
        """Deliver one rotation vector to every registered listener."""
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(values, timestamp)


class OrientationMonitor:
    """
    Tracks the latest device attitude from a fused rotation source.

    Example:
        >>> monitor = OrientationMonitor(source)
        >>> monitor.start()
        >>> sample = monitor.sample()  # None until the first reading
        >>> monitor.stop()
    """

    def __init__(self, source: Optional[RotationSource] = None):
        """
        Initialize monitor.

        Args:
            source: Rotation source; None means the device has no sensor
        """
        self.source = source
        self._state_lock = threading.Lock()
        self._listening = False
        self._latest: Optional[OrientationSample] = None

    def is_available(self) -> bool:
        """Check whether the device exposes a fused rotation source."""
        return self.source is not None and self.source.is_available()

    @property
    def is_listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        """Subscribe to rotation updates. No-op if unsupported or already started."""
        with self._state_lock:
            if self._listening:
                return
            if not self.is_available():
                logger.warning("Rotation sensor unavailable, orientation monitoring disabled")
                return
            self.source.register(self._on_rotation_vector)
            self._listening = True
            logger.debug("Orientation monitoring started")

    def stop(self) -> None:
        """Unsubscribe from rotation updates. Safe to call at any time."""
        with self._state_lock:
            if not self._listening:
                return
            self.source.unregister(self._on_rotation_vector)
            self._listening = False
            logger.debug("Orientation monitoring stopped")

    def sample(self) -> Optional[OrientationSample]:
        """
        Get the most recent orientation reading.

        Returns:
            Latest OrientationSample, or None if no reading has arrived yet
        """
        return self._latest

    def reset(self) -> None:
        """Forget the last reading."""
        self._latest = None

    def publish(self, sample: OrientationSample) -> None:
        """Publish an already-converted sample (e.g. from an angle stream)."""
        self._latest = sample

    def _on_rotation_vector(
        self,
        values: Sequence[float],
        timestamp: Optional[float] = None,
    ) -> None:
        if not self._listening:
            return
        try:
            sample = OrientationSample.from_rotation_vector(
                values,
                timestamp if timestamp is not None else time.time(),
            )
        except ValueError as e:
            logger.warning(f"Discarding malformed rotation vector: {e}")
            return
        # stop() may have run during conversion.
        with self._state_lock:
            if not self._listening:
                return
            self._latest = sample
