"""
Multi-image aggregation.

Each photo of the same element is analyzed independently, then the
reliable estimates are folded into one confidence-weighted result.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence
import logging
import math

from ..sensors.models import OrientationSample
from .analyzer import ImageInput, StructuralTiltAnalyzer
from .models import BatchAnalysis, ImageAnalysis, TiltEstimate
from .severity import classify_severity

logger = logging.getLogger(__name__)

NO_RELIABLE_WARNING = "no reliable measurements"


def reliable_estimates(
    estimates: Sequence[TiltEstimate],
    threshold: float = 0.4,
) -> List[TiltEstimate]:
    """Estimates whose confidence is at least `threshold`."""
    return [e for e in estimates if e.confidence >= threshold]


def aggregate_estimates(
    estimates: Sequence[TiltEstimate],
    reliable_threshold: float = 0.4,
) -> TiltEstimate:
    """
    Fold per-image estimates into one confidence-weighted estimate.

    Only estimates with confidence >= reliable_threshold contribute.
    Vertical and horizontal tilt are confidence-weighted means, confidence
    is the plain mean of reliable confidences, line counts are summed.

    Args:
        estimates: Per-image estimates, in any order
        reliable_threshold: Minimum confidence to contribute

    Returns:
        Aggregate TiltEstimate, or a zero estimate with a warning when no
        estimate is reliable
    """
    reliable = reliable_estimates(estimates, reliable_threshold)
    total_weight = math.fsum(e.confidence for e in reliable)

    if not reliable:
        return TiltEstimate.zero(warning=NO_RELIABLE_WARNING)

    if len(reliable) == 1:
        # A single measurement passes through unweighted.
        vertical = reliable[0].corrected_vertical
        horizontal = reliable[0].corrected_horizontal
    elif total_weight == 0:
        # A zero threshold admits zero-confidence estimates, which carry no weight.
        return TiltEstimate.zero(warning=NO_RELIABLE_WARNING)
    else:
        vertical = math.fsum(e.corrected_vertical * e.confidence for e in reliable) / total_weight
        horizontal = (
            math.fsum(e.corrected_horizontal * e.confidence for e in reliable) / total_weight
        )

    avg_confidence = min(1.0, total_weight / len(reliable))
    total_lines = sum(e.line_count for e in reliable)

    return TiltEstimate(
        corrected_vertical=vertical,
        corrected_horizontal=horizontal,
        confidence=avg_confidence,
        line_count=total_lines,
        severity=classify_severity(vertical),
    )


class TiltAggregator:
    """
    Analyzes a batch of photos of one element and aggregates them.

    Per-image pipelines share no state, so they run on a bounded thread
    pool; OpenCV releases the GIL during the heavy steps.

    Example:
        >>> aggregator = TiltAggregator(StructuralTiltAnalyzer())
        >>> batch = aggregator.analyze_batch([img1, img2], [sample1, None])
        >>> batch.aggregate.severity
    """

    def __init__(
        self,
        analyzer: Optional[StructuralTiltAnalyzer] = None,
        max_workers: Optional[int] = None,
        reliable_threshold: Optional[float] = None,
    ):
        """
        Initialize aggregator.

        Args:
            analyzer: Per-image analyzer
            max_workers: Worker pool size (config default when None)
            reliable_threshold: Minimum confidence to contribute (config default when None)
        """
        self.analyzer = analyzer or StructuralTiltAnalyzer()
        settings = self.analyzer.config.aggregation
        self.max_workers = max_workers or settings.max_workers
        self.reliable_threshold = (
            settings.reliable_threshold if reliable_threshold is None else reliable_threshold
        )

    def analyze_all(
        self,
        images: Sequence[ImageInput],
        samples: Optional[Sequence[Optional[OrientationSample]]] = None,
        sources: Optional[Sequence[Optional[str]]] = None,
        on_complete: Optional[Callable[[int, ImageAnalysis], None]] = None,
    ) -> List[ImageAnalysis]:
        """
        Run the per-image pipeline on every image, preserving order.

        Missing samples (a shorter list or None entries) only lower the
        confidence of the affected images.

        Args:
            images: Arrays, encoded bytes or file paths
            samples: Orientation per image
            sources: Optional labels per image
            on_complete: Called as (index, analysis) when each image finishes,
                in completion order, on the calling thread
        """
        samples = list(samples or [])
        sources = list(sources or [])

        def sample_at(i: int) -> Optional[OrientationSample]:
            return samples[i] if i < len(samples) else None

        def source_at(i: int) -> Optional[str]:
            return sources[i] if i < len(sources) else None

        results: List[Optional[ImageAnalysis]] = [None] * len(images)

        if self.max_workers <= 1 or len(images) <= 1:
            for i, image in enumerate(images):
                results[i] = self.analyzer.analyze_input(image, sample_at(i), source_at(i))
                if on_complete:
                    on_complete(i, results[i])
            return results

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self.analyzer.analyze_input, image, sample_at(i), source_at(i)): i
                for i, image in enumerate(images)
            }
            for future in as_completed(futures):
                i = futures[future]
                results[i] = future.result()
                if on_complete:
                    on_complete(i, results[i])

        return results

    def aggregate(self, analyses: Sequence[ImageAnalysis]) -> BatchAnalysis:
        """Fold completed per-image analyses into a BatchAnalysis."""
        estimates = [a.estimate for a in analyses]
        aggregate = aggregate_estimates(estimates, self.reliable_threshold)
        reliable_count = len(reliable_estimates(estimates, self.reliable_threshold))

        logger.info(
            f"Multi-photo: {reliable_count}/{len(analyses)} reliable, "
            f"vertical={aggregate.corrected_vertical:.2f}°, "
            f"confidence={aggregate.confidence * 100:.0f}%, "
            f"severity={aggregate.severity.name}"
        )

        return BatchAnalysis(
            aggregate=aggregate,
            analyses=list(analyses),
            reliable_count=reliable_count,
        )

    def analyze_batch(
        self,
        images: Sequence[ImageInput],
        samples: Optional[Sequence[Optional[OrientationSample]]] = None,
        sources: Optional[Sequence[Optional[str]]] = None,
        on_complete: Optional[Callable[[int, ImageAnalysis], None]] = None,
    ) -> BatchAnalysis:
        """
        Analyze a batch of images and aggregate the reliable results.

        Args:
            images: Arrays, encoded bytes or file paths, in capture order
            samples: Orientation per image (None where unavailable)
            sources: Optional labels per image
            on_complete: Per-image completion callback, see analyze_all

        Returns:
            BatchAnalysis with aggregate and per-image outcomes
        """
        analyses = self.analyze_all(images, samples, sources, on_complete)
        failed = sum(1 for a in analyses if not a.succeeded)
        if failed:
            logger.warning(f"{failed}/{len(analyses)} images failed analysis")
        return self.aggregate(analyses)
