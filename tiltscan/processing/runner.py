"""
Assessment runner with CLI interface.

Analyzes a set of photo files of one structural element, pairing each photo
with the device orientation recorded at capture, and aggregates them.
"""

import argparse
import csv
import json
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional, Callable

from ..config.analysis_config import AnalysisConfig
from ..sensors.models import OrientationSample
from ..tilt.aggregation import TiltAggregator
from ..tilt.analyzer import StructuralTiltAnalyzer
from ..tilt.models import BatchAnalysis, ImageAnalysis
from ..tilt.severity import risk_points

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".orientation.json"


@dataclass
class RunnerConfig:
    """
    Configuration for runner execution.

    Attributes:
        input_paths: Image paths or directories
        output_dir: Output directory for results
        recursive: Search directories recursively
        parallel_workers: Number of parallel workers
        orientation_map: JSON file mapping image names to orientation samples
        config_path: YAML analysis configuration
        output_format: Output format (json, csv)
        verbose: Enable verbose output
    """
    input_paths: List[str] = field(default_factory=list)
    output_dir: Optional[str] = None
    recursive: bool = False
    parallel_workers: int = 1
    orientation_map: Optional[str] = None
    config_path: Optional[str] = None
    output_format: str = "json"
    verbose: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "input_paths": self.input_paths,
            "output_dir": self.output_dir,
            "recursive": self.recursive,
            "parallel_workers": self.parallel_workers,
            "orientation_map": self.orientation_map,
            "config_path": self.config_path,
            "output_format": self.output_format,
            "verbose": self.verbose,
        }


@dataclass
class AssessmentReport:
    """Result of one assessment run."""
    files: List[str]
    batch: BatchAnalysis
    total_time_ms: float
    samples_found: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        aggregate = self.batch.aggregate
        return {
            "total_files": len(self.files),
            "samples_found": self.samples_found,
            "total_time_ms": self.total_time_ms,
            "risk_points": risk_points(aggregate.severity),
            **self.batch.to_dict(),
        }


def load_orientation_map(path: str) -> Dict[str, OrientationSample]:
    """
    Load a JSON mapping of image name to orientation.

    Format: {"photo1.jpg": {"pitch": 1.2, "roll": -0.4, "timestamp": ...}, ...}
    """
    with open(path, "r") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"orientation map must be a JSON object: {path}")

    return {name: OrientationSample.from_dict(entry) for name, entry in data.items()}


def load_sidecar(image_path: str) -> Optional[OrientationSample]:
    """Load `<image>.orientation.json` next to an image, if present and valid."""
    sidecar = Path(image_path).with_suffix(SIDECAR_SUFFIX)
    if not sidecar.is_file():
        return None

    try:
        with open(sidecar, "r") as f:
            return OrientationSample.from_dict(json.load(f))
    except (ValueError, TypeError) as e:
        logger.warning(f"Ignoring invalid orientation sidecar {sidecar}: {e}")
        return None


class AssessmentRunner:
    """
    Runner for analyzing a set of photos of one element.

    Example:
        >>> runner = AssessmentRunner(RunnerConfig(parallel_workers=4))
        >>> report = runner.run(["wall_north/"])
        >>> print(report.batch.aggregate.severity.name)
    """

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp"}

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        analyzer: Optional[StructuralTiltAnalyzer] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize runner.

        Args:
            config: Runner configuration
            analyzer: Optional pre-configured analyzer
            progress_callback: Callback for progress updates (current, total, filename)
        """
        self.config = config or RunnerConfig()
        self.progress_callback = progress_callback

        if analyzer is None:
            analysis_config = (
                AnalysisConfig.from_yaml(self.config.config_path)
                if self.config.config_path
                else AnalysisConfig()
            )
            analyzer = StructuralTiltAnalyzer(config=analysis_config)
        self.analyzer = analyzer

        self._orientation_map: Dict[str, OrientationSample] = {}
        if self.config.orientation_map:
            self._orientation_map = load_orientation_map(self.config.orientation_map)

    def collect_files(self, paths: List[str]) -> List[str]:
        """Collect all image files from paths."""
        files = []

        for path in paths:
            p = Path(path)

            if p.is_file():
                if p.suffix.lower() in self.SUPPORTED_EXTENSIONS:
                    files.append(str(p))
            elif p.is_dir():
                pattern = "**/*" if self.config.recursive else "*"
                for candidate in p.glob(pattern):
                    if candidate.is_file() and candidate.suffix.lower() in self.SUPPORTED_EXTENSIONS:
                        files.append(str(candidate))
            else:
                logger.warning(f"Skipping missing input: {path}")

        return sorted(set(files))

    def orientation_for(self, image_path: str) -> Optional[OrientationSample]:
        """Orientation for an image: mapping file first, then sidecar."""
        name = Path(image_path).name
        if image_path in self._orientation_map:
            return self._orientation_map[image_path]
        if name in self._orientation_map:
            return self._orientation_map[name]
        return load_sidecar(image_path)

    def run(self, paths: Optional[List[str]] = None) -> AssessmentReport:
        """
        Analyze all images under the given paths and aggregate them.

        Args:
            paths: Paths (uses config.input_paths if not provided)

        Returns:
            AssessmentReport
        """
        start_time = time.time()
        files = self.collect_files(paths or self.config.input_paths)
        samples = [self.orientation_for(f) for f in files]

        missing = sum(1 for s in samples if s is None)
        if files and missing:
            logger.warning(f"{missing}/{len(files)} images have no orientation data")

        completed = 0

        def on_complete(index: int, analysis: ImageAnalysis) -> None:
            nonlocal completed
            completed += 1
            if self.progress_callback:
                self.progress_callback(completed, len(files), files[index])

        aggregator = TiltAggregator(
            self.analyzer,
            max_workers=self.config.parallel_workers,
        )
        batch = aggregator.analyze_batch(files, samples, sources=files, on_complete=on_complete)

        return AssessmentReport(
            files=files,
            batch=batch,
            total_time_ms=(time.time() - start_time) * 1000,
            samples_found=len(files) - missing,
        )

    def save_results(
        self,
        report: AssessmentReport,
        output_path: Optional[str] = None,
    ) -> str:
        """
        Save an assessment report to file.

        Args:
            report: Report to save
            output_path: Output file path (uses config if not provided)

        Returns:
            Path to saved file
        """
        if output_path is None:
            output_dir = self.config.output_dir or "."
            timestamp = int(time.time())
            output_path = f"{output_dir}/tilt_{timestamp}.{self.config.output_format}"

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        if self.config.output_format == "csv":
            self._save_csv(report, output_path)
        else:
            with open(output_path, "w") as f:
                json.dump(report.to_dict(), f, indent=2)

        return output_path

    def _save_csv(self, report: AssessmentReport, output_path: str) -> None:
        """Save per-image rows plus an aggregate row as CSV."""
        with open(output_path, "w", newline="") as f:
            writer = csv.writer(f)

            writer.writerow([
                "file",
                "succeeded",
                "corrected_vertical",
                "corrected_horizontal",
                "confidence",
                "line_count",
                "severity",
                "warning",
            ])

            for analysis in report.batch.analyses:
                estimate = analysis.estimate
                writer.writerow([
                    analysis.source,
                    analysis.succeeded,
                    f"{estimate.corrected_vertical:.3f}",
                    f"{estimate.corrected_horizontal:.3f}",
                    f"{estimate.confidence:.3f}",
                    estimate.line_count,
                    estimate.severity.name,
                    estimate.warning or "",
                ])

            aggregate = report.batch.aggregate
            writer.writerow([
                "AGGREGATE",
                True,
                f"{aggregate.corrected_vertical:.3f}",
                f"{aggregate.corrected_horizontal:.3f}",
                f"{aggregate.confidence:.3f}",
                aggregate.line_count,
                aggregate.severity.name,
                aggregate.warning or "",
            ])


def create_argument_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Structural Tilt Assessment Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s photo.jpg                         Analyze a single photo
  %(prog)s wall_north/                       Aggregate all photos in a directory
  %(prog)s -w 4 wall_north/                  Analyze with 4 workers
  %(prog)s -m tilts.json wall_north/         Orientation from a mapping file
  %(prog)s -o results/ -f csv wall_north/    Save results as CSV
        """,
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="Input image files or directories",
    )

    parser.add_argument(
        "-o", "--output",
        help="Output directory for results",
    )

    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Search directories recursively",
    )

    parser.add_argument(
        "-w", "--workers",
        type=int,
        default=1,
        help="Number of parallel workers (default: 1)",
    )

    parser.add_argument(
        "-m", "--orientation-map",
        help="JSON file mapping image names to {pitch, roll, timestamp}",
    )

    parser.add_argument(
        "-c", "--config",
        help="YAML analysis configuration",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "csv"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if not provided)

    Returns:
        Exit code (0 when at least one reliable measurement was produced)
    """
    parser = create_argument_parser()
    parsed = parser.parse_args(args)

    log_level = logging.DEBUG if parsed.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    config = RunnerConfig(
        input_paths=parsed.inputs,
        output_dir=parsed.output,
        recursive=parsed.recursive,
        parallel_workers=parsed.workers,
        orientation_map=parsed.orientation_map,
        config_path=parsed.config,
        output_format=parsed.format,
        verbose=parsed.verbose,
    )

    def progress(current: int, total: int, filename: str):
        print(f"[{current}/{total}] Analyzed: {filename}")

    try:
        runner = AssessmentRunner(
            config=config,
            progress_callback=progress if parsed.verbose else None,
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Analyzing {len(parsed.inputs)} input(s)...")
    report = runner.run()
    aggregate = report.batch.aggregate

    print(f"\nResults:")
    print(f"  Images: {len(report.files)}")
    print(f"  Reliable: {report.batch.reliable_count}")
    print(f"  Failed: {report.batch.failed_count}")
    print(f"  Vertical tilt: {aggregate.corrected_vertical:.2f}°")
    print(f"  Severity: {aggregate.severity.name}")
    print(f"  Confidence: {aggregate.confidence:.0%}")
    if aggregate.warning:
        print(f"  Warning: {aggregate.warning}")
    print(f"  Time: {report.total_time_ms:.1f}ms")

    if config.output_dir:
        output_path = runner.save_results(report)
        print(f"\nResults saved to: {output_path}")

    return 0 if report.batch.reliable_count > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
