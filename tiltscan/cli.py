"""
Command-line interface for the tilt screening package.

Usage:
    python -m tiltscan analyze <image_path> [--pitch P --roll R] [--output json|visual]
    python -m tiltscan batch <paths...> [--workers N] [--orientation-map map.json]
    python -m tiltscan severity <degrees>
    python -m tiltscan --help
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from tiltscan.config.analysis_config import AnalysisConfig, ClassificationSettings
from tiltscan.tilt.models import LineSegment


def setup_argparse() -> argparse.ArgumentParser:
    """Set up argument parser."""
    parser = argparse.ArgumentParser(
        prog="tiltscan",
        description="Structural tilt screening from photographs",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze command
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Estimate structural tilt in a single photo",
    )
    analyze_parser.add_argument(
        "image_path",
        type=str,
        help="Path to the input image",
    )
    analyze_parser.add_argument(
        "--pitch",
        type=float,
        help="Device pitch at capture (degrees)",
    )
    analyze_parser.add_argument(
        "--roll",
        type=float,
        help="Device roll at capture (degrees)",
    )
    analyze_parser.add_argument(
        "--orientation",
        type=str,
        help="JSON file with {pitch, roll, timestamp} recorded at capture",
    )
    analyze_parser.add_argument(
        "--config",
        type=str,
        help="YAML analysis configuration",
    )
    analyze_parser.add_argument(
        "--output",
        "-o",
        choices=["json", "visual"],
        default="json",
        help="Output format (default: json)",
    )
    analyze_parser.add_argument(
        "--output-path",
        type=str,
        help="Output file path (for visual mode)",
    )

    # batch command
    batch_parser = subparsers.add_parser(
        "batch",
        help="Aggregate several photos of the same element",
    )
    batch_parser.add_argument(
        "inputs",
        nargs="+",
        help="Input image files or directories",
    )
    batch_parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=4,
        help="Number of parallel workers (default: 4)",
    )
    batch_parser.add_argument(
        "--orientation-map",
        "-m",
        type=str,
        help="JSON file mapping image names to orientation samples",
    )
    batch_parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Search directories recursively",
    )
    batch_parser.add_argument(
        "--config",
        type=str,
        help="YAML analysis configuration",
    )

    # severity command
    severity_parser = subparsers.add_parser(
        "severity",
        help="Classify a corrected vertical tilt value",
    )
    severity_parser.add_argument(
        "tilt",
        type=float,
        help="Corrected vertical tilt in degrees",
    )

    return parser


def _load_sample(args):
    """Build the capture orientation from CLI flags, if any."""
    from tiltscan.sensors.models import OrientationSample

    if args.orientation:
        with open(args.orientation, "r") as f:
            return OrientationSample.from_dict(json.load(f))
    if args.pitch is not None or args.roll is not None:
        return OrientationSample.from_angles(args.pitch or 0.0, args.roll or 0.0)
    return None


def draw_line_overlay(
    image: np.ndarray,
    segments: List[LineSegment],
    settings: Optional[ClassificationSettings] = None,
) -> np.ndarray:
    """Draw segments colored by bucket: vertical green, horizontal blue, diagonal gray."""
    from tiltscan.tilt.classification import segment_angle

    settings = settings or ClassificationSettings()
    vis = image.copy()
    if vis.ndim == 2:
        vis = cv2.cvtColor(vis, cv2.COLOR_GRAY2BGR)
    elif vis.shape[2] == 4:
        vis = cv2.cvtColor(vis, cv2.COLOR_BGRA2BGR)

    for segment in segments:
        magnitude = abs(segment_angle(segment))
        if magnitude > settings.vertical_min_angle:
            color = (0, 200, 0)
        elif magnitude < settings.horizontal_max_angle:
            color = (255, 128, 0)
        else:
            color = (160, 160, 160)
        cv2.line(
            vis,
            (int(segment.x1), int(segment.y1)),
            (int(segment.x2), int(segment.y2)),
            color,
            2,
        )

    return vis


def cmd_analyze(args) -> int:
    """Handle analyze command."""
    from tiltscan.tilt.analyzer import StructuralTiltAnalyzer
    from tiltscan.tilt.severity import describe_severity, recommended_actions, risk_points

    image_path = Path(args.image_path)
    if not image_path.exists():
        print(f"Error: Image not found: {image_path}", file=sys.stderr)
        return 1

    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None:
        print(f"Error: Could not load image: {image_path}", file=sys.stderr)
        return 1

    try:
        sample = _load_sample(args)
        config = AnalysisConfig.from_yaml(args.config) if args.config else AnalysisConfig()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    analyzer = StructuralTiltAnalyzer(config=config)
    analysis = analyzer.analyze(image, sample, source=str(image_path))
    estimate = analysis.estimate

    if args.output == "json":
        h, w = image.shape[:2]
        output = {
            "image_dimensions": {"width": w, "height": h},
            "orientation": sample.to_dict() if sample else None,
            **analysis.to_dict(),
            "risk_points": risk_points(estimate.severity),
            "description": describe_severity(estimate.severity),
            "recommended_actions": recommended_actions(estimate.severity),
        }
        print(json.dumps(output, indent=2))

    elif args.output == "visual":
        segments = analyzer.extractor.extract(image) if analysis.succeeded else []
        vis = draw_line_overlay(image, segments, config.classification)

        cv2.putText(
            vis,
            f"Tilt: {estimate.corrected_vertical:.2f} deg ({estimate.severity.name})",
            (10, 30),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.8,
            (0, 0, 255),
            2,
        )
        cv2.putText(
            vis,
            f"Confidence: {estimate.confidence:.0%}  Lines: {estimate.line_count}",
            (10, 60),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            (255, 255, 255),
            1,
        )

        output_path = args.output_path
        if output_path is None:
            output_path = str(image_path.stem) + "_tilt.png"

        cv2.imwrite(output_path, vis)
        print(f"Tilt visualization saved to: {output_path}")

    return 0 if analysis.succeeded else 1


def cmd_batch(args) -> int:
    """Handle batch command."""
    from tiltscan.processing.runner import AssessmentRunner, RunnerConfig

    config = RunnerConfig(
        input_paths=args.inputs,
        recursive=args.recursive,
        parallel_workers=args.workers,
        orientation_map=args.orientation_map,
        config_path=args.config,
    )

    try:
        runner = AssessmentRunner(config=config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report = runner.run()
    if not report.files:
        print("Error: No images found", file=sys.stderr)
        return 1

    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.batch.reliable_count > 0 else 1


def cmd_severity(args) -> int:
    """Handle severity command."""
    from tiltscan.tilt.severity import (
        classify_severity,
        describe_severity,
        recommended_actions,
        risk_points,
        severity_color,
    )

    severity = classify_severity(args.tilt)
    output = {
        "tilt": args.tilt,
        "severity": severity.name,
        "risk_points": risk_points(severity),
        "color": severity_color(severity),
        "description": describe_severity(severity),
        "recommended_actions": recommended_actions(severity),
    }
    print(json.dumps(output, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = setup_argparse()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "analyze":
        return cmd_analyze(args)

    if args.command == "batch":
        return cmd_batch(args)

    if args.command == "severity":
        return cmd_severity(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
