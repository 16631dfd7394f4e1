"""Command-line interface for VesselProfile."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from lxml import etree

from . import __version__
from .config import Config, load_config
from .errors import InsufficientPointsError, NotAProjectFileError
from .pipeline import (
    DEFAULT_PROFILE,
    profile_from_json,
    profile_from_path_data,
    profile_from_points,
    profile_from_svg,
    profile_to_json,
)

logger = logging.getLogger("vesselprofile")


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Turn an SVG outline or path data into a lathe-ready vessel profile."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input", "-i", type=Path, help="Input SVG file (or a saved profile .json)"
    )
    source.add_argument(
        "--path-data", "-d", help="SVG path data string, e.g. 'M0,0 L50,0 L50,100'"
    )
    parser.add_argument(
        "--output", "-o", type=Path, help="Output JSON file path (default: stdout)"
    )
    parser.add_argument(
        "--config", "-c", type=Path, help="Configuration YAML file path"
    )
    parser.add_argument(
        "--preset",
        choices=["default", "safe", "editor"],
        help="Sampling/point-cap preset (default: from config)",
    )
    parser.add_argument(
        "--resample", type=int, help="Resample to N points evenly spaced in height"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    return parser.parse_args(args)


def _clean_options(config: Config) -> dict:
    return {
        "epsilon": config.get("profile.dedupe_epsilon", 0.01),
        "fallback_epsilon": config.get("profile.fallback_epsilon", 0.0001),
        "tolerance": config.get("profile.collinear_tolerance", 0.05),
    }


def _write_output(text: str, output_file: Optional[Path]) -> None:
    if output_file is None:
        print(text)
        return
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(text + "\n")
    logger.info(f"Wrote profile to {output_file}")


def convert_svg_to_profile(
    svg_file: Path,
    output_file: Optional[Path],
    config: Config,
    preset: Optional[str] = None,
    resample: Optional[int] = None,
) -> bool:
    """Convert an SVG file into a profile JSON file.

    Falls back to the default profile when the SVG yields too few points.

    Args:
        svg_file: Input SVG file
        output_file: Output JSON file (stdout when None)
        config: Loaded configuration
        preset: Limits preset name (config default when None)
        resample: Uniform height resample target (config default when None)

    Returns:
        True if a profile was extracted from the SVG, False if the fallback was used
    """
    limits = config.get_limits(preset)
    if resample is None:
        resample = config.get("profile.resample_target")

    try:
        result = profile_from_svg(
            svg_file, limits, resample,
            apply_transforms=config.get("svg.apply_transforms", True),
            **_clean_options(config),
        )
    except InsufficientPointsError as e:
        logger.warning(f"{svg_file}: {e}; using the default profile")
        _write_output(profile_to_json(DEFAULT_PROFILE, source="default", truncated=False), output_file)
        return False

    if result.truncated:
        logger.warning("The SVG was too complex to parse completely; the profile may be incomplete")

    _write_output(
        profile_to_json(result.points, source=result.source, truncated=result.truncated),
        output_file,
    )
    return True


def main(argv=None):
    """Main entry point for the CLI."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Validate config file if provided
    if args.config and not args.config.exists():
        print(f"Error: Config file '{args.config}' does not exist.", file=sys.stderr)
        return 1

    config = load_config(args.config)
    if not config.validate():
        print("Error: Invalid configuration.", file=sys.stderr)
        return 1

    resample = args.resample or config.get("profile.resample_target")

    if args.path_data is not None:
        limits = config.get_limits(args.preset)
        try:
            result = profile_from_path_data(args.path_data, limits, resample, **_clean_options(config))
        except InsufficientPointsError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        _write_output(
            profile_to_json(result.points, source=result.source, truncated=result.truncated),
            args.output,
        )
        return 0

    # Validate input file
    if not args.input.exists():
        print(f"Error: Input file '{args.input}' does not exist.", file=sys.stderr)
        return 1

    if args.input.suffix.lower() == ".json":
        try:
            points = profile_from_json(args.input.read_text())
            profile = profile_from_points(
                points, config.get_limits(args.preset), resample, **_clean_options(config)
            )
        except (NotAProjectFileError, InsufficientPointsError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        _write_output(profile_to_json(profile, source=str(args.input), truncated=False), args.output)
        return 0

    try:
        convert_svg_to_profile(args.input, args.output, config, args.preset, resample)
    except (etree.XMLSyntaxError, OSError) as e:
        print(f"Error: Could not read SVG '{args.input}': {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
