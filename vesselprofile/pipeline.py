"""
End-to-end profile acquisition.

Every profile source (raw path data, an SVG document, or the curve editor)
goes through the same chain: interpret -> clean -> normalize, with an optional
uniform-by-height resample at the end. The result is a fresh list of finite,
non-negative (radius, height) points ready to be revolved.
"""

import json
import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence, Union

from .cleaner import clean_profile, resample_uniform_by_y
from .config import ProfileLimits
from .errors import InsufficientPointsError, NotAProjectFileError
from .geometry import Point2, is_finite_point
from .normalizer import normalize_profile
from .path_processor import PathProcessor
from .svg import SVGDocument, select_profile_source

# Set up logging
logger = logging.getLogger(__name__)

# Fallback shape for callers whose import failed
DEFAULT_PROFILE = (Point2(0.0, 0.0), Point2(50.0, 0.0), Point2(100.0, 100.0))

PROFILE_FILE_TYPE = "vessel-profile"


class ProfileResult(NamedTuple):
    """A normalized profile and where it came from."""

    points: List[Point2]
    truncated: bool
    source: str


def profile_from_points(
    points: Sequence,
    limits: Optional[ProfileLimits] = None,
    resample: Optional[int] = None,
    **clean_options,
) -> List[Point2]:
    """Clean and normalize raw vertices.

    Args:
        points: Raw vertices
        limits: Point caps (default preset if omitted)
        resample: Resample to this many points evenly spaced in height (optional)
        **clean_options: epsilon / fallback_epsilon / tolerance for the cleaner

    Returns:
        Normalized profile

    Raises:
        InsufficientPointsError: fewer than 3 points survive cleaning or
            normalization
    """
    finite = [Point2(p[0], p[1]) for p in points if is_finite_point(p)]
    if len(finite) != len(points):
        logger.warning(f"Dropped {len(points) - len(finite)} non-finite points")

    cleaned = clean_profile(finite, limits, **clean_options)
    if len(cleaned) < 3:
        raise InsufficientPointsError(len(cleaned))

    profile = normalize_profile(cleaned)

    if resample is not None and resample >= 2:
        resampled = resample_uniform_by_y(profile, resample)
        logger.debug(f"Uniform height resample: {len(profile)} -> {len(resampled)}")
        profile = resampled

    finite_profile = [p for p in profile if is_finite_point(p)]
    if len(finite_profile) != len(profile):
        logger.warning(f"Dropped {len(profile) - len(finite_profile)} points that overflowed during normalization")
        if len(finite_profile) < 3:
            raise InsufficientPointsError(len(finite_profile))

    return finite_profile


def profile_from_path_data(
    path_data: str,
    limits: Optional[ProfileLimits] = None,
    resample: Optional[int] = None,
    **clean_options,
) -> ProfileResult:
    """Build a profile from SVG path data."""
    result = PathProcessor.interpret(path_data, limits)
    if result.truncated:
        logger.warning(f"Path data truncated after {len(result.points)} points")
    points = profile_from_points(result.points, limits, resample, **clean_options)
    return ProfileResult(points, result.truncated, "path-data")


def profile_from_svg(
    source: Union[str, Path, SVGDocument],
    limits: Optional[ProfileLimits] = None,
    resample: Optional[int] = None,
    apply_transforms: bool = True,
    **clean_options,
) -> ProfileResult:
    """Build a profile from an SVG file, SVG markup, or a parsed document.

    Strings starting with ``<`` are treated as markup, anything else as a path.

    Raises:
        InsufficientPointsError: no usable element, or too few points survive
    """
    if isinstance(source, SVGDocument):
        document = source
    elif isinstance(source, str) and source.lstrip().startswith("<"):
        document = SVGDocument.from_string(source)
    else:
        document = SVGDocument(source)

    selected = select_profile_source(document, limits, apply_transforms)
    if selected is None:
        raise InsufficientPointsError(0)

    points = profile_from_points(selected.points, limits, resample, **clean_options)
    logger.info(f"Profile from {selected.kind} #{selected.index}: {len(points)} points")
    return ProfileResult(points, selected.truncated, f"{selected.kind}#{selected.index}")


def profile_from_editor(
    model,
    limits: Optional[ProfileLimits] = None,
    resample: Optional[int] = None,
) -> ProfileResult:
    """Build a profile from a CurveEditorModel's path data.

    Uses the ``editor`` preset (denser curve sampling) unless limits are given.
    """
    limits = limits or ProfileLimits.preset("editor")
    result = profile_from_path_data(model.to_path_data(), limits, resample)
    return result._replace(source="editor")


def profile_to_json(points: Sequence, **extra) -> str:
    """Serialize a profile as JSON with plain finite numbers."""
    data = {
        "type": PROFILE_FILE_TYPE,
        "points": [{"x": float(p[0]), "y": float(p[1])} for p in points],
    }
    data.update(extra)
    return json.dumps(data, indent=2, allow_nan=False)


def profile_from_json(text: str) -> List[Point2]:
    """Read a profile written by ``profile_to_json``.

    Raises:
        NotAProjectFileError: the document is not a saved profile
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise NotAProjectFileError(f"Not a profile file: {e}") from e

    if not isinstance(data, dict) or data.get("type") != PROFILE_FILE_TYPE:
        raise NotAProjectFileError("Not a profile file")

    try:
        return [Point2(float(p["x"]), float(p["y"])) for p in data.get("points", [])]
    except (KeyError, TypeError, ValueError) as e:
        raise NotAProjectFileError(f"Malformed profile points: {e}") from e
