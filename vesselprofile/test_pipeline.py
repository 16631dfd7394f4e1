#!/usr/bin/env python3
"""Test script for the end-to-end profile pipeline."""

import argparse
import json
import logging
import math
import sys

import pytest

from vesselprofile.config import ProfileLimits
from vesselprofile.editor import CurveEditorModel
from vesselprofile.errors import InsufficientPointsError, NotAProjectFileError, ProfileError
from vesselprofile.pipeline import (
    profile_from_editor,
    profile_from_json,
    profile_from_path_data,
    profile_from_points,
    profile_from_svg,
    profile_to_json,
)

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("test_pipeline")

CUP_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 200">'
    '<path d="M0,0 L5,0"/>'
    '<path d="M40,150 L80,150 C90,100 70,60 90,20"/>'
    '</svg>'
)


def assert_profile_invariants(points):
    assert len(points) >= 3
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in points)
    assert min(p.x for p in points) == 0
    assert min(p.y for p in points) == 0
    assert points[0].y <= points[-1].y


def test_profile_from_points_drops_non_finite():
    points = [(0, 0), (float("nan"), 3), (10, 5), (float("inf"), 1), (20, 20)]
    profile = profile_from_points(points)
    logger.info(f"Profile: {profile}")
    assert profile == [(0, 0), (10, 5), (20, 20)]


def test_profile_from_points_too_few():
    with pytest.raises(InsufficientPointsError) as info:
        profile_from_points([(1, 1), (1, 1)])
    assert info.value.count == 1
    assert isinstance(info.value, ProfileError)

    with pytest.raises(InsufficientPointsError):
        profile_from_points([(float("nan"), 0), (0, float("inf"))])


def test_profile_overflowing_normalization_is_dropped():
    result = profile_from_path_data("M-1.5e308,0 L1.5e308,10 L0,20 L5,30")
    logger.info(f"Profile: {result.points}")
    assert result.points == [(0, 0), (1.5e308, 20), (1.5e308, 30)]
    assert all(math.isfinite(p.x) and math.isfinite(p.y) for p in result.points)
    assert json.loads(profile_to_json(result.points))["points"][1] == {"x": 1.5e308, "y": 20.0}

    with pytest.raises(InsufficientPointsError):
        profile_from_points([(-1.5e308, 0), (1.5e308, 10), (-1.5e308, 20)])


def test_profile_from_points_resample():
    profile = profile_from_points([(0, 0), (20, 0), (20, 40)], resample=5)
    assert [p.y for p in profile] == [0, 10, 20, 30, 40]
    assert all(p.x == 20 for p in profile)


def test_profile_from_path_data_flips_svg_coordinates():
    # Drawn in SVG screen space: base at the bottom (larger y)
    result = profile_from_path_data("M10,100 L40,100 L40,0")
    assert result.source == "path-data"
    assert not result.truncated
    assert result.points == [(0, 0), (30, 0), (30, 100)]


def test_profile_from_path_data_truncated():
    limits = ProfileLimits(point_cap=2, interpreter_cap_factor=2)
    result = profile_from_path_data("M0,0 L5,1 L10,4 L15,9 L20,16 L25,25 L30,36 L35,49", limits)
    assert result.truncated
    assert_profile_invariants(result.points)


def test_profile_from_svg_markup_and_file(tmp_path):
    result = profile_from_svg(CUP_SVG)
    logger.info(f"SVG profile source {result.source}, {len(result.points)} points")
    assert result.source == "path#1"
    assert_profile_invariants(result.points)
    assert max(p.y for p in result.points) == pytest.approx(130)

    path = tmp_path / "cup.svg"
    path.write_text(CUP_SVG)
    assert profile_from_svg(path).points == result.points
    assert profile_from_svg(str(path)).points == result.points


def test_profile_from_svg_without_shapes():
    with pytest.raises(InsufficientPointsError):
        profile_from_svg('<svg xmlns="http://www.w3.org/2000/svg"><circle r="3"/></svg>')


def test_profile_from_editor():
    model = CurveEditorModel()
    model.load_path_data("M0,0 L40,0 C60,30 60,70 40,100")
    result = profile_from_editor(model)
    assert result.source == "editor"
    assert_profile_invariants(result.points)
    assert result.points[-1] == pytest.approx((40, 100))

    # Editor sampling is denser than the default preset
    default = profile_from_path_data(model.to_path_data())
    assert len(result.points) > len(default.points)


def test_json_round_trip():
    points = profile_from_path_data("M0,0 L50,0 L50,100").points
    text = profile_to_json(points, source="path-data")
    data = json.loads(text)
    assert data["type"] == "vessel-profile"
    assert data["source"] == "path-data"
    assert profile_from_json(text) == points


def test_json_rejects_other_documents():
    for text in ("not json", "[]", '{"type": "scene"}', '{"type": "vessel-profile", "points": [{"x": 1}]}'):
        with pytest.raises(NotAProjectFileError):
            profile_from_json(text)

    with pytest.raises(ValueError):
        profile_to_json([(float("nan"), 0)])


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Test profile pipeline")
    parser.parse_args()

    tests = [
        test_profile_from_points_drops_non_finite,
        test_profile_from_points_too_few,
        test_profile_overflowing_normalization_is_dropped,
        test_profile_from_points_resample,
        test_profile_from_path_data_flips_svg_coordinates,
        test_profile_from_path_data_truncated,
        test_profile_from_svg_without_shapes,
        test_profile_from_editor,
        test_json_round_trip,
        test_json_rejects_other_documents,
    ]
    success_count = 0
    failure_count = 0

    for test in tests:
        try:
            test()
            success_count += 1
        except AssertionError as e:
            logger.error(f"{test.__name__} failed: {e}")
            failure_count += 1

    logger.info(f"Test results: {success_count} succeeded, {failure_count} failed")


if __name__ == "__main__":
    main()
