#!/usr/bin/env python3
"""Integration test for VesselProfile.

This script tests the end-to-end acquisition of vessel profiles from path
data, SVG files and the curve editor, and the command-line entry point.
"""

import json
import logging
import math
import sys
from pathlib import Path

import pytest

from vesselprofile.cleaner import clean_profile
from vesselprofile.cli import convert_svg_to_profile, main as cli_main
from vesselprofile.config import load_config
from vesselprofile.editor import CurveEditorModel
from vesselprofile.geometry import lerp
from vesselprofile.pipeline import DEFAULT_PROFILE, profile_from_path_data

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

SVG_DIR = Path(__file__).parent / "svg"


def test_rectangle_path():
    result = profile_from_path_data("M0,0 L50,0 L50,100 L0,100 Z")
    points = result.points
    logger.info(f"Rectangle profile: {points}")
    assert len(points) == 5
    assert points[0] == (0, 0) and points[-1] == (0, 0)
    assert min(p.x for p in points) == 0 and max(p.x for p in points) == 50
    assert min(p.y for p in points) == 0 and max(p.y for p in points) == 100


def test_quadratic_path():
    points = profile_from_path_data("M0,0 Q50,50 0,100").points
    logger.info(f"Quadratic profile has {len(points)} points")
    assert len(points) >= 10
    assert points[0] == (0, 0)
    assert math.isclose(points[-1].x, 0, abs_tol=1e-9)
    assert math.isclose(points[-1].y, 100, abs_tol=1e-9)
    # y = 100t, so heights follow the sampling parameter
    assert all(a.y < b.y for a, b in zip(points, points[1:]))


def test_two_point_profile_is_padded():
    points = clean_profile([(0, 0), (10, 10)])
    assert points == [(0, 0), (5, 5), (10, 10)]


def test_editor_undo_redo():
    model = CurveEditorModel()
    snapshots = []
    for x, y in ((100, 100), (200, 150), (300, 250)):
        model.pointer_down(x, y)
        model.pointer_up()
        snapshots.append(list(model.anchors))
    two, three = snapshots[1], snapshots[2]

    model.undo()
    assert model.anchors == two
    model.redo()
    assert model.anchors == three


def test_editor_split_straight_segment():
    model = CurveEditorModel()
    model.pointer_down(100, 100)
    model.pointer_up()
    model.pointer_down(300, 200)
    model.pointer_up()
    a, b = model.anchors

    model.split_segment(0, 0.3)
    assert len(model.anchors) == 3
    assert model.anchors[1].point == lerp(a.point, b.point, 0.3)
    assert model.anchors[0] == a and model.anchors[2] == b


def test_cli_path_data(tmp_path):
    output = tmp_path / "rect.json"
    assert cli_main(["-d", "M0,0 L50,0 L50,100 L0,100 Z", "-o", str(output)]) == 0
    data = json.loads(output.read_text())
    assert data["source"] == "path-data"
    assert len(data["points"]) == 5

    # Re-reading the saved profile through the CLI keeps it intact
    again = tmp_path / "again.json"
    assert cli_main(["-i", str(output), "-o", str(again)]) == 0
    assert json.loads(again.read_text())["points"] == data["points"]


def test_cli_saved_profile_uses_configured_resample(tmp_path):
    saved = tmp_path / "saved.json"
    assert cli_main(["-d", "M10,0 L30,50 L20,100", "-o", str(saved)]) == 0
    assert len(json.loads(saved.read_text())["points"]) == 3

    config_file = tmp_path / "resample.yaml"
    config_file.write_text("profile:\n  resample_target: 7\n")
    output = tmp_path / "resampled.json"
    assert cli_main(["-i", str(saved), "-c", str(config_file), "-o", str(output)]) == 0
    data = json.loads(output.read_text())
    assert [p["y"] for p in data["points"]] == pytest.approx([0, 50 / 3, 100 / 3, 50, 200 / 3, 250 / 3, 100])

    # The command line value wins over the config file
    assert cli_main(["-i", str(saved), "-c", str(config_file), "--resample", "4", "-o", str(output)]) == 0
    assert len(json.loads(output.read_text())["points"]) == 4


def test_cli_svg_files(tmp_path):
    for name, source in (("vase.svg", "path#0"), ("bowl-polyline.svg", "polyline#0")):
        output = tmp_path / f"{name}.json"
        assert cli_main(["-i", str(SVG_DIR / name), "-o", str(output), "--resample", "12"]) == 0
        data = json.loads(output.read_text())
        logger.info(f"{name}: {len(data['points'])} points from {data['source']}")
        assert data["source"] == source
        assert len(data["points"]) == 12
        assert min(p["y"] for p in data["points"]) == 0


def test_cli_errors(tmp_path):
    assert cli_main(["-i", str(tmp_path / "missing.svg")]) == 1

    broken = tmp_path / "broken.svg"
    broken.write_text("<svg><path></svg>")
    assert cli_main(["-i", str(broken)]) == 1

    not_profile = tmp_path / "scene.json"
    not_profile.write_text('{"type": "scene"}')
    assert cli_main(["-i", str(not_profile)]) == 1

    assert cli_main(["-d", "M0,0"]) == 1


def test_convert_falls_back_to_default_profile(tmp_path):
    empty = tmp_path / "empty.svg"
    empty.write_text('<svg xmlns="http://www.w3.org/2000/svg"><circle r="5"/></svg>')
    output = tmp_path / "empty.json"

    assert not convert_svg_to_profile(empty, output, load_config())
    data = json.loads(output.read_text())
    assert data["source"] == "default"
    assert [(p["x"], p["y"]) for p in data["points"]] == [tuple(p) for p in DEFAULT_PROFILE]


def main():
    """Run integration test."""
    # Load default configuration
    config = load_config()

    # List of test SVG files
    test_files = sorted(SVG_DIR.glob("*.svg"))
    output_dir = Path(__file__).parent / "profiles"
    output_dir.mkdir(exist_ok=True)

    # Process each test file
    for svg_file in test_files:
        output_file = output_dir / f"{svg_file.stem}.json"
        logger.info(f"Converting {svg_file} to {output_file}")

        if convert_svg_to_profile(svg_file, output_file, config):
            logger.info(f"Successfully converted {svg_file} to {output_file}")
        else:
            logger.error(f"Used the default profile for {svg_file}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
