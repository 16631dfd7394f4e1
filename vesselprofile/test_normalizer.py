#!/usr/bin/env python3
"""Test script for profile normalization."""

import argparse
import logging
import random
import sys

from vesselprofile.geometry import Point2
from vesselprofile.normalizer import normalize_profile

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("test_normalizer")


def test_shifts_to_axis_and_baseline():
    out = normalize_profile([(10, 5), (30, 5), (30, 25)])
    logger.info(f"Normalized: {out}")
    assert out == [(0, 0), (20, 0), (20, 20)]
    assert all(isinstance(p, Point2) and type(p.x) is float for p in out)


def test_flips_upside_down_drawing():
    # SVG y grows downward, so a drawn vessel arrives with its base last
    out = normalize_profile([(0, 100), (50, 100), (50, 0)])
    assert out == [(0, 0), (50, 0), (50, 100)]
    assert out[0].y <= out[-1].y


def test_no_flip_when_first_is_lower_or_equal():
    points = [(0, 0), (5, 50), (10, 0)]
    assert normalize_profile(points) == points


def test_idempotent():
    rng = random.Random(42)
    for _ in range(20):
        points = [(rng.uniform(-50, 50), rng.uniform(-50, 50)) for _ in range(rng.randint(2, 30))]
        once = normalize_profile(points)
        assert normalize_profile(once) == once
        assert min(p.x for p in once) == 0
        assert min(p.y for p in once) == 0
        assert once[0].y <= once[-1].y


def test_too_few_points():
    assert normalize_profile([]) == []
    assert normalize_profile([(3, 4)]) == []


def test_input_not_modified():
    points = [(5, 9), (1, 1)]
    normalize_profile(points)
    assert points == [(5, 9), (1, 1)]


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Test profile normalization")
    parser.parse_args()

    tests = [
        test_shifts_to_axis_and_baseline,
        test_flips_upside_down_drawing,
        test_no_flip_when_first_is_lower_or_equal,
        test_idempotent,
        test_too_few_points,
        test_input_not_modified,
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
