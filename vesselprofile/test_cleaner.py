#!/usr/bin/env python3
"""Test script for the profile cleanup stages."""

import argparse
import logging
import random
import sys

from vesselprofile.cleaner import (
    clean_profile,
    collinear_simplify,
    decimate_even,
    dedupe_by_distance,
    pad_midpoint,
    resample_uniform_by_y,
)
from vesselprofile.config import ProfileLimits
from vesselprofile.geometry import Point2

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("test_cleaner")


def test_dedupe_by_distance():
    points = [(0, 0), (0.005, 0), (1, 1), (1, 1), (1.02, 1), (2, 2)]
    out = dedupe_by_distance(points, 0.01)
    logger.info(f"Deduped: {out}")
    assert out == [(0, 0), (1, 1), (1.02, 1), (2, 2)]
    assert all(isinstance(p, Point2) for p in out)


def test_dedupe_is_idempotent():
    rng = random.Random(7)
    for _ in range(20):
        points = [(rng.uniform(0, 1), rng.uniform(0, 1)) for _ in range(60)]
        once = dedupe_by_distance(points, 0.1)
        assert dedupe_by_distance(once, 0.1) == once


def test_collinear_simplify():
    points = [(0, 0), (1, 0), (2, 0), (3, 0), (3, 5), (3, 10)]
    out = collinear_simplify(points, 0.05)
    assert out == [(0, 0), (3, 0), (3, 10)]

    # Fewer than 3 points are returned unchanged
    assert collinear_simplify([(0, 0), (1, 1)]) == [(0, 0), (1, 1)]


def test_decimate_even():
    points = [(i, i) for i in range(101)]
    out = decimate_even(points, 11)
    assert len(out) == 11
    assert out[0] == (0, 0) and out[-1] == (100, 100)
    assert out[5] == (50, 50)

    # Never below 3, and short inputs pass through
    assert len(decimate_even(points, 1)) == 3
    assert decimate_even(points[:5], 10) == points[:5]


def test_pad_midpoint():
    assert pad_midpoint([(0, 0), (10, 10)]) == [(0, 0), (5, 5), (10, 10)]
    assert pad_midpoint([(0, 0)]) == [(0, 0)]


def test_resample_uniform_by_y():
    points = [(0, 0), (10, 0), (10, 100), (0, 100)]
    out = resample_uniform_by_y(points, 5)
    logger.info(f"Resampled: {out}")
    assert [p.y for p in out] == [0, 25, 50, 75, 100]
    # Equal heights take the larger radius, in between is interpolated
    assert out[0].x == 10
    assert out[2].x == 10
    assert out[-1].x == 10

    cone = resample_uniform_by_y([(0, 0), (20, 40)], 3)
    assert cone == [(0, 0), (10, 20), (20, 40)]

    # Negative radii clamp to zero; a flat input is returned sorted
    assert resample_uniform_by_y([(-5, 0), (-5, 10)], 2)[0].x == 0
    assert resample_uniform_by_y([(3, 1), (1, 1)], 4) == [(3, 1), (1, 1)]


def test_clean_profile_pads_two_points():
    out = clean_profile([(0, 0), (10, 10)])
    assert out == [(0, 0), (5, 5), (10, 10)]


def test_clean_profile_falls_back_when_simplify_collapses():
    # A straight run simplifies to its endpoints; the relaxed retry keeps it
    points = [(0, i) for i in range(10)]
    out = clean_profile(points)
    assert len(out) == 10


def test_clean_profile_decimates_over_cap():
    limits = ProfileLimits(point_cap=50, target_points=20)
    points = [(i, i * i) for i in range(200)]
    out = clean_profile(points, limits)
    logger.info(f"Decimated to {len(out)} points")
    assert len(out) == 20


def test_clean_profile_does_not_mutate_input():
    points = [(0, 0), (0, 0), (5, 5)]
    clean_profile(points)
    assert points == [(0, 0), (0, 0), (5, 5)]


def test_clean_profile_single_point():
    assert clean_profile([(1, 1), (1, 1)]) == [(1, 1)]
    assert clean_profile([]) == []


def main():
    """Main function."""
    parser = argparse.ArgumentParser(description="Test profile cleanup")
    parser.parse_args()

    tests = [
        test_dedupe_by_distance,
        test_dedupe_is_idempotent,
        test_collinear_simplify,
        test_decimate_even,
        test_pad_midpoint,
        test_resample_uniform_by_y,
        test_clean_profile_pads_two_points,
        test_clean_profile_falls_back_when_simplify_collapses,
        test_clean_profile_decimates_over_cap,
        test_clean_profile_does_not_mutate_input,
        test_clean_profile_single_point,
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
