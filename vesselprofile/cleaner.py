"""
Profile cleanup stages.

Each stage takes a list of points and returns a new list; none of them
modifies its input. ``clean_profile`` chains them in the order used for
imported and drawn profiles alike.
"""

import logging
import math
from typing import List, Optional, Sequence

from .config import ProfileLimits
from .geometry import Point2

# Set up logging
logger = logging.getLogger(__name__)

DEDUPE_EPSILON = 0.01
FALLBACK_EPSILON = 0.0001
COLLINEAR_TOLERANCE = 0.05


def dedupe_by_distance(points: Sequence, epsilon: float = DEDUPE_EPSILON) -> List[Point2]:
    """Drop points within ``epsilon`` of the previously kept point."""
    out: List[Point2] = []
    for p in points:
        if not out or math.hypot(p[0] - out[-1][0], p[1] - out[-1][1]) > epsilon:
            out.append(Point2(p[0], p[1]))
    return out


def collinear_simplify(points: Sequence, tolerance: float = COLLINEAR_TOLERANCE) -> List[Point2]:
    """Drop middle points that are nearly collinear with their neighbours.

    A point is kept when twice the area of the triangle formed with the last
    kept point and the next input point exceeds ``tolerance``. The endpoints
    are always kept.
    """
    points = [Point2(p[0], p[1]) for p in points]
    if len(points) < 3:
        return points

    out = [points[0]]
    for i in range(1, len(points) - 1):
        a, b, c = out[-1], points[i], points[i + 1]
        area2 = abs((b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x))
        if area2 > tolerance:
            out.append(b)
    out.append(points[-1])
    return out


def decimate_even(points: Sequence, target: int) -> List[Point2]:
    """Keep ``target`` points (never fewer than 3) at evenly spaced indices."""
    target = max(3, target)
    points = [Point2(p[0], p[1]) for p in points]
    if len(points) <= target:
        return points

    last = len(points) - 1
    return [points[int(round(i / (target - 1) * last))] for i in range(target)]


def pad_midpoint(points: Sequence) -> List[Point2]:
    """Turn a two-point profile into three by inserting the exact midpoint."""
    points = [Point2(p[0], p[1]) for p in points]
    if len(points) != 2:
        return points
    a, b = points
    return [a, Point2((a.x + b.x) / 2, (a.y + b.y) / 2), b]


def resample_uniform_by_y(points: Sequence, target: int) -> List[Point2]:
    """Resample to ``target`` points evenly spaced in height.

    The points are sorted by height and the radius is interpolated linearly
    between the bracketing pair. Where the pair shares a height the larger
    radius wins, which keeps flared rims and other horizontal steps.

    Args:
        points: Profile points
        target: Number of output points

    Returns:
        Resampled points, bottom to top, with radius clamped to >= 0
    """
    if len(points) < 2 or target < 2:
        return [Point2(p[0], p[1]) for p in points]

    ordered = sorted((Point2(p[0], p[1]) for p in points), key=lambda p: p.y)
    min_y = ordered[0].y
    max_y = ordered[-1].y
    if not (math.isfinite(min_y) and math.isfinite(max_y)) or abs(max_y - min_y) < 1e-9:
        return ordered

    out: List[Point2] = []
    j = 0
    for i in range(target):
        y = min_y + (i / (target - 1)) * (max_y - min_y)

        while j < len(ordered) - 2 and y > ordered[j + 1].y:
            j += 1

        a = ordered[j]
        b = ordered[j + 1]
        dy = b.y - a.y
        if abs(dy) < 1e-12:
            x = max(a.x, b.x)
        else:
            x = a.x + (y - a.y) / dy * (b.x - a.x)
        out.append(Point2(max(0.0, x), y))

    return out


def clean_profile(
    points: Sequence,
    limits: Optional[ProfileLimits] = None,
    epsilon: float = DEDUPE_EPSILON,
    fallback_epsilon: float = FALLBACK_EPSILON,
    tolerance: float = COLLINEAR_TOLERANCE,
) -> List[Point2]:
    """Run the cleanup stages on a raw vertex list.

    1. Dedupe by distance, then drop near-collinear points.
    2. If that leaves fewer than 3 points, dedupe the raw input again with
       ``fallback_epsilon`` and skip the collinear step.
    3. Decimate to ``limits.target_points`` when above ``limits.point_cap``.
    4. Pad a 2-point result with its midpoint.

    Args:
        points: Raw vertices
        limits: Point caps (default preset if omitted)
        epsilon: Dedupe distance
        fallback_epsilon: Dedupe distance for the relaxed retry
        tolerance: Collinear area tolerance

    Returns:
        Cleaned points; fewer than 3 only when the input had fewer than 2
    """
    limits = limits or ProfileLimits()
    raw = [Point2(p[0], p[1]) for p in points]
    logger.debug(f"Cleaning {len(raw)} points")

    cleaned = collinear_simplify(dedupe_by_distance(raw, epsilon), tolerance)
    logger.debug(f"After dedupe and simplify: {len(cleaned)}")

    if len(cleaned) < 3:
        logger.debug("Simplify left fewer than 3 points; retrying with relaxed tolerance")
        cleaned = dedupe_by_distance(raw, fallback_epsilon)

    if len(cleaned) > limits.point_cap:
        logger.debug(f"Decimating {len(cleaned)} -> {limits.target_points}")
        cleaned = decimate_even(cleaned, limits.target_points)

    if len(cleaned) == 2:
        logger.debug("Padding midpoint to reach 3 points")
        cleaned = pad_midpoint(cleaned)

    logger.debug(f"Final count: {len(cleaned)}")
    return cleaned
