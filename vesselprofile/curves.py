"""
Curve sampling and arc conversion for SVG path geometry.

Quadratic and cubic Bézier segments are evaluated in Bernstein form at an
adaptively chosen number of parameter values. Elliptical arcs are converted
from the SVG endpoint form to center form and then sampled by angle. The
editor helpers at the bottom (exact De Casteljau split, nearest-point
projection) work on the same cubic representation.
"""

import math
from typing import List, NamedTuple, Sequence, Tuple

from .geometry import Point2, distance, lerp

CHORD_EPSILON = 1e-6


def quadratic_point(p0, p1, p2, t: float) -> Point2:
    """Evaluate a quadratic Bézier at ``t``.

    B(t) = (1-t)²P₀ + 2(1-t)tP₁ + t²P₂
    """
    mt = 1 - t
    a = mt * mt
    b = 2 * mt * t
    c = t * t
    return Point2(a * p0[0] + b * p1[0] + c * p2[0],
                  a * p0[1] + b * p1[1] + c * p2[1])


def cubic_point(p0, p1, p2, p3, t: float) -> Point2:
    """Evaluate a cubic Bézier at ``t``.

    B(t) = (1-t)³P₀ + 3(1-t)²tP₁ + 3(1-t)t²P₂ + t³P₃
    """
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return Point2(a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
                  a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1])


def sample_quadratic(p0, p1, p2, samples: int) -> List[Point2]:
    """Sample a quadratic Bézier at t = 1/n, 2/n, ..., 1.

    The start point is not included; it is already the cursor.
    """
    return [quadratic_point(p0, p1, p2, i / samples) for i in range(1, samples + 1)]


def sample_cubic(p0, p1, p2, p3, samples: int) -> List[Point2]:
    """Sample a cubic Bézier at t = 1/n, 2/n, ..., 1."""
    return [cubic_point(p0, p1, p2, p3, i / samples) for i in range(1, samples + 1)]


def adaptive_samples(control_points: Sequence, min_samples: int, max_samples: int) -> int:
    """Choose a sample count from how far the control polygon strays from the chord.

    Args:
        control_points: Start point, control points and end point, in order
        min_samples: Count used for a straight segment
        max_samples: Count used once the control polygon is twice the chord

    Returns:
        Number of samples
    """
    chord = distance(control_points[0], control_points[-1])
    polygon = sum(distance(a, b) for a, b in zip(control_points, control_points[1:]))
    complexity = (polygon - chord) / (chord + CHORD_EPSILON)
    complexity = max(0.0, min(1.0, complexity))
    return int(round(min_samples + complexity * (max_samples - min_samples)))


class ArcCenter(NamedTuple):
    """Center parameterization of an elliptical arc."""

    cx: float
    cy: float
    rx: float
    ry: float
    phi: float  # radians
    start_angle: float
    sweep_angle: float


def arc_to_center(
    start, end,
    rx: float, ry: float,
    x_axis_rotation: float,
    large_arc: bool,
    sweep: bool,
) -> ArcCenter:
    """Convert an SVG endpoint arc to center form.

    Follows the conversion in the SVG implementation notes (F.6.5/F.6.6).
    Radii too small to span the endpoints are scaled up proportionally.

    Args:
        start: Arc start point (current cursor)
        end: Arc end point
        rx, ry: Ellipse radii (sign is ignored)
        x_axis_rotation: Rotation of the ellipse in degrees
        large_arc: Large-arc flag
        sweep: Sweep flag (positive-angle direction when True)

    Returns:
        ArcCenter with a signed sweep angle
    """
    phi = math.radians(x_axis_rotation)
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)
    rx, ry = abs(rx), abs(ry)

    # Step 1: move the midpoint to the origin and undo the rotation
    dx = (start[0] - end[0]) / 2
    dy = (start[1] - end[1]) / 2
    x1p = cos_phi * dx + sin_phi * dy
    y1p = -sin_phi * dx + cos_phi * dy

    # Step 2: make sure the radii are large enough
    lam = (x1p * x1p) / (rx * rx) + (y1p * y1p) / (ry * ry)
    if lam > 1:
        scale = math.sqrt(lam)
        rx *= scale
        ry *= scale

    # Step 3: center in the rotated frame
    rx2, ry2 = rx * rx, ry * ry
    x1p2, y1p2 = x1p * x1p, y1p * y1p
    sign = -1 if large_arc == sweep else 1
    num = rx2 * ry2 - rx2 * y1p2 - ry2 * x1p2
    den = rx2 * y1p2 + ry2 * x1p2 or 1e-12
    coef = sign * math.sqrt(max(0.0, num / den))
    cxp = coef * rx * y1p / ry
    cyp = -coef * ry * x1p / rx

    # Step 4: back to user space
    cx = cos_phi * cxp - sin_phi * cyp + (start[0] + end[0]) / 2
    cy = sin_phi * cxp + cos_phi * cyp + (start[1] + end[1]) / 2

    # Step 5: start and sweep angles
    ux = (x1p - cxp) / rx
    uy = (y1p - cyp) / ry
    vx = (-x1p - cxp) / rx
    vy = (-y1p - cyp) / ry

    start_angle = math.atan2(uy, ux)

    norm = math.hypot(ux, uy) * (math.hypot(vx, vy) or 1e-12)
    cos_delta = (ux * vx + uy * vy) / (norm or 1e-12)
    sweep_angle = math.acos(max(-1.0, min(1.0, cos_delta)))
    if ux * vy - uy * vx < 0:
        sweep_angle = -sweep_angle

    if not sweep and sweep_angle > 0:
        sweep_angle -= 2 * math.pi
    elif sweep and sweep_angle < 0:
        sweep_angle += 2 * math.pi

    return ArcCenter(cx, cy, rx, ry, phi, start_angle, sweep_angle)


def adaptive_arc_samples(
    rx: float, ry: float, sweep_angle: float,
    min_samples: int, max_samples: int,
    segment_length: float = 10.0,
) -> int:
    """Sample count proportional to the estimated arc length."""
    avg_radius = (abs(rx) + abs(ry)) / 2
    estimated = int(round(avg_radius * abs(sweep_angle) / segment_length))
    return min(max_samples, max(min_samples, estimated))


def arc_point(arc: ArcCenter, angle: float) -> Point2:
    cos_phi = math.cos(arc.phi)
    sin_phi = math.sin(arc.phi)
    cos_t = math.cos(angle)
    sin_t = math.sin(angle)
    return Point2(arc.cx + arc.rx * cos_phi * cos_t - arc.ry * sin_phi * sin_t,
                  arc.cy + arc.rx * sin_phi * cos_t + arc.ry * cos_phi * sin_t)


def sample_arc(arc: ArcCenter, samples: int) -> List[Point2]:
    """Sample an arc at evenly spaced angles, excluding its start point."""
    return [
        arc_point(arc, arc.start_angle + (i / samples) * arc.sweep_angle)
        for i in range(1, samples + 1)
    ]


# Editor geometry

CubicPoints = Tuple[Point2, Point2, Point2, Point2]


def split_cubic(p0, p1, p2, p3, t: float) -> Tuple[CubicPoints, CubicPoints]:
    """Split a cubic Bézier at ``t`` with De Casteljau's construction.

    The two halves trace exactly the original curve.

    Returns:
        (left, right) control polygons; left[3] == right[0] is the split point
    """
    p01 = lerp(p0, p1, t)
    p12 = lerp(p1, p2, t)
    p23 = lerp(p2, p3, t)
    p012 = lerp(p01, p12, t)
    p123 = lerp(p12, p23, t)
    mid = lerp(p012, p123, t)
    left = (Point2(p0[0], p0[1]), p01, p012, mid)
    right = (mid, p123, p23, Point2(p3[0], p3[1]))
    return left, right


def project_on_segment(a, b, point) -> Tuple[float, Point2, float]:
    """Nearest point on segment ``ab``.

    Returns:
        (t, projected point, distance)
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length2 = dx * dx + dy * dy or 1.0
    t = ((point[0] - a[0]) * dx + (point[1] - a[1]) * dy) / length2
    t = max(0.0, min(1.0, t))
    proj = Point2(a[0] + t * dx, a[1] + t * dy)
    return t, proj, distance(proj, point)


def project_on_cubic(p0, p1, p2, p3, point, steps: int = 100) -> Tuple[float, Point2, float]:
    """Nearest point on a cubic Bézier.

    A coarse lookup table picks the starting parameter, which is then refined
    by a shrinking local search.

    Returns:
        (t, projected point, distance)
    """
    best_t = 0.0
    best_d = math.inf
    for i in range(steps + 1):
        t = i / steps
        d = distance(cubic_point(p0, p1, p2, p3, t), point)
        if d < best_d:
            best_t, best_d = t, d

    step = 1.0 / steps
    while step > 1e-9:
        improved = False
        for candidate in (best_t - step, best_t + step):
            if 0.0 <= candidate <= 1.0:
                d = distance(cubic_point(p0, p1, p2, p3, candidate), point)
                if d < best_d:
                    best_t, best_d = candidate, d
                    improved = True
        if not improved:
            step /= 2

    return best_t, cubic_point(p0, p1, p2, p3, best_t), best_d
