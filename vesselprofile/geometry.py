"""Basic geometry types shared by the profile pipeline and the curve editor."""

import math
from typing import List, NamedTuple, Optional


class Point2(NamedTuple):
    """A 2D point. ``x`` is the radius, ``y`` the height along the axis."""

    x: float
    y: float


Profile = List[Point2]


class Anchor(NamedTuple):
    """An editor vertex with optional incoming (c1) and outgoing (c2) handles."""

    x: float
    y: float
    c1: Optional[Point2] = None
    c2: Optional[Point2] = None

    @property
    def point(self) -> Point2:
        return Point2(self.x, self.y)


class ViewBox(NamedTuple):
    """Pan/zoom window over the editor canvas."""

    x: float
    y: float
    w: float
    h: float


def distance(a, b) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def lerp(a, b, t: float) -> Point2:
    return Point2(a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def is_finite_point(p) -> bool:
    return math.isfinite(p[0]) and math.isfinite(p[1])
