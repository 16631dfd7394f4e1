"""Orientation and baseline normalization for profiles."""

import logging
from typing import List, Sequence

import numpy as np

from .geometry import Point2

# Set up logging
logger = logging.getLogger(__name__)


def normalize_profile(points: Sequence) -> List[Point2]:
    """Align a profile to the revolution axis and the baseline.

    Three passes, always in this order:

    1. Shift radii so the minimum radius is 0 (profile touches the axis).
    2. If the first point is higher than the last, mirror heights about the
       maximum height (the drawing was upside down).
    3. Shift heights so the minimum height is 0.

    Normalizing an already normalized profile returns it unchanged.

    Args:
        points: Profile points

    Returns:
        New list of points; empty when fewer than 2 points are given
    """
    if len(points) < 2:
        return []

    coords = np.array([(p[0], p[1]) for p in points], dtype=float)

    # Spans near the float limit overflow to inf; the pipeline drops those points
    with np.errstate(over="ignore", invalid="ignore"):
        coords[:, 0] -= coords[:, 0].min()

        if coords[0, 1] > coords[-1, 1]:
            logger.debug("Flipping profile heights (drawn upside down)")
            coords[:, 1] = coords[:, 1].max() - coords[:, 1]

        coords[:, 1] -= coords[:, 1].min()

    return [Point2(float(x), float(y)) for x, y in coords]
