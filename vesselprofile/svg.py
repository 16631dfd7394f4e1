"""SVG parsing module for VesselProfile.

This module handles parsing SVG documents, extracting the shape elements that
can carry a vessel outline (path, polyline, polygon, line, rect), applying
their transform chains, and choosing the single element used as the profile
source.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Union

import numpy as np
from lxml import etree

from .config import ProfileLimits
from .geometry import Point2
from .path_processor import PathProcessor

# Set up logging
logger = logging.getLogger(__name__)

SHAPE_KINDS = ("path", "polyline", "polygon", "line", "rect")

# Fallback extraction order when the document has no usable path
FALLBACK_KINDS = ("polyline", "polygon", "line", "rect")

TRANSFORM_REGEX = re.compile(r"(matrix|translate|scale|rotate|skewX|skewY)\s*\(([^)]*)\)")
NUMBER_SPLIT = re.compile(r"[\s,]+")

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def _parse_numbers(text: Optional[str]) -> List[float]:
    values = []
    for part in NUMBER_SPLIT.split((text or "").strip()):
        if not part:
            continue
        try:
            values.append(float(part))
        except ValueError:
            logger.debug(f"Skipping malformed number {part!r}")
    return values


def _float_attr(element, name: str, default: float) -> float:
    value = element.get(name)
    if value is None:
        return default
    try:
        return float(re.sub(r"[a-z%]+$", "", value.strip()))
    except ValueError:
        logger.warning(f"Could not parse {name}={value!r}, using {default}")
        return default


def parse_transform(transform_str: Optional[str]) -> np.ndarray:
    """Parse an SVG transform attribute into a 3x3 matrix.

    Transform lists such as ``"translate(10,0) scale(2)"`` are composed left
    to right, as SVG applies them.

    Args:
        transform_str: SVG transform string

    Returns:
        3x3 transformation matrix as numpy array
    """
    matrix = np.identity(3)
    if not transform_str:
        return matrix

    for name, args in TRANSFORM_REGEX.findall(transform_str):
        values = _parse_numbers(args)
        step = None

        if name == "matrix" and len(values) == 6:
            step = np.array([
                [values[0], values[2], values[4]],
                [values[1], values[3], values[5]],
                [0, 0, 1]
            ])
        elif name == "translate" and values:
            tx = values[0]
            ty = values[1] if len(values) > 1 else 0
            step = np.array([[1, 0, tx], [0, 1, ty], [0, 0, 1]])
        elif name == "scale" and values:
            sx = values[0]
            sy = values[1] if len(values) > 1 else sx
            step = np.array([[sx, 0, 0], [0, sy, 0], [0, 0, 1]])
        elif name == "rotate" and values:
            angle_rad = np.radians(values[0])
            cos_a = np.cos(angle_rad)
            sin_a = np.sin(angle_rad)
            r = np.array([[cos_a, -sin_a, 0], [sin_a, cos_a, 0], [0, 0, 1]])
            if len(values) >= 3:
                # Rotation around point (cx, cy)
                cx, cy = values[1], values[2]
                t1 = np.array([[1, 0, cx], [0, 1, cy], [0, 0, 1]])
                t2 = np.array([[1, 0, -cx], [0, 1, -cy], [0, 0, 1]])
                step = t1 @ r @ t2
            else:
                step = r
        elif name == "skewX" and values:
            step = np.array([[1, np.tan(np.radians(values[0])), 0], [0, 1, 0], [0, 0, 1]])
        elif name == "skewY" and values:
            step = np.array([[1, 0, 0], [np.tan(np.radians(values[0])), 1, 0], [0, 0, 1]])

        if step is None:
            logger.warning(f"Ignoring unsupported transform: {name}({args})")
            continue
        matrix = matrix @ step

    return matrix


class SVGShape:
    """A shape element with its accumulated transform."""

    def __init__(self, element, kind: str):
        """Initialize from an SVG shape element.

        Args:
            element: lxml Element
            kind: Local tag name ("path", "polyline", ...)
        """
        self.element = element
        self.kind = kind
        self.transform_matrix = np.identity(3)

    @property
    def path_data(self) -> str:
        return self.element.get("d", "") if self.kind == "path" else ""

    def add_transform(self, transform_str: str):
        """Prepend an outer transform to the shape's transform chain.

        Args:
            transform_str: SVG transform string
        """
        self.transform_matrix = parse_transform(transform_str) @ self.transform_matrix

    def transform_points(self, points: List[Point2]) -> List[Point2]:
        """Apply the accumulated transform to a list of points."""
        if not points or np.allclose(self.transform_matrix, np.identity(3)):
            return list(points)
        coords = np.column_stack([np.asarray(points, dtype=float), np.ones(len(points))])
        transformed = coords @ self.transform_matrix.T
        return [Point2(float(x), float(y)) for x, y in transformed[:, :2]]

    def raw_points(self) -> List[Point2]:
        """Vertices of a non-path shape in its own coordinate system."""
        if self.kind in ("polyline", "polygon"):
            coords = _parse_numbers(self.element.get("points"))
            return [Point2(coords[i], coords[i + 1]) for i in range(0, len(coords) - 1, 2)]

        if self.kind == "line":
            return [
                Point2(_float_attr(self.element, "x1", 0.0), _float_attr(self.element, "y1", 0.0)),
                Point2(_float_attr(self.element, "x2", 0.0), _float_attr(self.element, "y2", 0.0)),
            ]

        if self.kind == "rect":
            x = _float_attr(self.element, "x", 0.0)
            y = _float_attr(self.element, "y", 0.0)
            width = _float_attr(self.element, "width", 100.0)
            height = _float_attr(self.element, "height", 100.0)
            return [Point2(x, y), Point2(x + width, y),
                    Point2(x + width, y + height), Point2(x, y + height)]

        return []

    def __repr__(self) -> str:
        return f"SVGShape({self.kind})"


class SVGDocument:
    """Class for handling SVG document parsing and shape extraction."""

    def __init__(self, file_path: Optional[Union[str, Path]] = None, text: Optional[str] = None):
        """Initialize SVG document from a file or from markup.

        Args:
            file_path: Path to SVG file
            text: SVG markup (used when no file path is given)
        """
        if file_path is None and text is None:
            raise ValueError("SVGDocument needs a file path or SVG text")

        self.file_path = Path(file_path) if file_path is not None else None
        self.text = text
        self.tree = None
        self.root = None
        self.width = 0.0
        self.height = 0.0
        self.viewbox = (0.0, 0.0, 0.0, 0.0)
        self.shapes: Dict[str, List[SVGShape]] = {kind: [] for kind in SHAPE_KINDS}

        self._parse()

    @classmethod
    def from_string(cls, text: str) -> "SVGDocument":
        """Parse SVG markup held in memory."""
        return cls(text=text)

    @property
    def source_name(self) -> str:
        return str(self.file_path) if self.file_path else "<string>"

    def _parse(self):
        """Parse the SVG source and extract basic document properties."""
        try:
            if self.file_path is not None:
                self.tree = etree.parse(str(self.file_path), _PARSER)
                self.root = self.tree.getroot()
            else:
                self.root = etree.fromstring(self.text.encode("utf-8"), _PARSER)
                self.tree = self.root.getroottree()

            self.width = self._parse_dimension(self.root.get("width"))
            self.height = self._parse_dimension(self.root.get("height"))

            viewbox = _parse_numbers(self.root.get("viewBox"))
            if len(viewbox) == 4:
                self.viewbox = tuple(viewbox)
            else:
                self.viewbox = (0.0, 0.0, self.width, self.height)

            self._extract_shapes()

        except (etree.XMLSyntaxError, OSError) as e:
            logger.error(f"Error parsing SVG {self.source_name}: {e}")
            raise

    def _parse_dimension(self, value: Optional[str]) -> float:
        """Parse dimension value with optional units.

        Args:
            value: Dimension string (e.g., "100px", "10mm")

        Returns:
            Parsed value as float (units are dropped)
        """
        if not value:
            return 0.0

        value = value.strip()
        for unit in ["px", "pt", "mm", "cm", "in", "%"]:
            if value.endswith(unit):
                value = value[:-len(unit)]
                break

        try:
            return float(value)
        except ValueError:
            logger.warning(f"Could not parse dimension: {value}")
            return 0.0

    def _extract_shapes(self):
        """Extract all shape elements, in document order, with their transforms."""
        for element in self.root.iter(etree.Element):
            kind = etree.QName(element).localname
            if kind not in SHAPE_KINDS:
                continue

            shape = SVGShape(element, kind)

            # Own transform first, then ancestors outward
            node = element
            while node is not None and node is not self.root:
                if node.get("transform"):
                    shape.add_transform(node.get("transform"))
                node = node.getparent()
            if self.root.get("transform"):
                shape.add_transform(self.root.get("transform"))

            self.shapes[kind].append(shape)

        counts = ", ".join(f"{len(v)} {k}" for k, v in self.shapes.items() if v)
        logger.info(f"Extracted shapes from {self.source_name}: {counts or 'none'}")

    def get_shapes(self, kind: str) -> List[SVGShape]:
        """Get all shapes of one kind, in document order."""
        return self.shapes.get(kind, [])

    @property
    def paths(self) -> List[SVGShape]:
        return self.shapes["path"]


class ProfileSource(NamedTuple):
    """The element chosen as profile source and its raw vertices."""

    kind: str
    index: int
    points: List[Point2]
    truncated: bool
    y_range: float
    x_range: float


def _ranges(points: List[Point2]):
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return max(ys) - min(ys), max(xs) - min(xs)


def select_profile_source(
    document: SVGDocument,
    limits: Optional[ProfileLimits] = None,
    apply_transforms: bool = True,
) -> Optional[ProfileSource]:
    """Choose the element that best describes a vessel outline.

    Every path is interpreted and scored by its vertical span; the largest span
    wins and ties go to the path with more points. Paths yielding fewer than two
    points are disqualified. Only when no path qualifies are the other shapes
    tried, in the order polyline, polygon, line, rect.

    Args:
        document: Parsed SVG document
        limits: Sampling bounds and guards for path interpretation
        apply_transforms: Apply element and group transforms to the vertices

    Returns:
        ProfileSource, or None when the document has nothing usable
    """
    limits = limits or ProfileLimits()
    best: Optional[ProfileSource] = None

    for index, shape in enumerate(document.get_shapes("path")):
        if not shape.path_data.strip():
            continue
        result = PathProcessor.interpret(shape.path_data, limits)
        points = result.points
        if apply_transforms:
            points = shape.transform_points(points)
        if len(points) < 2:
            continue

        y_range, x_range = _ranges(points)
        if (best is None or y_range > best.y_range
                or (y_range == best.y_range and len(points) > len(best.points))):
            best = ProfileSource("path", index, points, result.truncated, y_range, x_range)

    if best is not None:
        if best.truncated:
            logger.warning(f"Parser stopped early on path #{best.index}; points={len(best.points)}")
        logger.info(
            f"Selected path #{best.index} (yRange={best.y_range:.2f}, "
            f"xRange={best.x_range:.2f}, n={len(best.points)})"
        )
        return best

    for kind in FALLBACK_KINDS:
        shapes = document.get_shapes(kind)
        if not shapes:
            continue

        if kind == "line":
            points = []
            for shape in shapes:
                segment = shape.raw_points()
                points.extend(shape.transform_points(segment) if apply_transforms else segment)
        else:
            shape = shapes[0]
            points = shape.raw_points()
            if apply_transforms:
                points = shape.transform_points(points)

        if points:
            y_range, x_range = _ranges(points)
            logger.info(f"Using {kind} element(s) as profile source (n={len(points)})")
            return ProfileSource(kind, 0, points, False, y_range, x_range)

    logger.warning(f"No usable profile element in {document.source_name}")
    return None


def parse_svg(file_path: Union[str, Path]) -> SVGDocument:
    """Parse an SVG file and return the document object.

    Args:
        file_path: Path to SVG file

    Returns:
        SVGDocument object
    """
    return SVGDocument(file_path)
