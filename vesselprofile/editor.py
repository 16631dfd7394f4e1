"""
Interactive curve editor model.

The editor keeps an ordered list of anchors. Segment ``i -> i+1`` is a cubic
Bézier using ``anchors[i].c2`` and ``anchors[i+1].c1`` as control points when
either handle is present (a missing handle sits on its own anchor), and a
straight line otherwise. Pointer gestures arrive as screen coordinates and are
mapped through the current view box. Every mutating operation pushes a snapshot
of the anchor list first, so one gesture is one undo step.

The model's only output is path data (``to_path_data``), which goes through
the same interpreter, cleaner and normalizer as imported SVG.
"""

import copy
import logging
import math
from collections import deque
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from . import curves
from .geometry import Anchor, Point2, ViewBox, distance, lerp
from .path_processor import PathProcessor

# Set up logging
logger = logging.getLogger(__name__)

# Pointer buttons
PRIMARY = 0
MIDDLE = 1
SECONDARY = 2

MIN_VIEW_WIDTH = 40.0
MAX_VIEW_WIDTH = 10000.0
WHEEL_ZOOM_RATE = 0.001


class GestureState(Enum):
    """What the current pointer gesture is doing."""

    IDLE = "idle"
    PLACING = "placing"
    DRAGGING_ANCHOR = "dragging_anchor"
    DRAGGING_HANDLE = "dragging_handle"
    PANNING = "panning"


class SegmentHit(NamedTuple):
    """Nearest point on the anchor chain."""

    index: int  # segment index -> index + 1
    t: float
    point: Point2
    distance: float


def segment_controls(a: Anchor, b: Anchor) -> Optional[Tuple[Point2, Point2, Point2, Point2]]:
    """Cubic control polygon for segment a -> b, or None for a straight segment."""
    if a.c2 is None and b.c1 is None:
        return None
    return (a.point, a.c2 or a.point, b.c1 or b.point, b.point)


def compute_mirrored_join(
    prev: Optional[Anchor], curr: Anchor, delta: Tuple[float, float]
) -> Tuple[Optional[Anchor], Anchor]:
    """Apply a placement drag to a freshly placed anchor.

    The drag vector becomes the new anchor's incoming handle and its negation
    becomes the previous anchor's outgoing handle.

    Args:
        prev: Anchor before the new one (None for the first anchor)
        curr: The anchor being placed
        delta: Drag vector from the anchor to the pointer

    Returns:
        (new_prev, new_curr); new_prev is None when prev is None
    """
    dx, dy = delta
    new_curr = curr._replace(c1=Point2(curr.x + dx, curr.y + dy))
    new_prev = None
    if prev is not None:
        new_prev = prev._replace(c2=Point2(prev.x - dx, prev.y - dy))
    return new_prev, new_curr


def _fmt(value: float) -> str:
    return repr(float(value))


def anchors_to_path_data(anchors: List[Anchor]) -> str:
    """Serialize anchors to path data: M for the first, then C or L per segment."""
    if not anchors:
        return ""

    first = anchors[0]
    parts = [f"M{_fmt(first.x)},{_fmt(first.y)}"]
    for a, b in zip(anchors, anchors[1:]):
        controls = segment_controls(a, b)
        if controls is not None:
            _, c1, c2, end = controls
            parts.append(
                f"C{_fmt(c1.x)},{_fmt(c1.y)},{_fmt(c2.x)},{_fmt(c2.y)},{_fmt(end.x)},{_fmt(end.y)}"
            )
        else:
            parts.append(f"L{_fmt(b.x)},{_fmt(b.y)}")
    return " ".join(parts)


def _mirror_point(p: Optional[Point2]) -> Optional[Point2]:
    return None if p is None else Point2(-p.x, p.y)


class CurveEditorModel:
    """Anchor/handle model behind the profile drawing canvas."""

    def __init__(
        self,
        lock_right: bool = True,
        mirror_preview: bool = True,
        history_limit: int = 100,
        drag_threshold: float = 1.5,
        hit_tolerance: float = 10.0,
        smooth_factor: float = 0.3,
        screen_size: Tuple[float, float] = (800, 600),
        anchor_radius: float = 5.0,
        handle_radius: float = 4.0,
    ):
        """Initialize an empty editor.

        Args:
            lock_right: Clamp anchor x to >= 0 while placing and dragging
            mirror_preview: Offer a mirrored preview of the path (never committed)
            history_limit: Maximum number of undo snapshots
            drag_threshold: Distance a placement drag must travel to create handles
            hit_tolerance: Maximum distance for inserting on a segment
            smooth_factor: Handle length as a fraction of the neighbour chord
            screen_size: Canvas size in screen pixels
            anchor_radius: Hit radius of anchors
            handle_radius: Hit radius of handles
        """
        self.lock_right = lock_right
        self.mirror_preview = mirror_preview
        self.drag_threshold = drag_threshold
        self.hit_tolerance = hit_tolerance
        self.smooth_factor = smooth_factor
        self.anchor_radius = anchor_radius
        self.handle_radius = handle_radius

        self.screen_width, self.screen_height = screen_size
        self.view_box = ViewBox(0.0, 0.0, float(self.screen_width), float(self.screen_height))

        self.anchors: List[Anchor] = []
        self.selected: Optional[int] = None
        self.state = GestureState.IDLE

        self._drag_index: Optional[int] = None
        self._drag_handle: Optional[str] = None
        self._pan_origin: Optional[Tuple[float, float, float, float]] = None

        self._history = deque(maxlen=history_limit)
        self._redo: List[List[Anchor]] = []

    @classmethod
    def from_config(cls, config) -> "CurveEditorModel":
        """Build an editor from the ``editor`` section of a Config."""
        return cls(
            lock_right=config.get("editor.lock_right", True),
            mirror_preview=config.get("editor.mirror_preview", True),
            history_limit=config.get("editor.history_limit", 100),
            drag_threshold=config.get("editor.drag_threshold", 1.5),
            hit_tolerance=config.get("editor.hit_tolerance", 10.0),
            smooth_factor=config.get("editor.smooth_factor", 0.3),
            screen_size=(config.get("editor.screen_width", 800),
                         config.get("editor.screen_height", 600)),
        )

    # History

    def _push_history(self) -> None:
        self._history.append(copy.deepcopy(self.anchors))
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False when there is none."""
        if not self._history:
            return False
        self._redo.append(copy.deepcopy(self.anchors))
        self.anchors = self._history.pop()
        self._fix_selection()
        return True

    def redo(self) -> bool:
        """Re-apply the last undone snapshot. Returns False when there is none."""
        if not self._redo:
            return False
        self._history.append(copy.deepcopy(self.anchors))
        self.anchors = self._redo.pop()
        self._fix_selection()
        return True

    def _fix_selection(self) -> None:
        if self.selected is not None and self.selected >= len(self.anchors):
            self.selected = None

    # Coordinates

    def resize(self, screen_width: float, screen_height: float) -> None:
        self.screen_width = screen_width
        self.screen_height = screen_height

    def to_canvas(self, sx: float, sy: float) -> Point2:
        """Map screen coordinates to canvas coordinates (xMinYMin meet)."""
        vb = self.view_box
        scale = min(self.screen_width / vb.w, self.screen_height / vb.h)
        return Point2(vb.x + sx / scale, vb.y + sy / scale)

    def _clamp_x(self, x: float) -> float:
        return max(0.0, x) if self.lock_right else x

    # Pointer gestures

    def hit_test(self, x: float, y: float) -> Optional[Tuple[str, int]]:
        """Topmost anchor or handle under a canvas point.

        Returns:
            ("anchor" | "c1" | "c2", anchor index), or None
        """
        point = (x, y)
        for i in range(len(self.anchors) - 1, -1, -1):
            anchor = self.anchors[i]
            if distance(anchor.point, point) <= self.anchor_radius:
                return "anchor", i
            if anchor.c2 is not None and distance(anchor.c2, point) <= self.handle_radius:
                return "c2", i
            if anchor.c1 is not None and distance(anchor.c1, point) <= self.handle_radius:
                return "c1", i
        return None

    def pointer_down(self, sx: float, sy: float, button: int = PRIMARY,
                     insert: bool = False, pan: bool = False) -> GestureState:
        """Start a gesture.

        Args:
            sx, sy: Pointer position in screen coordinates
            button: Pointer button (PRIMARY, MIDDLE, SECONDARY)
            insert: Insert-on-segment modifier is held
            pan: Pan modifier (space) is held

        Returns:
            The gesture state entered
        """
        if button == MIDDLE or (pan and button == PRIMARY):
            self._pan_origin = (sx, sy, self.view_box.x, self.view_box.y)
            self.state = GestureState.PANNING
            return self.state

        if button != PRIMARY:
            return self.state

        x, y = self.to_canvas(sx, sy)

        hit = self.hit_test(x, y)
        if hit is not None:
            kind, index = hit
            self._push_history()
            self._drag_index = index
            if kind == "anchor":
                self.selected = index
                self.state = GestureState.DRAGGING_ANCHOR
            else:
                self._drag_handle = kind
                self.state = GestureState.DRAGGING_HANDLE
            return self.state

        if insert and len(self.anchors) >= 2:
            nearest = self.find_nearest_segment(x, y)
            if nearest is not None and nearest.distance < self.hit_tolerance:
                self.split_segment(nearest.index, nearest.t)
                return self.state

        self._push_history()
        self.anchors.append(Anchor(self._clamp_x(x), y))
        self.selected = len(self.anchors) - 1
        self._drag_index = self.selected
        self.state = GestureState.PLACING
        return self.state

    def pointer_move(self, sx: float, sy: float) -> None:
        """Continue the current gesture from the stored state."""
        if self.state == GestureState.PANNING:
            start_x, start_y, vb_x, vb_y = self._pan_origin
            vb = self.view_box
            dx = (sx - start_x) * (vb.w / (self.screen_width or 1))
            dy = (sy - start_y) * (vb.h / (self.screen_height or 1))
            self.view_box = vb._replace(x=vb_x - dx, y=vb_y - dy)
            return

        if self.state == GestureState.IDLE or self._drag_index is None:
            return

        x, y = self.to_canvas(sx, sy)
        i = self._drag_index
        curr = self.anchors[i]

        if self.state == GestureState.PLACING:
            delta = (x - curr.x, y - curr.y)
            if math.hypot(*delta) > self.drag_threshold:
                prev = self.anchors[i - 1] if i > 0 else None
                new_prev, new_curr = compute_mirrored_join(prev, curr, delta)
                if new_prev is not None:
                    self.anchors[i - 1] = new_prev
                self.anchors[i] = new_curr
        elif self.state == GestureState.DRAGGING_ANCHOR:
            self.anchors[i] = curr._replace(x=self._clamp_x(x), y=y)
        elif self.state == GestureState.DRAGGING_HANDLE:
            self.anchors[i] = curr._replace(**{self._drag_handle: Point2(x, y)})

    def pointer_up(self) -> None:
        """End the current gesture."""
        self.state = GestureState.IDLE
        self._drag_index = None
        self._drag_handle = None
        self._pan_origin = None

    def wheel(self, delta_y: float, sx: float, sy: float) -> None:
        """Zoom around the pointer; the view width stays within 40..10000."""
        p = self.to_canvas(sx, sy)
        vb = self.view_box
        # Exponent clamped so huge deltas saturate instead of overflowing
        scale = math.exp(max(-50.0, min(50.0, -delta_y * WHEEL_ZOOM_RATE)))
        nw = max(MIN_VIEW_WIDTH, min(MAX_VIEW_WIDTH, vb.w * scale))
        nh = nw * (vb.h / vb.w)
        nx = p.x - (p.x - vb.x) * (nw / vb.w)
        ny = p.y - (p.y - vb.y) * (nh / vb.h)
        self.view_box = ViewBox(nx, ny, nw, nh)

    # Segment operations

    def find_nearest_segment(self, x: float, y: float) -> Optional[SegmentHit]:
        """Nearest point over all segments, projected exactly per segment type."""
        best: Optional[SegmentHit] = None
        point = (x, y)
        for i, (a, b) in enumerate(zip(self.anchors, self.anchors[1:])):
            controls = segment_controls(a, b)
            if controls is not None:
                t, proj, dist = curves.project_on_cubic(*controls, point)
            else:
                t, proj, dist = curves.project_on_segment(a.point, b.point, point)
            if best is None or dist < best.distance:
                best = SegmentHit(i, t, proj, dist)
        return best

    def split_segment(self, index: int, t: float) -> Anchor:
        """Split segment ``index -> index+1`` at ``t`` without changing its shape.

        Curved segments are split with De Casteljau subdivision; straight ones
        get a plain anchor at the linear interpolation.

        Returns:
            The inserted anchor
        """
        if not 0 <= index < len(self.anchors) - 1:
            raise IndexError(f"No segment {index} in a {len(self.anchors)}-anchor path")

        a, b = self.anchors[index], self.anchors[index + 1]
        self._push_history()

        controls = segment_controls(a, b)
        if controls is None:
            mid = lerp(a.point, b.point, t)
            inserted = Anchor(mid.x, mid.y)
            self.anchors.insert(index + 1, inserted)
        else:
            left, right = curves.split_cubic(*controls, t)
            inserted = Anchor(left[3].x, left[3].y, c1=left[2], c2=right[1])
            self.anchors[index] = a._replace(c2=left[1])
            self.anchors[index + 1] = b._replace(c1=right[2])
            self.anchors.insert(index + 1, inserted)

        logger.debug(f"Split segment {index} at t={t:.4f}")
        return inserted

    def insert_at(self, x: float, y: float) -> Optional[Anchor]:
        """Split the nearest segment at the canvas point if it is within tolerance."""
        nearest = self.find_nearest_segment(x, y)
        if nearest is None or nearest.distance >= self.hit_tolerance:
            return None
        return self.split_segment(nearest.index, nearest.t)

    # Selection operations

    def select(self, index: Optional[int]) -> None:
        if index is not None and not 0 <= index < len(self.anchors):
            raise IndexError(f"No anchor {index}")
        self.selected = index

    def _target(self, index: Optional[int]) -> Optional[int]:
        i = self.selected if index is None else index
        if i is None or not 0 <= i < len(self.anchors):
            return None
        return i

    def smooth(self, index: Optional[int] = None, k: Optional[float] = None) -> bool:
        """Set an interior anchor's handles along the neighbour chord.

        The handles point along the direction from the previous to the next
        anchor and are ``k`` times that chord long.
        """
        i = self._target(index)
        if i is None or i == 0 or i == len(self.anchors) - 1:
            return False

        k = self.smooth_factor if k is None else k
        prev, curr, nxt = self.anchors[i - 1], self.anchors[i], self.anchors[i + 1]
        vx = nxt.x - prev.x
        vy = nxt.y - prev.y
        length = math.hypot(vx, vy) or 1.0
        ux, uy = vx / length, vy / length
        d = k * length

        self._push_history()
        self.anchors[i] = curr._replace(
            c1=Point2(curr.x - ux * d, curr.y - uy * d),
            c2=Point2(curr.x + ux * d, curr.y + uy * d),
        )
        return True

    def convert_to_curve(self, index: Optional[int] = None) -> bool:
        """Give both segments around an anchor handles at 1/3 and 2/3 of their chord."""
        i = self._target(index)
        if i is None or len(self.anchors) < 2:
            return False

        self._push_history()
        curr = self.anchors[i]
        if i > 0:
            prev = self.anchors[i - 1]
            self.anchors[i - 1] = prev._replace(c2=lerp(prev.point, curr.point, 2 / 3))
            curr = curr._replace(c1=lerp(prev.point, curr.point, 1 / 3))
        if i < len(self.anchors) - 1:
            nxt = self.anchors[i + 1]
            curr = curr._replace(c2=lerp(curr.point, nxt.point, 1 / 3))
            self.anchors[i + 1] = nxt._replace(c1=lerp(curr.point, nxt.point, 2 / 3))
        self.anchors[i] = curr
        return True

    def convert_to_line(self, index: Optional[int] = None) -> bool:
        """Strip the handles on both segments around an anchor."""
        i = self._target(index)
        if i is None:
            return False

        self._push_history()
        if i > 0:
            self.anchors[i - 1] = self.anchors[i - 1]._replace(c2=None)
        self.anchors[i] = self.anchors[i]._replace(c1=None, c2=None)
        if i < len(self.anchors) - 1:
            self.anchors[i + 1] = self.anchors[i + 1]._replace(c1=None)
        return True

    def delete(self, index: Optional[int] = None) -> bool:
        """Remove an anchor; neighbours keep their handles."""
        i = self._target(index)
        if i is None:
            return False

        self._push_history()
        del self.anchors[i]
        self.selected = None
        return True

    def clear(self) -> None:
        if not self.anchors:
            return
        self._push_history()
        self.anchors = []
        self.selected = None

    # Serialization

    def to_path_data(self) -> str:
        """Path data for the committed anchors."""
        return anchors_to_path_data(self.anchors)

    def mirrored_path_data(self) -> str:
        """Path data mirrored about the axis, for preview only."""
        mirrored = [
            Anchor(-a.x, a.y, _mirror_point(a.c1), _mirror_point(a.c2)) for a in self.anchors
        ]
        return anchors_to_path_data(mirrored)

    def load_path_data(self, path_data: str) -> int:
        """Replace the anchors with ones built from path data.

        M, L, H, V and C commands map to anchors directly. Other drawing
        commands become straight segments to their end point, and Z is ignored.
        Handles that coincide with their anchor are dropped.

        Returns:
            Number of anchors loaded
        """
        anchors: List[Anchor] = []
        cursor = Point2(0.0, 0.0)

        def resolve(x, y, absolute):
            return Point2(x, y) if absolute else Point2(cursor.x + x, cursor.y + y)

        def handle(p: Point2, owner: Point2) -> Optional[Point2]:
            return None if p == owner else p

        for cmd in PathProcessor.parse_path(path_data):
            name = cmd.name
            if name == "Z" or not cmd.known:
                continue
            for params in cmd.chunks():
                if name in "ML":
                    end = resolve(params[0], params[1], cmd.absolute)
                    anchors.append(Anchor(end.x, end.y))
                elif name == "H":
                    end = Point2(params[0] if cmd.absolute else cursor.x + params[0], cursor.y)
                    anchors.append(Anchor(end.x, end.y))
                elif name == "V":
                    end = Point2(cursor.x, params[0] if cmd.absolute else cursor.y + params[0])
                    anchors.append(Anchor(end.x, end.y))
                elif name == "C" and anchors:
                    c1 = resolve(params[0], params[1], cmd.absolute)
                    c2 = resolve(params[2], params[3], cmd.absolute)
                    end = resolve(params[4], params[5], cmd.absolute)
                    anchors[-1] = anchors[-1]._replace(c2=handle(c1, anchors[-1].point))
                    anchors.append(Anchor(end.x, end.y, c1=handle(c2, end)))
                else:
                    logger.debug(f"Loading {cmd.command} segment as a straight line")
                    end = resolve(params[-2], params[-1], cmd.absolute)
                    anchors.append(Anchor(end.x, end.y))
                cursor = end

        self._push_history()
        self.anchors = anchors
        self.selected = None
        logger.info(f"Loaded {len(anchors)} anchors into the editor")
        return len(anchors)
