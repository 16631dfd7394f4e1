"""
Path processing utilities for SVG path data.

This module tokenizes SVG path data and interprets the commands into a flat
vertex list. Straight commands emit their vertices directly; quadratic and
cubic Béziers and elliptical arcs are expanded by the sampling helpers in
``curves``. Malformed input never raises: unknown fragments are skipped and
the interpreter stops early, flagging the result as truncated, when a point
or time ceiling is hit.
"""

import logging
import math
import re
import time
from typing import List, NamedTuple, Optional

from . import curves
from .config import ProfileLimits
from .geometry import Point2

# Set up logging
logger = logging.getLogger(__name__)

# Command letters, or numbers that may run together ("0.5.3" -> "0.5", ".3")
TOKEN_REGEX = re.compile(r"([a-zA-Z])|([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)")

# Number of parameters consumed per repetition of each command
COMMAND_ARITY = {
    "M": 2, "L": 2, "H": 1, "V": 1,
    "Q": 4, "T": 2, "C": 6, "S": 4,
    "A": 7, "Z": 0,
}


def tokenize_path(path_data: Optional[str]) -> List[str]:
    """Split path data into command letters and numeric literals.

    Args:
        path_data (str): SVG path data string

    Returns:
        List[str]: Tokens in order; anything unrecognised is dropped
    """
    if not path_data:
        return []
    return [m.group(1) or m.group(2) for m in TOKEN_REGEX.finditer(path_data)]


class PathCommand:
    """Represents a single SVG path command."""

    def __init__(self, command: str, params: List[float]):
        """
        Initialize a path command.

        Args:
            command (str): The SVG path command letter (M, L, C, etc.)
            params (List[float]): The parameters for the command
        """
        self.command = command
        self.params = params
        self.absolute = command.isupper()

    @property
    def name(self) -> str:
        """Upper-case command letter."""
        return self.command.upper()

    @property
    def known(self) -> bool:
        return self.name in COMMAND_ARITY

    def chunks(self) -> List[List[float]]:
        """Split the parameters into complete per-repetition groups.

        An incomplete trailing group is dropped.
        """
        arity = COMMAND_ARITY.get(self.name, 0)
        if arity == 0:
            return []
        return [self.params[i:i + arity] for i in range(0, len(self.params) - arity + 1, arity)]

    def __repr__(self) -> str:
        return f"{self.command}{self.params}"


class PathResult(NamedTuple):
    """Interpreter output; ``truncated`` is set when a guard stopped the walk."""

    points: List[Point2]
    truncated: bool


class PathInterpreter:
    """State machine that walks path commands and emits vertices."""

    def __init__(self, limits: Optional[ProfileLimits] = None):
        """
        Initialize the interpreter.

        Args:
            limits (ProfileLimits): Sampling bounds and guards (default preset if omitted)
        """
        self.limits = limits or ProfileLimits()
        self.points: List[Point2] = []
        self.cursor = Point2(0.0, 0.0)
        self.subpath_start = Point2(0.0, 0.0)
        self.last_control: Optional[Point2] = None
        self._started = 0.0

    def run(self, commands: List[PathCommand]) -> PathResult:
        """
        Interpret a list of path commands.

        Args:
            commands (List[PathCommand]): Commands from ``PathProcessor.parse_path``

        Returns:
            PathResult: Emitted vertices and the truncation flag
        """
        self._started = time.perf_counter()

        for cmd in commands:
            name = cmd.name

            if not cmd.known:
                logger.debug(f"Skipping unknown path command {cmd.command!r}")
                self.last_control = None
                continue

            if name == "Z":
                self._close()
                if self._exceeded():
                    return PathResult(self.points, True)
                continue

            for index, params in enumerate(cmd.chunks()):
                if name == "M":
                    if index == 0:
                        self._move(params, cmd.absolute)
                    else:
                        # Subsequent pairs are implicit line commands
                        self._line(params, cmd.absolute)
                elif name == "L":
                    self._line(params, cmd.absolute)
                elif name == "H":
                    x = params[0] if cmd.absolute else self.cursor.x + params[0]
                    self._emit(Point2(x, self.cursor.y))
                    self.last_control = None
                elif name == "V":
                    y = params[0] if cmd.absolute else self.cursor.y + params[0]
                    self._emit(Point2(self.cursor.x, y))
                    self.last_control = None
                elif name in "QT":
                    self._quadratic(params, cmd.absolute, smooth=name == "T")
                elif name in "CS":
                    self._cubic(params, cmd.absolute, smooth=name == "S")
                elif name == "A":
                    self._arc(params, cmd.absolute)

                if self._exceeded():
                    return PathResult(self.points, True)

        return PathResult(self.points, False)

    def _exceeded(self) -> bool:
        if len(self.points) > self.limits.interpreter_point_ceiling:
            logger.warning(f"Path interpretation stopped at {len(self.points)} points")
            return True
        budget = self.limits.time_budget_ms
        if budget is not None and (time.perf_counter() - self._started) * 1000.0 > budget:
            logger.warning(f"Path interpretation exceeded {budget} ms; keeping {len(self.points)} points")
            return True
        return False

    def _emit(self, point: Point2) -> None:
        self.points.append(point)
        self.cursor = point

    def _resolve(self, x: float, y: float, absolute: bool) -> Point2:
        if absolute:
            return Point2(x, y)
        return Point2(self.cursor.x + x, self.cursor.y + y)

    def _reflected_control(self) -> Point2:
        if self.last_control is None:
            return self.cursor
        return Point2(2 * self.cursor.x - self.last_control.x,
                      2 * self.cursor.y - self.last_control.y)

    def _move(self, params: List[float], absolute: bool) -> None:
        point = self._resolve(params[0], params[1], absolute)
        self._emit(point)
        self.subpath_start = point
        self.last_control = None

    def _line(self, params: List[float], absolute: bool) -> None:
        self._emit(self._resolve(params[0], params[1], absolute))
        self.last_control = None

    def _quadratic(self, params: List[float], absolute: bool, smooth: bool) -> None:
        start = self.cursor
        if smooth:
            control = self._reflected_control()
            end = self._resolve(params[0], params[1], absolute)
        else:
            control = self._resolve(params[0], params[1], absolute)
            end = self._resolve(params[2], params[3], absolute)

        samples = curves.adaptive_samples(
            (start, control, end), self.limits.min_curve_samples, self.limits.max_curve_samples
        )
        for point in curves.sample_quadratic(start, control, end, samples):
            self._emit(point)
        self.last_control = control

    def _cubic(self, params: List[float], absolute: bool, smooth: bool) -> None:
        start = self.cursor
        if smooth:
            control1 = self._reflected_control()
            control2 = self._resolve(params[0], params[1], absolute)
            end = self._resolve(params[2], params[3], absolute)
        else:
            control1 = self._resolve(params[0], params[1], absolute)
            control2 = self._resolve(params[2], params[3], absolute)
            end = self._resolve(params[4], params[5], absolute)

        samples = curves.adaptive_samples(
            (start, control1, control2, end),
            self.limits.min_curve_samples, self.limits.max_curve_samples,
        )
        for point in curves.sample_cubic(start, control1, control2, end, samples):
            self._emit(point)
        self.last_control = control2

    def _arc(self, params: List[float], absolute: bool) -> None:
        rx, ry, rotation, large_arc, sweep, x, y = params
        end = self._resolve(x, y, absolute)
        self.last_control = None

        if end == self.cursor:
            # Coincident endpoints: the arc is omitted
            return

        finite = all(math.isfinite(v) for v in (rx, ry, rotation, end.x, end.y))
        if not finite or rx == 0 or ry == 0:
            # Degenerate arc: straight line to the endpoint
            self._emit(end)
            return

        arc = curves.arc_to_center(
            self.cursor, end, rx, ry, rotation, large_arc != 0, sweep != 0
        )
        samples = curves.adaptive_arc_samples(
            arc.rx, arc.ry, arc.sweep_angle,
            self.limits.min_curve_samples, self.limits.max_curve_samples,
            self.limits.arc_segment_length,
        )
        points = curves.sample_arc(arc, samples)
        # Last sample is exactly the declared endpoint
        points[-1] = end
        for point in points:
            self._emit(point)

    def _close(self) -> None:
        self._emit(self.subpath_start)
        self.last_control = None


class PathProcessor:
    """Processes SVG path data into vertex lists."""

    @staticmethod
    def parse_path(path_data: Optional[str]) -> List[PathCommand]:
        """
        Parse SVG path data into a list of PathCommand objects.

        Numbers that appear before the first command letter are discarded.

        Args:
            path_data (str): SVG path data string

        Returns:
            List[PathCommand]: List of parsed path commands
        """
        commands: List[PathCommand] = []
        current: Optional[PathCommand] = None

        for token in tokenize_path(path_data):
            if token.isalpha():
                current = PathCommand(token, [])
                commands.append(current)
            elif current is not None:
                try:
                    current.params.append(float(token))
                except ValueError:
                    logger.debug(f"Skipping malformed number {token!r}")

        return commands

    @staticmethod
    def interpret(path_data: Optional[str], limits: Optional[ProfileLimits] = None) -> PathResult:
        """
        Convert SVG path data to a vertex list.

        Args:
            path_data (str): SVG path data string
            limits (ProfileLimits): Sampling bounds and guards (default preset if omitted)

        Returns:
            PathResult: Vertices plus a flag telling whether a guard cut the walk short
        """
        commands = PathProcessor.parse_path(path_data)
        if not commands:
            return PathResult([], False)

        result = PathInterpreter(limits).run(commands)
        logger.debug(
            f"Interpreted {len(commands)} commands into {len(result.points)} points"
            + (" (truncated)" if result.truncated else "")
        )
        return result
