"""Connector geometry between level nodes.

The connector is a "circuit trace": every segment between two consecutive
levels is broken into a few sub-waypoints that wobble slightly around the
straight line, joined by sharp straight lines in the middle and smoothed with
quadratic curves where the trace leaves and enters a node. Segments between
nodes that sit very close together are drawn as a single straight line so the
trace never folds back on itself at corners.

All coordinates live in the normalized 0..100 space the level positions use.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from circuitmap.core.levels import Point

CLOSE_DISTANCE = 8.0
SUBDIVISIONS = 3
LONGITUDINAL_JITTER = 1.5
TRANSVERSE_JITTER = 2.0

# Chords used to approximate the length of a quadratic curve.
CURVE_SAMPLES = 12

MOVE = "M"
LINE = "L"
QUAD = "Q"


def _lerp(a: Point, b: Point, t: float) -> Point:
    return Point(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


def _distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


@dataclass(frozen=True)
class PathCommand:
    """One draw command. ``points`` holds the end point last; a quadratic
    curve carries its control point first."""

    op: str
    points: Tuple[Point, ...]

    @property
    def end(self) -> Point:
        return self.points[-1]

    def length_from(self, start: Point) -> float:
        if self.op == MOVE:
            return 0.0
        if self.op == LINE:
            return _distance(start, self.end)
        total = 0.0
        prev = start
        for i in range(1, CURVE_SAMPLES + 1):
            cur = _quad_point(start, self.points[0], self.end, i / CURVE_SAMPLES)
            total += _distance(prev, cur)
            prev = cur
        return total

    def split(self, start: Point, u: float) -> "PathCommand":
        """Leading part of this command up to local drawing parameter ``u``."""
        if self.op == LINE:
            return PathCommand(LINE, (_lerp(start, self.end, u),))
        if self.op == QUAD:
            q0 = _lerp(start, self.points[0], u)
            q1 = _lerp(self.points[0], self.end, u)
            return PathCommand(QUAD, (q0, _lerp(q0, q1, u)))
        return self

    def to_svg(self) -> str:
        coords = ", ".join(f"{_fmt(p.x)} {_fmt(p.y)}" for p in self.points)
        return f"{self.op} {coords}"


def _quad_point(start: Point, control: Point, end: Point, t: float) -> Point:
    mt = 1.0 - t
    return Point(
        mt * mt * start.x + 2 * mt * t * control.x + t * t * end.x,
        mt * mt * start.y + 2 * mt * t * control.y + t * t * end.y,
    )


@dataclass(frozen=True)
class PathSegment:
    start: Point
    end: Point
    waypoints: Tuple[Point, ...]
    commands: Tuple[PathCommand, ...]

    @property
    def is_straight(self) -> bool:
        return not self.waypoints


@dataclass(frozen=True)
class PathDescriptor:
    """A drawable connector plus its length parameterization.

    ``lengths[i]`` is the approximate path length at the end of
    ``commands[i]``; it never decreases, so a reveal fraction maps to exactly
    one prefix of the path.
    """

    segments: Tuple[PathSegment, ...] = ()
    commands: Tuple[PathCommand, ...] = ()
    lengths: Tuple[float, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.commands

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    @property
    def total_length(self) -> float:
        return self.lengths[-1] if self.lengths else 0.0

    def to_svg(self) -> str:
        return " ".join(cmd.to_svg() for cmd in self.commands)

    def reveal(self, fraction: float) -> List[PathCommand]:
        """Commands drawing the first ``fraction`` of the connector.

        The command straddling the cut is split at a parameter that is linear
        in its own drawing parameter rather than in true arc length, matching
        how drawing back-ends truncate a stroke by length fraction.
        """
        if not self.commands:
            return []
        fraction = max(0.0, min(1.0, float(fraction)))
        target = fraction * self.total_length

        revealed = [self.commands[0]]
        start = self.commands[0].end
        start_len = 0.0
        for cmd, end_len in zip(self.commands[1:], self.lengths[1:]):
            if end_len <= target:
                revealed.append(cmd)
                start = cmd.end
                start_len = end_len
                continue
            span = end_len - start_len
            if span > 0 and target > start_len:
                revealed.append(cmd.split(start, (target - start_len) / span))
            break
        return revealed

    def point_at(self, fraction: float) -> Optional[Point]:
        revealed = self.reveal(fraction)
        return revealed[-1].end if revealed else None


def _build_segment(prev: Point, cur: Point) -> PathSegment:
    dx = cur.x - prev.x
    dy = cur.y - prev.y
    d = math.hypot(dx, dy)
    if d < CLOSE_DISTANCE:
        return PathSegment(prev, cur, (), (PathCommand(LINE, (cur,)),))

    # unit vectors along and across the segment
    ux, uy = dx / d, dy / d
    nx, ny = -uy, ux

    waypoints = []
    for j in range(1, SUBDIVISIONS + 1):
        t = j / SUBDIVISIONS
        along = math.cos(3 * math.pi * t) * LONGITUDINAL_JITTER
        across = math.sin(2 * math.pi * t) * TRANSVERSE_JITTER
        waypoints.append(
            Point(
                prev.x + dx * t + ux * along + nx * across,
                prev.y + dy * t + uy * along + ny * across,
            )
        )

    first, last = waypoints[0], waypoints[-1]
    commands = [PathCommand(QUAD, (_lerp(prev, first, 0.5), first))]
    commands.extend(PathCommand(LINE, (wp,)) for wp in waypoints[1:-1])
    commands.append(PathCommand(QUAD, (_lerp(last, cur, 0.5), cur)))
    return PathSegment(prev, cur, tuple(waypoints), tuple(commands))


def build_path(points: Sequence[Point]) -> PathDescriptor:
    """Build the connector through ``points`` in order.

    Fewer than two points yield an empty descriptor, which renders as nothing.
    """
    if len(points) < 2:
        return PathDescriptor()

    commands: List[PathCommand] = [PathCommand(MOVE, (points[0],))]
    segments: List[PathSegment] = []
    for prev, cur in zip(points, points[1:]):
        segment = _build_segment(prev, cur)
        segments.append(segment)
        commands.extend(segment.commands)

    lengths: List[float] = []
    total = 0.0
    position = points[0]
    for cmd in commands:
        total += cmd.length_from(position)
        lengths.append(total)
        position = cmd.end

    return PathDescriptor(segments=tuple(segments), commands=tuple(commands), lengths=tuple(lengths))
