"""Path geometry data structures.

All coordinates live in the normalized play-area space: ``0..100`` on each
axis, as a percentage of the play-area width/height.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class PathPoint:
    """A single 2-D point in play-area percent coordinates."""

    x: float
    y: float

    def distance_to(self, other: PathPoint) -> float:
        """Euclidean distance to *other*."""
        return math.hypot(self.x - other.x, self.y - other.y)


# ---------------------------------------------------------------------------
# Path specifications
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Line:
    """A straight line from *start* to *end*."""

    start: PathPoint
    end: PathPoint


@dataclass(frozen=True)
class Polyline:
    """An open multi-segment line through *points* in order."""

    points: tuple[PathPoint, ...]


@dataclass(frozen=True)
class CubicBezier:
    """A cubic bezier curve ``start → end`` shaped by two control points."""

    start: PathPoint
    control1: PathPoint
    control2: PathPoint
    end: PathPoint


@dataclass(frozen=True)
class Polygon:
    """A closed outline; the edge ``vertices[-1] → vertices[0]`` is implicit."""

    vertices: tuple[PathPoint, ...]


PathSpec = Union[Line, Polyline, CubicBezier, Polygon]


# ---------------------------------------------------------------------------
# Sampled model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PathModel:
    """A sampled polyline with cumulative arc length.

    ``cumulative_length[i]`` is the arc length from ``points[0]`` to
    ``points[i]``.  For a closed model the closing edge
    ``points[-1] → points[0]`` is segment ``len(points) - 1`` and is included
    in :attr:`total_length`.

    Build instances with :func:`~tracing_coach.path.builder.build_path_model`,
    which enforces the invariants.
    """

    points: tuple[PathPoint, ...]
    cumulative_length: tuple[float, ...]
    closed: bool
    tolerance_radius: float

    @property
    def segment_count(self) -> int:
        """Number of segments, including the closing edge of a closed model."""
        n = len(self.points)
        return n if self.closed else n - 1

    def segment(self, index: int) -> tuple[PathPoint, PathPoint]:
        """Return the ``(a, b)`` endpoints of segment *index*."""
        a = self.points[index]
        b = self.points[(index + 1) % len(self.points)]
        return a, b

    def segment_length(self, index: int) -> float:
        """Length of segment *index*."""
        if index < len(self.points) - 1:
            return self.cumulative_length[index + 1] - self.cumulative_length[index]
        a, b = self.segment(index)
        return a.distance_to(b)

    @property
    def total_length(self) -> float:
        """Arc length of the whole path (full circuit when closed)."""
        total = self.cumulative_length[-1]
        if self.closed:
            total += self.points[-1].distance_to(self.points[0])
        return total

    @property
    def start_point(self) -> PathPoint:
        return self.points[0]

    @property
    def end_point(self) -> PathPoint:
        """Where the path is completed: last point, or back at the start when closed."""
        return self.points[0] if self.closed else self.points[-1]


@dataclass(frozen=True)
class Evaluation:
    """Closest-segment result of evaluating a query point against a model."""

    point: PathPoint
    """The query point that was evaluated."""

    distance: float
    """Distance from :attr:`point` to the closest point on the path."""

    segment_index: int
    """Index of the closest segment."""

    segment_param: float
    """Position of the closest point along the segment, in [0, 1]."""
