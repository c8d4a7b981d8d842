"""PathModel construction from line, polyline, bezier and polygon specifications.

Bezier curves are sampled at a fixed parameter step of 0.01 (101 points).
Distance and progress are always measured against the sampled polyline, so
the sampling density is part of the engine's observable behaviour.
"""

from __future__ import annotations

import math

from tracing_coach.path.models import (
    CubicBezier,
    Line,
    PathModel,
    PathPoint,
    PathSpec,
    Polygon,
    Polyline,
)

BEZIER_STEPS = 100
"""Number of parameter steps; the curve yields ``BEZIER_STEPS + 1`` points."""


class PathGeometryError(ValueError):
    """Raised when a path specification cannot produce a valid model."""


# ---------------------------------------------------------------------------
# Sampling primitives
# ---------------------------------------------------------------------------

def bezier_point(curve: CubicBezier, t: float) -> PathPoint:
    """Evaluate the cubic blend of *curve* at parameter *t*."""
    mt = 1.0 - t
    a = mt * mt * mt
    b = 3.0 * mt * mt * t
    c = 3.0 * mt * t * t
    d = t * t * t
    return PathPoint(
        x=a * curve.start.x + b * curve.control1.x + c * curve.control2.x + d * curve.end.x,
        y=a * curve.start.y + b * curve.control1.y + c * curve.control2.y + d * curve.end.y,
    )


def sample_bezier(curve: CubicBezier, steps: int = BEZIER_STEPS) -> list[PathPoint]:
    """Sample *curve* at ``t = i / steps`` for ``i = 0..steps``."""
    return [bezier_point(curve, i / steps) for i in range(steps + 1)]


def _cumulative(points: list[PathPoint]) -> list[float]:
    lengths = [0.0]
    for prev, cur in zip(points, points[1:]):
        lengths.append(lengths[-1] + prev.distance_to(cur))
    return lengths


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def build_path_model(spec: PathSpec, tolerance_radius: float) -> PathModel:
    """Build a :class:`PathModel` from *spec*.

    Args:
        spec: One of :class:`Line`, :class:`Polyline`, :class:`CubicBezier`
            or :class:`Polygon`.
        tolerance_radius: On-track band half-width, in play-area percent.

    Raises:
        PathGeometryError: If the tolerance is not positive, the spec has too
            few points, a coordinate is not finite, or the path has zero
            length.
    """
    if not (tolerance_radius > 0 and math.isfinite(tolerance_radius)):
        raise PathGeometryError(f"tolerance_radius must be > 0, got {tolerance_radius!r}")

    closed = False
    if isinstance(spec, Line):
        points = [spec.start, spec.end]
    elif isinstance(spec, Polyline):
        points = list(spec.points)
    elif isinstance(spec, CubicBezier):
        points = sample_bezier(spec)
    elif isinstance(spec, Polygon):
        points = list(spec.vertices)
        closed = True
        if len(points) < 3:
            raise PathGeometryError("A polygon needs at least 3 vertices")
    else:
        raise PathGeometryError(f"Unsupported path specification: {type(spec).__name__}")

    if len(points) < 2:
        raise PathGeometryError("A path needs at least 2 points")
    for p in points:
        if not (math.isfinite(p.x) and math.isfinite(p.y)):
            raise PathGeometryError(f"Non-finite path coordinate: {p!r}")

    lengths = _cumulative(points)
    model = PathModel(
        points=tuple(points),
        cumulative_length=tuple(lengths),
        closed=closed,
        tolerance_radius=float(tolerance_radius),
    )
    if model.total_length <= 0.0:
        raise PathGeometryError("Path has zero total length")
    return model
