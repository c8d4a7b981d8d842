"""Per-round path generators for each game family.

Every generator takes a :class:`random.Random` so a session can be replayed
from a seed.  Geometry is laid out well inside the 0..100 play area so the
start and end markers are never clipped by the screen edge.
"""

from __future__ import annotations

import math
import random
from collections.abc import Callable

from tracing_coach.path.models import (
    CubicBezier,
    Line,
    PathPoint,
    PathSpec,
    Polygon,
    Polyline,
)


def straight_line(rng: random.Random) -> Line:
    """Horizontal, vertical or diagonal line (follow-the-line)."""
    direction = rng.randrange(3)
    if direction == 0:
        y = 40 + rng.random() * 20
        return Line(PathPoint(20, y), PathPoint(80, y))
    if direction == 1:
        x = 40 + rng.random() * 20
        return Line(PathPoint(x, 25), PathPoint(x, 75))
    return Line(PathPoint(20, 30), PathPoint(80, 70))


def slow_drag_bar(rng: random.Random) -> Line:
    """Horizontal track spanning 60% of the width (drag-slowly)."""
    y = 45 + rng.random() * 10
    return Line(PathPoint(20, y), PathPoint(80, y))


def rolling_path(rng: random.Random) -> Polyline:
    """Gently arched diagonal polyline (ball-roll)."""
    start = PathPoint(20, 70)
    end = PathPoint(80, 30)
    bulge = 8 + rng.random() * 4
    points = [start]
    for i in range(1, 6):
        t = i / 6
        points.append(PathPoint(
            start.x + (end.x - start.x) * t,
            start.y + (end.y - start.y) * t + math.sin(t * math.pi) * bulge,
        ))
    points.append(end)
    return Polyline(tuple(points))


def zigzag(rng: random.Random, teeth: int = 4) -> Polyline:
    """Left-to-right zig-zag with alternating peaks (path-follow)."""
    amplitude = 12 + rng.random() * 6
    mid = 50.0
    points = [PathPoint(15, mid)]
    for i in range(1, teeth + 1):
        x = 15 + 70 * i / (teeth + 1)
        y = mid - amplitude if i % 2 else mid + amplitude
        points.append(PathPoint(x, y))
    points.append(PathPoint(85, mid))
    return Polyline(tuple(points))


def s_curve(rng: random.Random) -> CubicBezier:
    """Randomised S-shaped snake curve (snake-slide)."""
    start_y = 40 + rng.random() * 20
    return CubicBezier(
        start=PathPoint(15, start_y),
        control1=PathPoint(35, start_y - 15 - rng.random() * 10),
        control2=PathPoint(65, start_y + 15 + rng.random() * 10),
        end=PathPoint(85, start_y),
    )


def regular_polygon(
    sides: int,
    radius: float = 22.5,
    center: PathPoint = PathPoint(50, 50),
) -> Polygon:
    """Regular polygon with its first vertex at the top."""
    if sides < 3:
        raise ValueError("sides must be >= 3")
    vertices = []
    for i in range(sides):
        angle = i * 2 * math.pi / sides - math.pi / 2
        vertices.append(PathPoint(
            center.x + radius * math.cos(angle),
            center.y + radius * math.sin(angle),
        ))
    return Polygon(tuple(vertices))


def star(
    points: int = 5,
    radius: float = 22.5,
    inner_ratio: float = 0.5,
    center: PathPoint = PathPoint(50, 50),
) -> Polygon:
    """Star outline alternating outer and inner vertices, tip at the top."""
    vertices = []
    for i in range(points * 2):
        r = radius if i % 2 == 0 else radius * inner_ratio
        angle = i * math.pi / points - math.pi / 2
        vertices.append(PathPoint(center.x + r * math.cos(angle), center.y + r * math.sin(angle)))
    return Polygon(tuple(vertices))


def outline_shape(rng: random.Random) -> Polygon:
    """Pick a pentagon, square or star outline (paint-the-shape)."""
    choice = rng.choice(("pentagon", "square", "star"))
    if choice == "pentagon":
        return regular_polygon(5)
    if choice == "square":
        return regular_polygon(4)
    return star()


PATH_GENERATORS: dict[str, Callable[[random.Random], PathSpec]] = {
    "line": straight_line,
    "slow_bar": slow_drag_bar,
    "rolling": rolling_path,
    "zigzag": zigzag,
    "s_curve": s_curve,
    "outline": outline_shape,
}
"""Generator name → factory, as referenced by ``GameConfig.path_generator``."""


def make_path_factory(name: str, seed: int | None = None) -> Callable[[int], PathSpec]:
    """Return a ``round_index -> PathSpec`` factory for generator *name*.

    Raises:
        KeyError: If *name* is not in :data:`PATH_GENERATORS`.
    """
    generator = PATH_GENERATORS[name]
    rng = random.Random(seed)

    def factory(round_index: int) -> PathSpec:
        return generator(rng)

    return factory
