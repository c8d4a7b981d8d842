"""Point-to-path proximity: nearest segment, distance and arc-length progress."""

from __future__ import annotations

import math

from tracing_coach.path.models import Evaluation, PathModel, PathPoint

# ---------------------------------------------------------------------------
# Geometry primitives
# ---------------------------------------------------------------------------

def project_onto_segment(p: PathPoint, a: PathPoint, b: PathPoint) -> tuple[float, float]:
    """Closest point on segment ``a → b`` to *p*.

    Returns ``(distance, t)`` where ``t`` in [0, 1] is the scalar projection
    parameter.  A zero-length segment degrades to point distance with
    ``t = 0``.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    len_sq = dx * dx + dy * dy
    if len_sq == 0.0:
        return math.hypot(p.x - a.x, p.y - a.y), 0.0

    t = ((p.x - a.x) * dx + (p.y - a.y) * dy) / len_sq
    t = max(0.0, min(1.0, t))
    cx = a.x + t * dx
    cy = a.y + t * dy
    return math.hypot(p.x - cx, p.y - cy), t


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class ProximityEvaluator:
    """Evaluate query points against a :class:`PathModel`.

    Stateless; one instance can serve every round.  Each call is
    O(segment count), which is at most ~100 for sampled bezier curves.
    """

    def evaluate(self, point: PathPoint, model: PathModel) -> Evaluation:
        """Return the globally closest segment to *point*.

        On exact ties the lowest segment index wins.
        """
        best_dist = math.inf
        best_index = 0
        best_t = 0.0
        for i in range(model.segment_count):
            a, b = model.segment(i)
            dist, t = project_onto_segment(point, a, b)
            if dist < best_dist:
                best_dist = dist
                best_index = i
                best_t = t
        return Evaluation(
            point=point,
            distance=best_dist,
            segment_index=best_index,
            segment_param=best_t,
        )

    @staticmethod
    def progress_of(evaluation: Evaluation, model: PathModel) -> float:
        """Arc-length fraction of the closest point, clamped to [0, 1]."""
        i = evaluation.segment_index
        along = model.cumulative_length[i] + evaluation.segment_param * model.segment_length(i)
        return max(0.0, min(1.0, along / model.total_length))
