"""Path geometry: specifications, sampled models and proximity evaluation."""

from tracing_coach.path.builder import PathGeometryError, build_path_model, sample_bezier
from tracing_coach.path.models import (
    CubicBezier,
    Evaluation,
    Line,
    PathModel,
    PathPoint,
    PathSpec,
    Polygon,
    Polyline,
)
from tracing_coach.path.proximity import ProximityEvaluator, project_onto_segment
from tracing_coach.path.shapes import PATH_GENERATORS, make_path_factory

__all__ = [
    "PATH_GENERATORS",
    "CubicBezier",
    "Evaluation",
    "Line",
    "PathGeometryError",
    "PathModel",
    "PathPoint",
    "PathSpec",
    "Polygon",
    "Polyline",
    "ProximityEvaluator",
    "build_path_model",
    "make_path_factory",
    "project_onto_segment",
    "sample_bezier",
]
