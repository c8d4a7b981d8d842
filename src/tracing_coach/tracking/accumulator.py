"""ProgressAccumulator: on/off-track classification and monotonic progress."""

from __future__ import annotations

from dataclasses import replace

from tracing_coach.path.models import Evaluation, PathModel
from tracing_coach.path.proximity import ProximityEvaluator
from tracing_coach.tracking.models import TrackState

WRAP_LOW = 0.1
WRAP_HIGH = 0.9


class ProgressAccumulator:
    """Fold proximity evaluations into a :class:`TrackState`.

    Off-track samples freeze the tracked point and progress; on-track samples
    can only move progress forward.  For closed shapes a jump from the end of
    the circuit (> 0.9) to its beginning (< 0.1) is read as a completed lap,
    and a lap that has not started yet (< 0.1) ignores samples on the stretch
    just behind the start vertex (> 0.9).

    Parameters
    ----------
    warning_interval_ms:
        Minimum time between two off-track warnings.
    end_snap_min_progress:
        On open paths, a sample within the tolerance radius of the final
        point forces progress to 1.0 once progress has reached this value.
        ``None`` (the default) never snaps; progress is pure arc length.
    """

    def __init__(
        self,
        warning_interval_ms: int = 500,
        end_snap_min_progress: float | None = None,
    ) -> None:
        self._warning_interval_ms = warning_interval_ms
        self._end_snap_min_progress = end_snap_min_progress

    def update(
        self,
        evaluation: Evaluation,
        model: PathModel,
        state: TrackState,
        timestamp_ms: int,
    ) -> TrackState:
        """Return the state after one pointer sample."""
        if evaluation.distance > model.tolerance_radius:
            warn_at = state.last_warning_at
            if warn_at is None or timestamp_ms - warn_at >= self._warning_interval_ms:
                warn_at = timestamp_ms
            return replace(
                state,
                on_track=False,
                ever_left_track=True,
                last_warning_at=warn_at,
            )

        candidate = ProximityEvaluator.progress_of(evaluation, model)

        if model.closed:
            if candidate < WRAP_LOW and state.progress > WRAP_HIGH:
                candidate += 1.0
            elif candidate > WRAP_HIGH and state.progress < WRAP_LOW:
                candidate = 0.0
            progress = min(1.0, max(state.progress, candidate))
        else:
            progress = max(state.progress, candidate)
            if self._end_snap_min_progress is not None and progress >= self._end_snap_min_progress:
                if evaluation.point.distance_to(model.end_point) <= model.tolerance_radius:
                    progress = 1.0

        return replace(
            state,
            progress=progress,
            last_query_point=evaluation.point,
            on_track=True,
        )

    @staticmethod
    def warned(before: TrackState, after: TrackState) -> bool:
        """True if the transition *before* → *after* emitted a warning."""
        return after.last_warning_at is not None and after.last_warning_at != before.last_warning_at
