"""Per-round tracking state."""

from __future__ import annotations

from dataclasses import dataclass

from tracing_coach.path.models import PathModel, PathPoint


@dataclass(frozen=True)
class TrackState:
    """Immutable snapshot of one round's drag.

    Reducers return a new instance via :func:`dataclasses.replace`; nothing
    mutates a state in place.
    """

    progress: float
    """Arc-length fraction reached so far [0.0, 1.0]. Never decreases."""

    last_query_point: PathPoint
    """Last on-track position; the tracked object is drawn here."""

    on_track: bool = True
    """Whether the latest sample was inside the tolerance band."""

    ever_left_track: bool = False
    """One-way latch, set the first time a sample falls off the track."""

    last_warning_at: int | None = None
    """Timestamp (ms) of the last off-track warning, or None."""

    speed: float = 0.0
    """Smoothed drag speed in play-area percent per second."""

    too_fast: bool = False
    """True while :attr:`speed` exceeds the game's speed limit."""

    speed_anchor: PathPoint | None = None
    """Position of the last speed measurement."""

    speed_anchor_at: int | None = None
    """Timestamp (ms) of the last speed measurement."""

    @classmethod
    def start(cls, model: PathModel) -> TrackState:
        """Fresh state with the tracked object at the start of *model*."""
        return cls(progress=0.0, last_query_point=model.start_point)
