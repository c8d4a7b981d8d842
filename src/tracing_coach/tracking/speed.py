"""SpeedMonitor: smoothed drag speed for "move slowly" games."""

from __future__ import annotations

from dataclasses import replace

from tracing_coach.path.models import PathPoint
from tracing_coach.tracking.models import TrackState


class SpeedMonitor:
    """Exponentially smoothed drag speed with a too-fast flag.

    Samples closer together than *min_interval_ms* are ignored so that
    bursts of touch events do not produce speed spikes.

    Parameters
    ----------
    max_speed:
        Speed (play-area percent per second) above which the drag is too fast.
    min_interval_ms:
        Minimum time between two speed measurements.
    min_movement:
        Movement at or below this distance counts as standing still and decays
        the smoothed speed instead.
    smoothing:
        Weight of the previous smoothed speed (0.8 keeps 80 %).
    decay:
        Multiplier applied to the speed while standing still.
    """

    def __init__(
        self,
        max_speed: float,
        min_interval_ms: int = 20,
        min_movement: float = 0.1,
        smoothing: float = 0.8,
        decay: float = 0.9,
    ) -> None:
        self.max_speed = max_speed
        self.min_interval_ms = min_interval_ms
        self.min_movement = min_movement
        self.smoothing = smoothing
        self.decay = decay

    def update(self, state: TrackState, point: PathPoint, timestamp_ms: int) -> TrackState:
        """Return *state* with speed fields updated for a sample at *point*."""
        if state.speed_anchor is None or state.speed_anchor_at is None:
            return replace(state, speed_anchor=point, speed_anchor_at=timestamp_ms)

        dt = timestamp_ms - state.speed_anchor_at
        if dt < self.min_interval_ms:
            return state

        moved = point.distance_to(state.speed_anchor)
        if moved <= self.min_movement:
            return replace(
                state,
                speed=state.speed * self.decay,
                too_fast=False,
                speed_anchor=point,
                speed_anchor_at=timestamp_ms,
            )

        instant = moved / dt * 1000.0
        speed = state.speed * self.smoothing + instant * (1.0 - self.smoothing)
        return replace(
            state,
            speed=speed,
            too_fast=speed > self.max_speed,
            speed_anchor=point,
            speed_anchor_at=timestamp_ms,
        )
