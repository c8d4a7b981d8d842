"""Drag tracking reducers: progress accumulation and speed monitoring."""

from tracing_coach.tracking.accumulator import ProgressAccumulator
from tracing_coach.tracking.models import TrackState
from tracing_coach.tracking.speed import SpeedMonitor

__all__ = ["ProgressAccumulator", "SpeedMonitor", "TrackState"]
