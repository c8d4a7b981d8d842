"""Round lifecycle data models: phases, events and results."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class RoundPhase(enum.Enum):
    """Phases of the round state machine."""

    IDLE = "idle"
    PRESENTING = "presenting"
    ARMED = "armed"
    TRACKING = "tracking"
    AWAITING_SIGNAL = "awaiting_signal"
    RESOLVING = "resolving"
    FEEDBACK = "feedback"
    ADVANCING = "advancing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class RoundOutcome(enum.Enum):
    SUCCESS = "success"
    MISS = "miss"
    TIMEOUT = "timeout"


class SignalKind(enum.Enum):
    """What the child must do when the signal appears."""

    GO = "go"
    """Tap while the window is open."""

    WITHHOLD = "withhold"
    """Do not tap until the window closes."""


class EventKind(enum.Enum):
    """Tags for :class:`RoundEvent`."""

    DRAG_START = "drag_start"
    POINTER_MOVE = "pointer_move"
    DRAG_END = "drag_end"
    TAP = "tap"
    ARM = "arm"
    SIGNAL = "signal"
    TIMEOUT = "timeout"
    DWELL_ELAPSED = "dwell_elapsed"
    CANCEL = "cancel"


@dataclass(frozen=True)
class RoundEvent:
    """A single input or timer event fed to the controller.

    ``x``/``y`` are set for pointer events (``DRAG_END`` may omit them).
    ``token`` identifies the attempt a timer event was scheduled for; a timer
    event whose token no longer matches the live attempt is stale.
    """

    kind: EventKind
    x: float | None = None
    y: float | None = None
    timestamp_ms: int | None = None
    token: int | None = None


@dataclass(frozen=True)
class RoundResult:
    """Outcome of one resolved attempt."""

    outcome: RoundOutcome
    progress_at_end: float
    elapsed_ms: int
    round_index: int = 0
    """Zero-based round number the attempt belonged to."""
    attempt: int = 1
    """One-based attempt number within the round (retries increment it)."""
    early: bool = False
    """True for a tap before the signal (impulsivity violation)."""

    @property
    def is_correct(self) -> bool:
        return self.outcome is RoundOutcome.SUCCESS
