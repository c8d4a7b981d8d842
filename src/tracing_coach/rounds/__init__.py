"""Round lifecycle: phases, events, timers and presentation collaborators.

The controller itself lives in :mod:`tracing_coach.rounds.controller`.
"""

from tracing_coach.rounds.models import (
    EventKind,
    RoundEvent,
    RoundOutcome,
    RoundPhase,
    RoundResult,
    SignalKind,
)
from tracing_coach.rounds.presenter import LoggingPresenter, NullPresenter
from tracing_coach.rounds.timer import ManualScheduler, ThreadingScheduler

__all__ = [
    "EventKind",
    "LoggingPresenter",
    "ManualScheduler",
    "NullPresenter",
    "RoundEvent",
    "RoundOutcome",
    "RoundPhase",
    "RoundResult",
    "SignalKind",
    "ThreadingScheduler",
]
