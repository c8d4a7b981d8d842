"""Presentation collaborators: NullPresenter for tests, LoggingPresenter for headless runs.

A presenter receives state-change notifications from the
:class:`~tracing_coach.rounds.controller.RoundController` and drives
animation, sound, haptics and speech.  Nothing it does is fed back into the
engine.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tracing_coach.path.models import PathModel
    from tracing_coach.rounds.models import RoundResult, SignalKind
    from tracing_coach.scoring.models import SessionSummary

_logger = logging.getLogger(__name__)


class NullPresenter:
    """No-op presenter; records every notification for test assertions.

    ``calls`` holds ``(name, payload)`` tuples in arrival order.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def names(self) -> list[str]:
        """Notification names in arrival order."""
        return [name for name, _ in self.calls]

    def of(self, name: str) -> list[Any]:
        """Payloads of every notification called *name*."""
        return [payload for n, payload in self.calls if n == name]

    def round_presented(self, round_index: int, model: PathModel | None) -> None:
        self.calls.append(("round_presented", (round_index, model)))

    def round_armed(self, round_index: int, attempt: int) -> None:
        self.calls.append(("round_armed", (round_index, attempt)))

    def signal_shown(self, kind: SignalKind) -> None:
        self.calls.append(("signal_shown", kind))

    def on_track_changed(self, on_track: bool) -> None:
        self.calls.append(("on_track_changed", on_track))

    def progress_changed(self, progress: float) -> None:
        self.calls.append(("progress_changed", progress))

    def warning(self) -> None:
        self.calls.append(("warning", None))

    def round_resolved(self, result: RoundResult) -> None:
        self.calls.append(("round_resolved", result))

    def round_failed(self, round_index: int, message: str) -> None:
        self.calls.append(("round_failed", (round_index, message)))

    def session_complete(self, summary: SessionSummary) -> None:
        self.calls.append(("session_complete", summary))

    def persistence_failed(self, message: str) -> None:
        self.calls.append(("persistence_failed", message))


class LoggingPresenter(NullPresenter):
    """Presenter that logs round-level notifications (per-sample ones at DEBUG)."""

    def round_presented(self, round_index: int, model: PathModel | None) -> None:
        super().round_presented(round_index, model)
        _logger.info("Round %d presented", round_index + 1)

    def on_track_changed(self, on_track: bool) -> None:
        super().on_track_changed(on_track)
        _logger.debug("on_track=%s", on_track)

    def progress_changed(self, progress: float) -> None:
        super().progress_changed(progress)
        _logger.debug("progress=%.3f", progress)

    def warning(self) -> None:
        super().warning()
        _logger.info("Off the path, warning cue")

    def round_resolved(self, result: RoundResult) -> None:
        super().round_resolved(result)
        _logger.info(
            "Round %d attempt %d: %s (progress %.2f, %d ms)",
            result.round_index + 1,
            result.attempt,
            result.outcome.value,
            result.progress_at_end,
            result.elapsed_ms,
        )

    def round_failed(self, round_index: int, message: str) -> None:
        super().round_failed(round_index, message)
        _logger.warning("Round %d skipped: %s", round_index + 1, message)

    def session_complete(self, summary: SessionSummary) -> None:
        super().session_complete(summary)
        _logger.info(
            "Session complete: %d/%d correct, accuracy %.1f%%, %d XP",
            summary.correct,
            summary.total_rounds,
            summary.accuracy_pct,
            summary.xp_awarded,
        )

    def persistence_failed(self, message: str) -> None:
        super().persistence_failed(message)
        _logger.warning("Could not save session: %s", message)
