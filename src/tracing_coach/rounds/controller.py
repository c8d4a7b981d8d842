"""RoundController: the state machine shared by every tracing and tap-timing game.

One controller runs a whole session::

    IDLE → PRESENTING → ARMED → TRACKING | AWAITING_SIGNAL → RESOLVING → FEEDBACK
         → (ARMED again on retry) | ADVANCING → PRESENTING … → COMPLETE

Input handlers and timer callbacks all go through :meth:`RoundController.dispatch`.
Each attempt owns a one-shot *resolved* latch; timers carry the token of the
attempt they were scheduled for and are ignored once that token is stale, so
a timeout racing a user action can never produce a second result.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from tracing_coach.config import GameConfig
from tracing_coach.path.builder import PathGeometryError, build_path_model
from tracing_coach.path.models import PathModel, PathPoint, PathSpec
from tracing_coach.path.proximity import ProximityEvaluator
from tracing_coach.path.shapes import make_path_factory
from tracing_coach.rounds.models import (
    EventKind,
    RoundEvent,
    RoundOutcome,
    RoundPhase,
    RoundResult,
    SignalKind,
)
from tracing_coach.rounds.presenter import NullPresenter
from tracing_coach.rounds.timer import ThreadingScheduler
from tracing_coach.scoring.keeper import ScoreKeeper
from tracing_coach.scoring.models import SessionSummary
from tracing_coach.tracking.accumulator import ProgressAccumulator
from tracing_coach.tracking.models import TrackState
from tracing_coach.tracking.speed import SpeedMonitor

_logger = logging.getLogger(__name__)

_LIVE_PHASES = frozenset({RoundPhase.ARMED, RoundPhase.TRACKING, RoundPhase.AWAITING_SIGNAL})


def judge_release(
    state: TrackState,
    model: PathModel,
    release_point: PathPoint,
    config: GameConfig,
) -> RoundOutcome:
    """Decide the outcome of a drag released at *release_point*.

    Success needs the accumulated progress to reach the completion threshold
    and, unless the game disables it, the release to lie within the tolerance
    radius of the path's end.  Strict games also reject any excursion off the
    track or a drag that ended too fast.
    """
    if config.forbid_excursion and state.ever_left_track:
        return RoundOutcome.MISS
    if config.max_speed is not None and state.too_fast:
        return RoundOutcome.MISS
    if state.progress < config.completion_threshold:
        return RoundOutcome.MISS
    if config.require_end_reach and release_point.distance_to(model.end_point) > model.tolerance_radius:
        return RoundOutcome.MISS
    return RoundOutcome.SUCCESS


class RoundController:
    """Drive a session of *config.total_rounds* rounds.

    Parameters
    ----------
    config:
        Game settings (mode, path generator, thresholds, timings, XP rule).
    presenter:
        Presentation collaborator; see :mod:`tracing_coach.rounds.presenter`.
    scheduler:
        Object with ``now_ms()`` and ``call_later(delay_ms, callback)``.
        Defaults to a :class:`~tracing_coach.rounds.timer.ThreadingScheduler`.
    path_factory:
        ``round_index -> PathSpec`` for continuous games.  Defaults to the
        generator named by ``config.path_generator``.
    persistence:
        Object with ``submit(summary, game_type, skill_tags)`` returning the
        backend response or ``None`` on failure, e.g.
        :class:`~tracing_coach.scoring.client.GameLogClient`.
    publish_async:
        Deliver the summary on a daemon thread instead of inline.
    """

    def __init__(
        self,
        config: GameConfig,
        presenter: Any | None = None,
        scheduler: Any | None = None,
        path_factory: Callable[[int], PathSpec] | None = None,
        persistence: Any | None = None,
        publish_async: bool = False,
    ) -> None:
        self._cfg = config
        self._presenter = presenter if presenter is not None else NullPresenter()
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._continuous = config.mode == "continuous"
        if path_factory is None and self._continuous:
            path_factory = make_path_factory(config.path_generator)
        self._path_factory = path_factory if self._continuous else None
        self._persistence = persistence
        self._publish_async = publish_async

        self._evaluator = ProximityEvaluator()
        self._accumulator = ProgressAccumulator(
            warning_interval_ms=config.warning_interval_ms,
            end_snap_min_progress=config.end_snap_min_progress,
        )
        self._speed = SpeedMonitor(config.max_speed) if config.max_speed is not None else None
        self._scores = ScoreKeeper(config.total_rounds, config.xp_rule())

        self._lock = threading.RLock()
        self._handlers: dict[EventKind, Callable[[RoundEvent], None]] = {
            EventKind.DRAG_START: self._on_drag_start,
            EventKind.POINTER_MOVE: self._on_pointer_move,
            EventKind.DRAG_END: self._on_drag_end,
            EventKind.TAP: self._on_tap,
            EventKind.ARM: self._on_arm,
            EventKind.SIGNAL: self._on_signal,
            EventKind.TIMEOUT: self._on_timeout,
            EventKind.DWELL_ELAPSED: self._on_dwell_elapsed,
            EventKind.CANCEL: self._on_cancel,
        }

        self._phase = RoundPhase.IDLE
        self._round_index = 0
        self._attempt = 0
        self._token = 0
        self._timers: list[Any] = []
        self._resolved = False
        self._retry = False
        self._cancelled = False
        self._armed_at = 0
        self._started_at = 0

        self._model: PathModel | None = None
        self._state: TrackState | None = None
        self._signal_kind: SignalKind | None = None
        self._results: list[RoundResult] = []
        self._summary: SessionSummary | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def round_index(self) -> int:
        """Zero-based index of the current round."""
        return self._round_index

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def model(self) -> PathModel | None:
        """Path of the current round (continuous games only)."""
        return self._model

    @property
    def track_state(self) -> TrackState | None:
        return self._state

    @property
    def signal_kind(self) -> SignalKind | None:
        return self._signal_kind

    @property
    def results(self) -> tuple[RoundResult, ...]:
        return tuple(self._results)

    @property
    def summary(self) -> SessionSummary | None:
        """Final summary once the session is complete."""
        return self._summary

    @property
    def scores(self) -> ScoreKeeper:
        return self._scores

    # ------------------------------------------------------------------
    # Input API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin the session with the first round.  Ignored unless idle."""
        with self._lock:
            if self._phase is not RoundPhase.IDLE:
                return
            self._started_at = self._scheduler.now_ms()
            _logger.info(
                "Starting %s: %d round(s), mode=%s",
                self._cfg.game_type,
                self._cfg.total_rounds,
                self._cfg.mode,
            )
            self._present()

    def drag_start(self) -> None:
        self.dispatch(RoundEvent(EventKind.DRAG_START))

    def pointer_move(self, x: float, y: float, timestamp_ms: int | None = None) -> None:
        """Feed one pointer sample in play-area percent coordinates."""
        self.dispatch(RoundEvent(EventKind.POINTER_MOVE, x=x, y=y, timestamp_ms=timestamp_ms))

    def drag_end(self, x: float | None = None, y: float | None = None) -> None:
        """Release the drag, optionally at an explicit release position."""
        self.dispatch(RoundEvent(EventKind.DRAG_END, x=x, y=y))

    def tap(self) -> None:
        self.dispatch(RoundEvent(EventKind.TAP))

    def cancel(self) -> None:
        """Leave the game: cancel pending timers and silence late persistence results."""
        self.dispatch(RoundEvent(EventKind.CANCEL))

    def dispatch(self, event: RoundEvent) -> None:
        """Route *event* to its handler.  Out-of-phase events are ignored."""
        with self._lock:
            self._handlers[event.kind](event)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_drag_start(self, event: RoundEvent) -> None:
        if self._continuous and self._phase is RoundPhase.ARMED:
            self._phase = RoundPhase.TRACKING

    def _on_pointer_move(self, event: RoundEvent) -> None:
        model, before = self._model, self._state
        if model is None or before is None:
            return
        if self._phase not in (RoundPhase.ARMED, RoundPhase.TRACKING):
            return
        if event.x is None or event.y is None:
            return
        self._phase = RoundPhase.TRACKING

        point = PathPoint(event.x, event.y)
        now = event.timestamp_ms if event.timestamp_ms is not None else self._scheduler.now_ms()
        evaluation = self._evaluator.evaluate(point, model)
        after = self._accumulator.update(evaluation, model, before, now)
        if self._speed is not None:
            after = self._speed.update(after, point, now)
        self._state = after

        if after.on_track != before.on_track:
            self._presenter.on_track_changed(after.on_track)
        if ProgressAccumulator.warned(before, after) or (after.too_fast and not before.too_fast):
            self._presenter.warning()
        if after.progress != before.progress:
            self._presenter.progress_changed(after.progress)

    def _on_drag_end(self, event: RoundEvent) -> None:
        model, state = self._model, self._state
        if model is None or state is None or self._phase is not RoundPhase.TRACKING:
            return
        if event.x is not None and event.y is not None:
            release = PathPoint(event.x, event.y)
        else:
            release = state.last_query_point
        self._resolve(judge_release(state, model, release, self._cfg))

    def _on_tap(self, event: RoundEvent) -> None:
        if self._continuous:
            return
        if self._phase is RoundPhase.ARMED:
            self._resolve(RoundOutcome.MISS, early=True)
        elif self._phase is RoundPhase.AWAITING_SIGNAL:
            if self._signal_kind is SignalKind.WITHHOLD:
                self._resolve(RoundOutcome.MISS)
            else:
                self._resolve(RoundOutcome.SUCCESS)

    def _on_arm(self, event: RoundEvent) -> None:
        if self._is_current(event) and self._phase is RoundPhase.PRESENTING:
            self._arm()

    def _on_signal(self, event: RoundEvent) -> None:
        kind = self._signal_kind
        if kind is None or not self._is_current(event) or self._phase is not RoundPhase.ARMED:
            return
        self._phase = RoundPhase.AWAITING_SIGNAL
        self._presenter.signal_shown(kind)
        self._schedule(self._cfg.window_ms(kind), EventKind.TIMEOUT)

    def _on_timeout(self, event: RoundEvent) -> None:
        if not self._is_current(event) or self._phase not in _LIVE_PHASES:
            return
        if self._phase is RoundPhase.AWAITING_SIGNAL and self._signal_kind is SignalKind.WITHHOLD:
            self._resolve(RoundOutcome.SUCCESS)
        else:
            self._resolve(RoundOutcome.TIMEOUT)

    def _on_dwell_elapsed(self, event: RoundEvent) -> None:
        if not self._is_current(event) or self._phase is not RoundPhase.FEEDBACK:
            return
        if self._retry:
            self._arm()
        else:
            self._advance()

    def _on_cancel(self, event: RoundEvent) -> None:
        self._cancelled = True
        self._cancel_timers()
        if self._phase is not RoundPhase.COMPLETE:
            _logger.info("%s cancelled in round %d", self._cfg.game_type, self._round_index + 1)
            self._phase = RoundPhase.CANCELLED

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _present(self) -> None:
        self._cancel_timers()
        self._phase = RoundPhase.PRESENTING
        self._attempt = 0
        self._model = None
        self._state = None

        if self._path_factory is not None:
            try:
                self._model = build_path_model(
                    self._path_factory(self._round_index), self._cfg.tolerance_radius
                )
            except PathGeometryError as exc:
                _logger.warning("Round %d has no usable path: %s", self._round_index + 1, exc)
                self._presenter.round_failed(self._round_index, str(exc))
                self._advance()
                return
        else:
            self._signal_kind = self._cfg.signal_for_round(self._round_index)

        self._presenter.round_presented(self._round_index, self._model)
        self._after(self._cfg.present_ms, EventKind.ARM)

    def _arm(self) -> None:
        self._cancel_timers()
        self._attempt += 1
        self._resolved = False
        self._retry = False
        self._armed_at = self._scheduler.now_ms()
        self._phase = RoundPhase.ARMED
        self._presenter.round_armed(self._round_index, self._attempt)

        if self._model is not None:
            self._state = TrackState.start(self._model)
            if self._cfg.timeout_ms is not None:
                self._schedule(self._cfg.timeout_ms, EventKind.TIMEOUT)
        else:
            self._after(self._cfg.signal_delay_ms, EventKind.SIGNAL)

    def _resolve(self, outcome: RoundOutcome, early: bool = False) -> None:
        if self._resolved:
            return
        self._resolved = True
        self._cancel_timers()
        self._phase = RoundPhase.RESOLVING

        progress = self._state.progress if self._state is not None else 0.0
        result = RoundResult(
            outcome=outcome,
            progress_at_end=progress,
            elapsed_ms=self._scheduler.now_ms() - self._armed_at,
            round_index=self._round_index,
            attempt=self._attempt,
            early=early,
        )
        self._results.append(result)
        self._scores.record_result(result)
        _logger.info(
            "%s round %d attempt %d resolved: %s",
            self._cfg.game_type,
            self._round_index + 1,
            self._attempt,
            outcome.value,
        )
        self._presenter.round_resolved(result)

        # Continuous misses and early taps replay the same round; timeouts never do.
        self._retry = outcome is RoundOutcome.MISS and (self._continuous or early)
        self._phase = RoundPhase.FEEDBACK
        self._after(self._cfg.dwell_ms, EventKind.DWELL_ELAPSED)

    def _advance(self) -> None:
        self._phase = RoundPhase.ADVANCING
        self._round_index += 1
        if self._round_index >= self._cfg.total_rounds:
            self._complete()
        else:
            self._present()

    def _complete(self) -> None:
        self._cancel_timers()
        self._phase = RoundPhase.COMPLETE
        self._summary = self._scores.finalize(self._scheduler.now_ms() - self._started_at)
        self._presenter.session_complete(self._summary)
        self._publish(self._summary)

    # ------------------------------------------------------------------
    # Persistence hand-off
    # ------------------------------------------------------------------

    def _publish(self, summary: SessionSummary) -> None:
        if self._persistence is None:
            return
        if self._publish_async:
            threading.Thread(
                target=self._deliver, args=(summary,), daemon=True, name="SessionPublish"
            ).start()
        else:
            self._deliver(summary)

    def _deliver(self, summary: SessionSummary) -> None:
        try:
            response = self._persistence.submit(summary, self._cfg.game_type, self._cfg.skill_tags)
        except Exception as exc:
            _logger.warning("Session summary hand-off failed: %s", exc)
            response = None
        if response is not None:
            return
        with self._lock:
            if not self._cancelled:
                self._presenter.persistence_failed("Session summary could not be saved")

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _is_current(self, event: RoundEvent) -> bool:
        return event.token == self._token

    def _schedule(self, delay_ms: int, kind: EventKind) -> None:
        token = self._token
        _logger.debug("Scheduling %s in %d ms (token %d)", kind.value, delay_ms, token)
        handle = self._scheduler.call_later(
            delay_ms, lambda: self.dispatch(RoundEvent(kind, token=token))
        )
        self._timers.append(handle)

    def _after(self, delay_ms: int, kind: EventKind) -> None:
        """Schedule *kind*, or handle it right away when *delay_ms* is 0."""
        if delay_ms <= 0:
            self._handlers[kind](RoundEvent(kind, token=self._token))
        else:
            self._schedule(delay_ms, kind)

    def _cancel_timers(self) -> None:
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        self._token += 1
