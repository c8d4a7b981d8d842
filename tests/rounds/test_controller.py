"""RoundController with continuous tracing rounds, on a virtual clock."""

from __future__ import annotations

import logging

import pytest

from tracing_coach.config import GameConfig, get_preset
from tracing_coach.path.models import Line, PathPoint, Polygon
from tracing_coach.rounds.controller import RoundController
from tracing_coach.rounds.models import RoundOutcome, RoundPhase
from tracing_coach.rounds.presenter import NullPresenter
from tracing_coach.rounds.timer import ManualScheduler

P = PathPoint
LINE = Line(P(0, 50), P(100, 50))

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Uncancellable:
    def cancel(self) -> None:
        pass


class UncancellableScheduler(ManualScheduler):
    """Timers keep firing after cancel(), like a timer thread that already woke up."""

    def call_later(self, delay_ms, callback):
        super().call_later(delay_ms, callback)
        return _Uncancellable()


def _config(**overrides) -> GameConfig:
    values = dict(
        game_type="tracing-test",
        total_rounds=2,
        path_generator="line",
        tolerance_radius=20.0,
        completion_threshold=0.95,
        dwell_ms=1000,
    )
    values.update(overrides)
    return GameConfig(**values)


def _make(config=None, factory=None, scheduler=None):
    clock = scheduler or ManualScheduler()
    presenter = NullPresenter()
    ctrl = RoundController(
        config or _config(),
        presenter=presenter,
        scheduler=clock,
        path_factory=factory or (lambda i: LINE),
    )
    return ctrl, clock, presenter


def _drag(ctrl, clock, xs, y=50.0, step_ms=50):
    ctrl.drag_start()
    for x in xs:
        ctrl.pointer_move(x, y, clock.now_ms())
        clock.advance(step_ms)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_initial_phase_is_idle():
    ctrl, _, presenter = _make()
    assert ctrl.phase is RoundPhase.IDLE
    assert presenter.calls == []


def test_start_presents_and_arms():
    ctrl, _, presenter = _make()
    ctrl.start()
    assert ctrl.phase is RoundPhase.ARMED
    assert presenter.names() == ["round_presented", "round_armed"]
    assert presenter.of("round_armed") == [(0, 1)]
    assert ctrl.track_state.progress == 0.0
    assert ctrl.model.start_point == P(0, 50)


def test_present_delay_holds_before_arming():
    ctrl, clock, _ = _make(_config(present_ms=400))
    ctrl.start()
    assert ctrl.phase is RoundPhase.PRESENTING
    ctrl.drag_start()
    assert ctrl.phase is RoundPhase.PRESENTING
    clock.advance(400)
    assert ctrl.phase is RoundPhase.ARMED


def test_start_twice_is_ignored():
    ctrl, _, presenter = _make()
    ctrl.start()
    ctrl.start()
    assert presenter.names().count("round_presented") == 1


def test_drag_start_enters_tracking():
    ctrl, _, _ = _make()
    ctrl.start()
    ctrl.drag_start()
    assert ctrl.phase is RoundPhase.TRACKING


def test_successful_trace_then_advance():
    ctrl, clock, presenter = _make()
    ctrl.start()
    _drag(ctrl, clock, range(0, 101, 10))
    ctrl.drag_end()

    assert ctrl.phase is RoundPhase.FEEDBACK
    [result] = ctrl.results
    assert result.outcome is RoundOutcome.SUCCESS
    assert result.progress_at_end == 1.0
    assert result.round_index == 0
    assert result.attempt == 1
    assert result.elapsed_ms == 550
    assert presenter.of("round_resolved") == [result]

    clock.advance(1000)
    assert ctrl.round_index == 1
    assert ctrl.phase is RoundPhase.ARMED


def test_progress_and_track_notifications():
    ctrl, clock, presenter = _make()
    ctrl.start()
    ctrl.drag_start()
    ctrl.pointer_move(30, 50, 0)
    ctrl.pointer_move(40, 90, 100)
    ctrl.pointer_move(40, 90, 200)
    ctrl.pointer_move(45, 50, 300)

    assert presenter.of("progress_changed") == [pytest.approx(0.3), pytest.approx(0.45)]
    assert presenter.of("on_track_changed") == [False, True]
    assert presenter.names().count("warning") == 1
    assert ctrl.track_state.ever_left_track is True


def test_warnings_are_throttled():
    ctrl, _, presenter = _make(_config(warning_interval_ms=500))
    ctrl.start()
    ctrl.drag_start()
    for t in (0, 100, 400, 500, 900, 1000):
        ctrl.pointer_move(50, 95, t)
    assert presenter.names().count("warning") == 3


def test_release_uses_last_on_track_point():
    ctrl, clock, _ = _make()
    ctrl.start()
    _drag(ctrl, clock, [20, 60, 100])
    ctrl.pointer_move(100, 95, clock.now_ms())
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.SUCCESS


def test_explicit_release_point_is_judged():
    ctrl, clock, _ = _make()
    ctrl.start()
    _drag(ctrl, clock, [20, 60, 100])
    ctrl.drag_end(50, 50)
    assert ctrl.results[0].outcome is RoundOutcome.MISS


def test_pointer_move_without_drag_start_tracks():
    ctrl, _, _ = _make()
    ctrl.start()
    ctrl.pointer_move(30, 50, 0)
    assert ctrl.phase is RoundPhase.TRACKING
    assert ctrl.track_state.progress == pytest.approx(0.3)


def test_input_ignored_outside_live_phases():
    ctrl, clock, _ = _make()
    ctrl.pointer_move(50, 50, 0)
    ctrl.drag_end()
    ctrl.tap()
    assert ctrl.phase is RoundPhase.IDLE

    ctrl.start()
    _drag(ctrl, clock, [100])
    ctrl.drag_end()
    ctrl.pointer_move(10, 50, clock.now_ms())
    ctrl.drag_end()
    assert len(ctrl.results) == 1


# ---------------------------------------------------------------------------
# Retry and timeout
# ---------------------------------------------------------------------------


def test_miss_retries_the_same_path():
    calls = []

    def factory(i):
        calls.append(i)
        return LINE

    ctrl, clock, presenter = _make(factory=factory)
    ctrl.start()
    model = ctrl.model
    _drag(ctrl, clock, [10, 30, 50])
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.MISS
    assert ctrl.results[0].progress_at_end == pytest.approx(0.5)

    clock.advance(1000)
    assert ctrl.phase is RoundPhase.ARMED
    assert ctrl.round_index == 0
    assert ctrl.attempt == 2
    assert ctrl.model is model
    assert ctrl.track_state.progress == 0.0
    assert calls == [0]
    assert presenter.of("round_armed") == [(0, 1), (0, 2)]


def test_timeout_advances_to_next_round():
    ctrl, clock, _ = _make(_config(timeout_ms=3000))
    ctrl.start()
    _drag(ctrl, clock, [10, 20])
    clock.advance(2900)
    [result] = ctrl.results
    assert result.outcome is RoundOutcome.TIMEOUT
    assert result.elapsed_ms == 3000
    assert result.progress_at_end == pytest.approx(0.2)

    clock.advance(1000)
    assert ctrl.round_index == 1
    assert ctrl.attempt == 1


def test_release_cancels_timeout():
    ctrl, clock, _ = _make(_config(timeout_ms=1000))
    ctrl.start()
    ctrl.drag_start()
    ctrl.pointer_move(100, 50, 0)
    clock.advance(999)
    ctrl.drag_end()
    clock.advance(1)
    assert [r.outcome for r in ctrl.results] == [RoundOutcome.SUCCESS]


def test_timeout_then_release_in_same_tick_records_once():
    ctrl, clock, _ = _make(_config(timeout_ms=1000), scheduler=UncancellableScheduler())
    ctrl.start()
    ctrl.drag_start()
    ctrl.pointer_move(100, 50, 0)
    clock.advance(1000)
    ctrl.drag_end()
    assert [r.outcome for r in ctrl.results] == [RoundOutcome.TIMEOUT]


def test_stale_timeout_from_previous_attempt_is_ignored():
    ctrl, clock, _ = _make(_config(timeout_ms=3000), scheduler=UncancellableScheduler())
    ctrl.start()
    ctrl.drag_start()
    ctrl.pointer_move(50, 50, 0)
    clock.advance(100)
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.MISS

    clock.advance(1000)  # dwell over, attempt 2 armed at t=1100
    assert ctrl.attempt == 2
    clock.advance(1900)  # attempt 1's timeout fires at t=3000
    assert ctrl.phase is RoundPhase.ARMED
    assert len(ctrl.results) == 1

    clock.advance(1100)  # attempt 2's own timeout at t=4100
    assert [r.outcome for r in ctrl.results] == [RoundOutcome.MISS, RoundOutcome.TIMEOUT]
    assert ctrl.results[1].attempt == 2


# ---------------------------------------------------------------------------
# Preset completion rules
# ---------------------------------------------------------------------------


def _preset_round(name, path, **overrides):
    ctrl, clock, _ = _make(get_preset(name, **overrides), factory=lambda i: path)
    ctrl.start()
    return ctrl, clock


def _trace_points(ctrl, clock, points, step_ms=50):
    ctrl.drag_start()
    for x, y in points:
        ctrl.pointer_move(x, y, clock.now_ms())
        clock.advance(step_ms)
    ctrl.drag_end()
    return ctrl.results[-1]


def test_follow_the_line_released_halfway_misses():
    ctrl, clock = _preset_round("follow-the-line", Line(P(20, 50), P(80, 50)))
    result = _trace_points(ctrl, clock, [(x, 50) for x in range(20, 51, 5)])
    assert result.outcome is RoundOutcome.MISS
    assert result.progress_at_end == pytest.approx(0.5)


def test_follow_the_line_needs_threshold_along_the_line():
    ctrl, clock = _preset_round("follow-the-line", Line(P(20, 50), P(80, 50)))
    result = _trace_points(ctrl, clock, [(x, 50) for x in range(20, 71, 5)])
    assert result.outcome is RoundOutcome.SUCCESS
    assert result.progress_at_end == pytest.approx(50 / 60)


def test_drag_slowly_progress_is_not_forced_near_the_end():
    ctrl, clock = _preset_round("drag-slowly", Line(P(20, 50), P(80, 50)))
    result = _trace_points(ctrl, clock, [(x, 50) for x in range(20, 61)], step_ms=100)
    assert result.outcome is RoundOutcome.MISS
    assert result.progress_at_end == pytest.approx(40 / 60)


def test_snake_slide_snaps_to_end_after_95_percent():
    path = Line(P(15, 50), P(85, 50))
    ctrl, clock = _preset_round("snake-slide", path)
    result = _trace_points(ctrl, clock, [(x, 50) for x in range(15, 83)])
    assert result.outcome is RoundOutcome.SUCCESS
    assert result.progress_at_end == 1.0

    ctrl, clock = _preset_round("snake-slide", path)
    result = _trace_points(ctrl, clock, [(x, 50) for x in range(15, 61)])
    assert result.outcome is RoundOutcome.MISS
    assert result.progress_at_end == pytest.approx(45 / 70)


def test_paint_the_shape_start_behind_first_vertex_misses():
    square = Polygon((P(20, 20), P(80, 20), P(80, 80), P(20, 80)))
    ctrl, clock = _preset_round("paint-the-shape", square)
    result = _trace_points(ctrl, clock, [(20, 22)])
    assert result.outcome is RoundOutcome.MISS
    assert result.progress_at_end == 0.0


def test_paint_the_shape_full_circuit_succeeds():
    square = Polygon((P(20, 20), P(80, 20), P(80, 80), P(20, 80)))
    ctrl, clock = _preset_round("paint-the-shape", square)
    circuit = [(20, 20), (50, 20), (80, 20), (80, 50), (80, 80), (50, 80), (20, 80), (20, 50), (20, 25), (20, 20)]
    result = _trace_points(ctrl, clock, circuit)
    assert result.outcome is RoundOutcome.SUCCESS
    assert result.progress_at_end == 1.0


# ---------------------------------------------------------------------------
# Strict games
# ---------------------------------------------------------------------------


def test_excursion_fails_strict_game():
    ctrl, clock, _ = _make(_config(forbid_excursion=True))
    ctrl.start()
    _drag(ctrl, clock, [20, 40])
    ctrl.pointer_move(50, 90, clock.now_ms())
    _drag(ctrl, clock, [60, 80, 100])
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.MISS
    assert ctrl.results[0].progress_at_end == 1.0


def test_dragging_too_fast_fails_speed_limited_game():
    ctrl, clock, presenter = _make(_config(max_speed=35.0))
    ctrl.start()
    _drag(ctrl, clock, range(0, 101, 20), step_ms=100)
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.MISS
    assert "warning" in presenter.names()


def test_slow_drag_passes_speed_limited_game():
    ctrl, clock, _ = _make(_config(max_speed=35.0))
    ctrl.start()
    _drag(ctrl, clock, range(0, 101, 2), step_ms=100)
    ctrl.drag_end()
    assert ctrl.results[0].outcome is RoundOutcome.SUCCESS


# ---------------------------------------------------------------------------
# Failure handling and cancellation
# ---------------------------------------------------------------------------


def test_bad_geometry_skips_round(caplog):
    def factory(i):
        return Line(P(5, 5), P(5, 5)) if i == 0 else LINE

    ctrl, _, presenter = _make(factory=factory)
    with caplog.at_level(logging.WARNING, logger="tracing_coach.rounds.controller"):
        ctrl.start()

    assert ctrl.round_index == 1
    assert ctrl.phase is RoundPhase.ARMED
    assert ctrl.results == ()
    [(index, message)] = presenter.of("round_failed")
    assert index == 0
    assert "zero total length" in message
    assert "no usable path" in caplog.text


def test_every_round_failing_completes_session():
    ctrl, _, presenter = _make(factory=lambda i: Line(P(5, 5), P(5, 5)))
    ctrl.start()
    assert ctrl.phase is RoundPhase.COMPLETE
    assert ctrl.summary.correct == 0
    assert len(presenter.of("round_failed")) == 2


def test_cancel_stops_timers_and_input():
    ctrl, clock, _ = _make(_config(timeout_ms=3000))
    ctrl.start()
    ctrl.drag_start()
    ctrl.cancel()
    assert ctrl.phase is RoundPhase.CANCELLED
    assert clock.pending() == 0
    clock.advance(10_000)
    ctrl.pointer_move(100, 50, clock.now_ms())
    ctrl.drag_end()
    assert ctrl.results == ()
    assert ctrl.phase is RoundPhase.CANCELLED


def test_full_session_completes_with_summary():
    ctrl, clock, presenter = _make(_config(xp_value=20))
    ctrl.start()
    for _ in range(2):
        _drag(ctrl, clock, range(0, 101, 25))
        ctrl.drag_end()
        clock.advance(1000)

    assert ctrl.phase is RoundPhase.COMPLETE
    summary = ctrl.summary
    assert summary.correct == 2
    assert summary.incorrect == 0
    assert summary.accuracy_pct == 100.0
    assert summary.xp_awarded == 40
    assert presenter.of("session_complete") == [summary]
    assert clock.pending() == 0
