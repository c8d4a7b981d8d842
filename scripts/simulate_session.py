"""Headless session simulator: a synthetic child plays one game preset.

Runs the real controller on a virtual clock, so a full session finishes
instantly.  Useful for eyeballing presets and exercising the backend client.

Usage:
    uv run python scripts/simulate_session.py --game snake-slide
    uv run python scripts/simulate_session.py --game stop-on-signal --skill 0.5 --seed 7
    uv run python scripts/simulate_session.py --config my_game.json --submit
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys

from dotenv import load_dotenv

load_dotenv()

from tracing_coach.config import PRESETS, GameConfig, get_preset, load_game_config  # noqa: E402
from tracing_coach.path.models import PathModel, PathPoint  # noqa: E402
from tracing_coach.path.shapes import make_path_factory  # noqa: E402
from tracing_coach.rounds.controller import RoundController  # noqa: E402
from tracing_coach.rounds.models import RoundPhase, SignalKind  # noqa: E402
from tracing_coach.rounds.presenter import LoggingPresenter  # noqa: E402
from tracing_coach.rounds.timer import ManualScheduler  # noqa: E402
from tracing_coach.scoring.client import GameLogClient  # noqa: E402

_STEP_PCT = 1.0
_STEP_MS = 50
_MAX_ATTEMPTS = 3
_DONE = (RoundPhase.COMPLETE, RoundPhase.CANCELLED)


def _point_at(model: PathModel, s: float) -> PathPoint:
    """Point at arc length *s* along *model* (closing edge included)."""
    for i in range(model.segment_count):
        a, b = model.segment(i)
        length = model.segment_length(i)
        if s <= length or i == model.segment_count - 1:
            t = 0.0 if length == 0 else min(s / length, 1.0)
            return PathPoint(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)
        s -= length
    return model.end_point


def _trace(ctrl: RoundController, clock: ManualScheduler, rng: random.Random, skill: float) -> None:
    """Drag along the current path; an unskilled attempt stops early."""
    model = ctrl.model
    if model is None:
        return
    succeed = ctrl.attempt >= _MAX_ATTEMPTS or rng.random() < skill
    stop_at = model.total_length * (1.0 if succeed else rng.uniform(0.3, 0.8))

    ctrl.drag_start()
    s = 0.0
    while ctrl.phase is RoundPhase.TRACKING:
        p = _point_at(model, min(s, stop_at))
        jitter = 0.0 if succeed else model.tolerance_radius * 0.3
        ctrl.pointer_move(
            p.x + rng.uniform(-jitter, jitter),
            p.y + rng.uniform(-jitter, jitter),
            clock.now_ms(),
        )
        if s >= stop_at:
            ctrl.drag_end()
            return
        s += _STEP_PCT
        clock.advance(_STEP_MS)


def _respond(ctrl: RoundController, clock: ManualScheduler, rng: random.Random, skill: float) -> None:
    """React to a shown signal: tap on GO, hold still on WITHHOLD (mostly)."""
    if ctrl.signal_kind is SignalKind.GO:
        if rng.random() < skill:
            clock.advance(rng.randint(200, 900))
            ctrl.tap()
        else:
            clock.advance(100)
    elif rng.random() > skill:
        ctrl.tap()
    else:
        clock.advance(100)


def simulate(
    config: GameConfig,
    skill: float = 0.7,
    seed: int | None = None,
    client: GameLogClient | None = None,
) -> RoundController:
    """Play a whole session of *config* and return the finished controller."""
    rng = random.Random(seed)
    clock = ManualScheduler()
    ctrl = RoundController(
        config,
        presenter=LoggingPresenter(),
        scheduler=clock,
        path_factory=make_path_factory(config.path_generator, seed) if config.mode == "continuous" else None,
        persistence=client,
    )
    ctrl.start()
    while ctrl.phase not in _DONE:
        phase = ctrl.phase
        if phase is RoundPhase.ARMED and config.mode == "continuous":
            _trace(ctrl, clock, rng, skill)
        elif phase is RoundPhase.ARMED and rng.random() > skill + (1.0 - skill) * 0.9:
            ctrl.tap()
        elif phase is RoundPhase.AWAITING_SIGNAL:
            _respond(ctrl, clock, rng, skill)
        else:
            clock.advance(100)
    return ctrl


def main() -> None:
    ap = argparse.ArgumentParser(description="Tracing coach: simulate one game session")
    ap.add_argument("--game", default="follow-the-line", choices=sorted(PRESETS), help="Game preset")
    ap.add_argument("--config", default="", help="JSON config file (overrides --game)")
    ap.add_argument("--skill", type=float, default=0.7, help="Chance of a clean attempt (0..1)")
    ap.add_argument("--seed", type=int, default=None, help="Random seed for paths and behaviour")
    ap.add_argument("--submit", action="store_true", help="POST the summary to the backend")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log per-sample notifications")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_game_config(args.config) if args.config else get_preset(args.game)
    client = GameLogClient() if args.submit else None
    ctrl = simulate(config, skill=args.skill, seed=args.seed, client=client)

    for r in ctrl.results:
        flag = " (early)" if r.early else ""
        print(
            f"round {r.round_index + 1} attempt {r.attempt}: "
            f"{r.outcome.value:<8} progress={r.progress_at_end:.2f} {r.elapsed_ms} ms{flag}"
        )
    if ctrl.summary is None:
        print("Session did not complete.", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(ctrl.summary.to_dict(), indent=2))


if __name__ == "__main__":
    main()
