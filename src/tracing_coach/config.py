"""Per-game configuration: validated settings and built-in presets.

A :class:`GameConfig` is the whole configuration surface of one session:
path generator, tolerance, completion threshold, round count, timings and
XP rule.  Presets reproduce the numbers used by the therapy mini-games;
:func:`get_preset` applies overrides on top of one, and
:func:`load_game_config` reads a JSON file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tracing_coach.path.shapes import PATH_GENERATORS
from tracing_coach.rounds.models import SignalKind
from tracing_coach.scoring.models import XpMode, XpRule


class GameConfig(BaseModel):
    """Settings for one game session.  Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    game_type: str
    mode: Literal["continuous", "signal"] = "continuous"
    total_rounds: int = Field(6, ge=1)

    # Continuous tracking
    path_generator: str = "line"
    tolerance_radius: float = Field(25.0, gt=0)
    completion_threshold: float = Field(0.9, gt=0, le=1)
    require_end_reach: bool = True
    forbid_excursion: bool = False
    end_snap_min_progress: float | None = Field(None, ge=0, le=1)
    warning_interval_ms: int = Field(500, ge=0)
    max_speed: float | None = Field(None, gt=0)

    # Signal games
    signal_delay_ms: int = Field(2000, ge=0)
    signal_pattern: list[SignalKind] = Field(default_factory=lambda: [SignalKind.GO])
    withhold_window_ms: int | None = Field(None, gt=0)

    # Timing shared by both
    timeout_ms: int | None = Field(None, gt=0)
    present_ms: int = Field(0, ge=0)
    dwell_ms: int = Field(1500, ge=0)

    # Scoring / persistence
    xp_mode: XpMode = XpMode.PER_CORRECT
    xp_value: int = Field(20, ge=0)
    skill_tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_mode(self) -> GameConfig:
        if self.mode == "continuous" and self.path_generator not in PATH_GENERATORS:
            raise ValueError(
                f"Unknown path_generator {self.path_generator!r}; "
                f"expected one of {sorted(PATH_GENERATORS)}"
            )
        if self.mode == "signal":
            if self.timeout_ms is None:
                raise ValueError("Signal games need timeout_ms")
            if not self.signal_pattern:
                raise ValueError("signal_pattern must not be empty")
        return self

    def xp_rule(self) -> XpRule:
        return XpRule(mode=self.xp_mode, value=self.xp_value)

    def signal_for_round(self, round_index: int) -> SignalKind:
        """Signal kind of *round_index*; the pattern repeats."""
        return self.signal_pattern[round_index % len(self.signal_pattern)]

    def window_ms(self, kind: SignalKind) -> int:
        """How long the signal window stays open for *kind*."""
        if kind is SignalKind.WITHHOLD and self.withhold_window_ms is not None:
            return self.withhold_window_ms
        if self.timeout_ms is None:
            raise ValueError(f"{self.game_type} has no timeout_ms")
        return self.timeout_ms


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

PRESETS: dict[str, GameConfig] = {
    "follow-the-line": GameConfig(
        game_type="follow-the-line",
        total_rounds=8,
        path_generator="line",
        tolerance_radius=30.0,
        completion_threshold=0.8,
        xp_value=18,
        skill_tags=["visual-motor-tracking", "straight-line-control"],
    ),
    "drag-slowly": GameConfig(
        game_type="drag-slowly",
        total_rounds=8,
        path_generator="slow_bar",
        tolerance_radius=25.0,
        completion_threshold=0.95,
        max_speed=35.0,
        warning_interval_ms=2000,
        xp_value=18,
        skill_tags=["speed-control", "motor-planning"],
    ),
    "snake-slide": GameConfig(
        game_type="snake-slide",
        total_rounds=6,
        path_generator="s_curve",
        tolerance_radius=35.0,
        completion_threshold=0.99,
        forbid_excursion=True,
        end_snap_min_progress=0.95,
        xp_value=20,
        skill_tags=["smooth-wrist-movement", "curved-tracking", "smooth-curved-motion"],
    ),
    "ball-roll": GameConfig(
        game_type="ball-roll",
        total_rounds=6,
        path_generator="rolling",
        tolerance_radius=18.0,
        completion_threshold=0.75,
        xp_value=20,
        skill_tags=["controlled-dragging", "path-following"],
    ),
    "path-follow": GameConfig(
        game_type="path-follow",
        total_rounds=6,
        path_generator="zigzag",
        tolerance_radius=25.0,
        completion_threshold=0.9,
        timeout_ms=8000,
        xp_value=15,
        skill_tags=["direction-changes", "path-following"],
    ),
    "paint-the-shape": GameConfig(
        game_type="paint-the-shape",
        total_rounds=6,
        path_generator="outline",
        tolerance_radius=20.0,
        completion_threshold=0.85,
        require_end_reach=False,
        xp_value=20,
        skill_tags=["shape-tracing", "closed-loop-control"],
    ),
    "track-and-freeze": GameConfig(
        game_type="track-and-freeze",
        mode="signal",
        total_rounds=5,
        signal_delay_ms=3000,
        timeout_ms=3000,
        dwell_ms=2500,
        xp_value=10,
        skill_tags=["impulse-control", "visual-tracking"],
    ),
    "stop-on-signal": GameConfig(
        game_type="stop-on-signal",
        mode="signal",
        total_rounds=6,
        signal_delay_ms=2000,
        timeout_ms=3000,
        dwell_ms=1500,
        xp_mode=XpMode.PROPORTIONAL,
        xp_value=50,
        skill_tags=["auditory-attention", "response-inhibition"],
    ),
    "tap-only-on-your-turn": GameConfig(
        game_type="tap-only-on-your-turn",
        mode="signal",
        total_rounds=6,
        signal_delay_ms=0,
        signal_pattern=[SignalKind.GO, SignalKind.WITHHOLD],
        timeout_ms=2500,
        withhold_window_ms=3000,
        dwell_ms=600,
        xp_value=15,
        skill_tags=["self-control", "turn-rules", "visual-patterns", "impulse-control"],
    ),
}


def get_preset(name: str, **overrides: Any) -> GameConfig:
    """Return preset *name* with *overrides* applied and re-validated.

    Raises:
        KeyError: If *name* is not a known preset.
        pydantic.ValidationError: If an override is invalid.
    """
    base = PRESETS[name]
    return GameConfig.model_validate({**base.model_dump(), **overrides})


def load_game_config(path: str | Path) -> GameConfig:
    """Load a :class:`GameConfig` from a JSON file.

    A ``"preset"`` key selects a base preset; the remaining keys override it.

    Raises:
        KeyError: If the named preset does not exist.
        pydantic.ValidationError: If the file content is invalid.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    preset = data.pop("preset", None)
    if preset is not None:
        return get_preset(preset, **data)
    return GameConfig.model_validate(data)
