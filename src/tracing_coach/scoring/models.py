"""Scoring data models."""

from __future__ import annotations

import dataclasses
import enum
import math
from dataclasses import dataclass


class XpMode(enum.Enum):
    PER_CORRECT = "per_correct"
    """``correct * value`` (observed values 10 to 20 per correct round)."""

    PROPORTIONAL = "proportional"
    """``floor(correct / total_rounds * value)`` (observed value 50)."""


@dataclass(frozen=True)
class XpRule:
    """Per-game XP award; the multiplier is game configuration, not engine logic."""

    mode: XpMode = XpMode.PER_CORRECT
    value: int = 20

    def award(self, correct: int, total_rounds: int) -> int:
        if self.mode is XpMode.PER_CORRECT:
            return correct * self.value
        if total_rounds <= 0:
            return 0
        return math.floor(correct / total_rounds * self.value)


@dataclass
class SessionSummary:
    """Totals for one finished session.

    ``incorrect`` counts every non-success result; ``misses``, ``timeouts``
    and ``early_taps`` break it down (early taps are a subset of misses).
    """

    total_rounds: int
    correct: int
    incorrect: int
    accuracy_pct: float
    xp_awarded: int
    misses: int = 0
    timeouts: int = 0
    early_taps: int = 0
    duration_ms: int = 0

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict."""
        return dataclasses.asdict(self)
