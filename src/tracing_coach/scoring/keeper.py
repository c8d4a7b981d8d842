"""ScoreKeeper: running tallies and session summary."""

from __future__ import annotations

from tracing_coach.rounds.models import RoundOutcome, RoundResult
from tracing_coach.scoring.models import SessionSummary, XpRule


class ScoreKeeper:
    """Accumulate round results into a :class:`SessionSummary`.

    Args:
        total_rounds: Number of rounds in the session; the accuracy denominator.
        xp_rule: How XP is derived from the number of correct rounds.
    """

    def __init__(self, total_rounds: int, xp_rule: XpRule | None = None) -> None:
        if total_rounds < 1:
            raise ValueError("total_rounds must be >= 1")
        self.total_rounds = total_rounds
        self.xp_rule = xp_rule or XpRule()
        self.correct = 0
        self.incorrect = 0
        self.misses = 0
        self.timeouts = 0
        self.early_taps = 0

    def record_result(self, result: RoundResult) -> None:
        """Tally one resolved attempt."""
        if result.outcome is RoundOutcome.SUCCESS:
            self.correct += 1
            return
        self.incorrect += 1
        if result.outcome is RoundOutcome.TIMEOUT:
            self.timeouts += 1
        else:
            self.misses += 1
            if result.early:
                self.early_taps += 1

    @property
    def accuracy_pct(self) -> float:
        return self.correct / self.total_rounds * 100.0

    def finalize(self, duration_ms: int = 0) -> SessionSummary:
        """Build the summary from the current tallies."""
        return SessionSummary(
            total_rounds=self.total_rounds,
            correct=self.correct,
            incorrect=self.incorrect,
            accuracy_pct=self.accuracy_pct,
            xp_awarded=self.xp_rule.award(self.correct, self.total_rounds),
            misses=self.misses,
            timeouts=self.timeouts,
            early_taps=self.early_taps,
            duration_ms=duration_ms,
        )
