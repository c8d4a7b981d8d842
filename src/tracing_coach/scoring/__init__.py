"""Score keeping, XP rules and session persistence."""

from tracing_coach.scoring.client import GameLogClient
from tracing_coach.scoring.keeper import ScoreKeeper
from tracing_coach.scoring.models import SessionSummary, XpMode, XpRule

__all__ = [
    "GameLogClient",
    "ScoreKeeper",
    "SessionSummary",
    "XpMode",
    "XpRule",
]
