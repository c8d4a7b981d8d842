"""Game-log backend client.

Posts a finished session to the therapy backend: first the detailed game log
(``POST /api/me/game-log``), then the XP/coin award (``POST /api/games/record``).

Reads the base URL from ``TRACING_COACH_API_BASE_URL`` and the bearer token
from ``TRACING_COACH_API_TOKEN`` by default.  Pass them explicitly in tests.
"""

from __future__ import annotations

import logging
import os

import requests

from tracing_coach.scoring.models import SessionSummary

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4000"


class GameLogClient:
    """Persistence collaborator for :class:`~tracing_coach.rounds.controller.RoundController`.

    Args:
        base_url: Backend root; falls back to ``TRACING_COACH_API_BASE_URL``.
        token: Bearer token; falls back to ``TRACING_COACH_API_TOKEN``.
        timeout: Request timeout in seconds.
        session: Optional pre-configured :class:`requests.Session`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ) -> None:
        url = base_url or os.environ.get("TRACING_COACH_API_BASE_URL", DEFAULT_BASE_URL)
        self._base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        key = token or os.environ.get("TRACING_COACH_API_TOKEN", "")
        self._session.headers["Content-Type"] = "application/json"
        if key:
            self._session.headers["Authorization"] = f"Bearer {key}"

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def build_payload(summary: SessionSummary, game_type: str, skill_tags: list[str]) -> dict:
        """Game-log request body for *summary*."""
        return {
            "type": game_type,
            "correct": summary.correct,
            "total": summary.total_rounds,
            "accuracy": summary.accuracy_pct,
            "xpAwarded": summary.xp_awarded,
            "durationMs": summary.duration_ms,
            "mode": "therapy",
            "skillTags": list(skill_tags),
            "incorrectAttempts": summary.incorrect,
            "meta": {
                "misses": summary.misses,
                "timeouts": summary.timeouts,
                "earlyTaps": summary.early_taps,
            },
        }

    def submit(
        self, summary: SessionSummary, game_type: str, skill_tags: list[str]
    ) -> dict | None:
        """Log the session and record its XP award.

        Returns the game-log response body, or ``None`` if either request
        fails.  Failures are logged at ``WARNING``; nothing is retried.
        """
        log = self._post("/api/me/game-log", self.build_payload(summary, game_type, skill_tags))
        if log is None:
            return None
        if self._post("/api/games/record", {"xp": summary.xp_awarded, "coins": 1}) is None:
            return None
        _logger.info(
            "Logged %s: %d/%d correct, %d XP",
            game_type,
            summary.correct,
            summary.total_rounds,
            summary.xp_awarded,
        )
        return log

    def _post(self, path: str, body: dict) -> dict | None:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.post(url, json=body, timeout=self._timeout)
        except requests.RequestException as exc:
            _logger.warning("POST %s failed: %s", url, exc)
            return None
        if not response.ok:
            _logger.warning("POST %s returned HTTP %d: %s", url, response.status_code, response.text)
            return None
        try:
            return response.json()
        except ValueError:
            return {}
