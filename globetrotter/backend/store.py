"""Score storage interfaces and the in-memory implementation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

from globetrotter.backend.models import PlayerScore
from globetrotter.backend.rooms import RoomRegistry

logger = logging.getLogger(__name__)


class ScoreStore(Protocol):
    registry: RoomRegistry

    def save_score(self, username: str, is_correct: bool, room_id: str | None = None) -> PlayerScore:
        """Record one answer outcome and return the player's new score."""

    def get_score(self, username: str) -> PlayerScore:
        """Return the player's score, or a zero record when unknown."""

    def get_all_scores(self) -> list[PlayerScore]:
        """Return every known score, unsorted."""

    def get_room_scores(self, room_id: str) -> list[PlayerScore]:
        """Return scores for the current members of a room."""

    def register_user(self, username: str) -> PlayerScore:
        """Create a zero record when absent and return the current score."""


@dataclass
class _Counters:
    correct: int = 0
    incorrect: int = 0

    def snapshot(self, username: str) -> PlayerScore:
        return PlayerScore(
            username=username,
            correct=self.correct,
            incorrect=self.incorrect,
            total=self.correct + self.incorrect,
        )


@dataclass
class InMemoryScoreStore:
    """One counter table for every player.

    Room views are a filter over ``registry`` membership at query time, so a
    player's room score and global score can never diverge.
    """

    registry: RoomRegistry = field(default_factory=RoomRegistry)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._scores: dict[str, _Counters] = {}

    def save_score(self, username: str, is_correct: bool, room_id: str | None = None) -> PlayerScore:
        _require_username(username)
        with self._lock:
            counters = self._scores.setdefault(username, _Counters())
            if is_correct:
                counters.correct += 1
            else:
                counters.incorrect += 1
            score = counters.snapshot(username)
        if room_id is not None and not self.registry.is_member(room_id, username):
            logger.debug("score for %s saved with room %s but player is not a member", username, room_id)
        return score

    def get_score(self, username: str) -> PlayerScore:
        with self._lock:
            counters = self._scores.get(username)
            if counters is None:
                return PlayerScore.zero(username) if username else _anonymous()
            return counters.snapshot(username)

    def get_all_scores(self) -> list[PlayerScore]:
        with self._lock:
            return [counters.snapshot(username) for username, counters in self._scores.items()]

    def get_room_scores(self, room_id: str) -> list[PlayerScore]:
        members = self.registry.members(room_id)
        with self._lock:
            return [
                self._scores[username].snapshot(username) if username in self._scores else PlayerScore.zero(username)
                for username in members
            ]

    def register_user(self, username: str) -> PlayerScore:
        _require_username(username)
        with self._lock:
            counters = self._scores.setdefault(username, _Counters())
            return counters.snapshot(username)


def _require_username(username: str) -> None:
    if not username:
        raise ValueError("username must be a non-empty string")


def _anonymous() -> PlayerScore:
    # PlayerScore rejects empty names; unknown lookups with one still never fail.
    return PlayerScore.model_construct(username="", correct=0, incorrect=0, total=0)
