"""Client-side leaderboard merging pushed events and polled snapshots."""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from globetrotter.backend.messages import JoinRoom, LeaveRoom, RoomData, ScoreUpdate
from globetrotter.backend.models import PlayerScore

logger = logging.getLogger(__name__)


class Reconciler:
    """Leaderboard view keyed by username.

    Every incoming score replaces the stored entry wholesale, since it
    carries complete counters. ``room_id`` scopes the view: pushed messages
    for other rooms are ignored. ``None`` is the global leaderboard.
    """

    def __init__(self, room_id: str | None = None) -> None:
        self.room_id = room_id
        self._entries: dict[str, PlayerScore] = {}
        self._handlers: tuple[Callable[[list[PlayerScore]], None], ...] = ()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, username: object) -> bool:
        return username in self._entries

    def get(self, username: str) -> PlayerScore | None:
        return self._entries.get(username)

    def apply_score(self, score: PlayerScore) -> None:
        # Replacing an existing key keeps its first-seen position.
        self._entries[score.username] = score
        self._notify()

    def apply_snapshot(self, scores: Iterable[PlayerScore]) -> None:
        """Replace the whole key set; local entries missing from ``scores`` are dropped."""
        fresh = {score.username: score for score in scores}
        entries = {username: fresh[username] for username in self._entries if username in fresh}
        for username, score in fresh.items():
            entries.setdefault(username, score)
        self._entries = entries
        self._notify()

    def remove(self, username: str) -> None:
        if self._entries.pop(username, None) is not None:
            self._notify()

    def handle_message(self, message: JoinRoom | LeaveRoom | ScoreUpdate | RoomData) -> None:
        if self.room_id is not None and message.room_id != self.room_id:
            return
        if isinstance(message, RoomData):
            self.apply_snapshot(message.participants)
        elif isinstance(message, ScoreUpdate):
            self.apply_score(message.score)
        elif isinstance(message, JoinRoom):
            if message.username not in self._entries:
                self.apply_score(PlayerScore.zero(message.username))
        elif isinstance(message, LeaveRoom):
            if self.room_id is not None:
                self.remove(message.username)
        else:
            raise TypeError(f"unhandled message type {type(message).__name__}")

    def leaderboard(self) -> list[PlayerScore]:
        # sorted() is stable, so ties keep first-seen order.
        return sorted(self._entries.values(), key=lambda score: score.correct, reverse=True)

    def on_change(self, handler: Callable[[list[PlayerScore]], None]) -> Callable[[], None]:
        self._handlers = (*self._handlers, handler)

        def unsubscribe() -> None:
            self._handlers = tuple(existing for existing in self._handlers if existing is not handler)

        return unsubscribe

    def _notify(self) -> None:
        if not self._handlers:
            return
        board = self.leaderboard()
        for handler in self._handlers:
            try:
                handler(board)
            except Exception:
                logger.exception("leaderboard handler failed")


class InviterChallenge:
    """Tracks whether the player has overtaken the inviter's captured score."""

    def __init__(self, inviter: PlayerScore) -> None:
        self.inviter = inviter
        self.beaten = False

    def check(self, current_correct: int) -> bool:
        """Return True only on the first call where the inviter is beaten."""
        if self.beaten or current_correct <= self.inviter.correct:
            return False
        self.beaten = True
        return True
