"""Keeps a client's leaderboard in step with its room via push and pull."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

from globetrotter.backend.models import PlayerScore
from globetrotter.client.api_client import ScoreServiceError
from globetrotter.client.reconciler import InviterChallenge, Reconciler
from globetrotter.client.session import ConnectionSession

logger = logging.getLogger(__name__)

# Upper bound on how stale a leaderboard may get when no push arrives.
POLL_INTERVAL_S = 10.0


class ScoreSource(Protocol):
    async def register_user(self, username: str) -> PlayerScore: ...

    async def save_score(self, username: str, is_correct: bool, room_id: str | None = None) -> PlayerScore: ...

    async def get_all_scores(self) -> list[PlayerScore]: ...

    async def get_room_scores(self, room_id: str) -> list[PlayerScore]: ...


class RoomSync:
    def __init__(
        self,
        session: ConnectionSession,
        scores: ScoreSource,
        username: str,
        room_id: str | None = None,
        inviter: PlayerScore | None = None,
        poll_interval: float = POLL_INTERVAL_S,
    ) -> None:
        self.session = session
        self.scores = scores
        self.username = username
        self.room_id = room_id
        self.poll_interval = poll_interval
        self.reconciler = Reconciler(room_id=room_id)
        self.challenge = InviterChallenge(inviter) if inviter is not None else None
        self.score = PlayerScore.zero(username)
        self._beaten_handlers: tuple[Callable[[PlayerScore], None], ...] = ()
        self._unsubscribe: Callable[[], None] | None = None
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def degraded(self) -> bool:
        """True while push delivery is down and only polling keeps the view fresh."""
        return not self.session.live

    async def start(self) -> None:
        self._unsubscribe = self.session.on_message(self.reconciler.handle_message)
        try:
            self.score = await self.scores.register_user(self.username)
        except ScoreServiceError as exc:
            logger.warning("could not register %s: %s", self.username, exc)
        self.session.connect()
        if self.room_id is not None:
            self.session.join_room(self.username, self.room_id)
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.session.disconnect()

    async def refresh(self) -> bool:
        try:
            if self.room_id is not None:
                snapshot = await self.scores.get_room_scores(self.room_id)
            else:
                snapshot = await self.scores.get_all_scores()
        except ScoreServiceError as exc:
            logger.warning("leaderboard refresh failed: %s", exc)
            return False
        self.reconciler.apply_snapshot(snapshot)
        return True

    async def answer(self, is_correct: bool) -> PlayerScore:
        """Record an answer, publish it to the room and update the local view."""
        try:
            score = await self.scores.save_score(self.username, is_correct, room_id=self.room_id)
        except ScoreServiceError as exc:
            logger.warning("saving score failed, keeping local tally: %s", exc)
            score = PlayerScore(
                username=self.username,
                correct=self.score.correct + int(is_correct),
                incorrect=self.score.incorrect + int(not is_correct),
                total=self.score.total + 1,
            )
        self.score = score
        self.session.send_score(score)
        self.reconciler.apply_score(score)
        if self.challenge is not None and self.challenge.check(score.correct):
            for handler in self._beaten_handlers:
                try:
                    handler(score)
                except Exception:
                    logger.exception("challenge handler failed")
        return score

    def on_challenge_beaten(self, handler: Callable[[PlayerScore], None]) -> Callable[[], None]:
        self._beaten_handlers = (*self._beaten_handlers, handler)

        def unsubscribe() -> None:
            self._beaten_handlers = tuple(existing for existing in self._beaten_handlers if existing is not handler)

        return unsubscribe

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("leaderboard refresh crashed, retrying next tick")
            await asyncio.sleep(self.poll_interval)
