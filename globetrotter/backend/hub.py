"""Room fan-out hub for websocket subscribers."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

from globetrotter.backend.messages import (
    JoinRoom,
    LeaveRoom,
    MalformedMessageError,
    RoomData,
    ScoreUpdate,
    decode_message,
    encode_message,
)
from globetrotter.backend.store import ScoreStore

logger = logging.getLogger(__name__)

DEFAULT_OUTBOX_SIZE = 256

_subscriber_ids = itertools.count(1)


class SocketLike(Protocol):
    async def accept(self) -> None: ...

    async def send_json(self, data: Any) -> None: ...


class Subscriber:
    """Server-side record of one connected client.

    Outbound frames go through a bounded FIFO outbox drained by a writer
    task, so fan-out never waits on a slow socket.
    """

    def __init__(self, websocket: SocketLike, outbox_size: int) -> None:
        self.id = next(_subscriber_ids)
        self.websocket = websocket
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=outbox_size)
        self.room_id: str | None = None
        self.username: str | None = None
        self.closed = False
        self.writer_task: asyncio.Task[None] | None = None

    def enqueue(self, payload: dict[str, Any]) -> bool:
        if self.closed:
            return False
        try:
            self.outbox.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        return True


class RoomHub:
    """Applies room events one at a time and fans out the results.

    Every event is applied synchronously on the event loop, from decode to
    the last enqueue, so events for a room are totally ordered and each
    subscriber's outbox receives them in that order.
    """

    def __init__(self, store: ScoreStore, outbox_size: int = DEFAULT_OUTBOX_SIZE) -> None:
        self._store = store
        self._registry = store.registry
        self._outbox_size = outbox_size
        self._rooms: dict[str, dict[int, Subscriber]] = {}

    async def connect(self, websocket: SocketLike) -> Subscriber:
        await websocket.accept()
        subscriber = self.attach(websocket)
        subscriber.writer_task = asyncio.create_task(self._drain(subscriber))
        return subscriber

    def attach(self, websocket: SocketLike) -> Subscriber:
        subscriber = Subscriber(websocket, outbox_size=self._outbox_size)
        logger.debug("subscriber %s attached", subscriber.id)
        return subscriber

    def detach(self, subscriber: Subscriber) -> None:
        """Drop a subscriber whose transport is gone; safe to call repeatedly."""
        if subscriber.closed:
            return
        subscriber.closed = True
        stale: list[Subscriber] = []
        self._leave(subscriber, stale)
        task = subscriber.writer_task
        if task is not None and task is not _current_task():
            task.cancel()
        logger.debug("subscriber %s detached", subscriber.id)
        self._drop_stale(stale)

    def subscribers(self, room_id: str) -> list[Subscriber]:
        return list(self._rooms.get(room_id, {}).values())

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def handle_raw(self, subscriber: Subscriber, raw: str | bytes | dict[str, Any]) -> None:
        if subscriber.closed:
            return
        try:
            message = decode_message(raw)
        except MalformedMessageError as exc:
            logger.warning("dropping malformed message from subscriber %s: %s", subscriber.id, exc)
            return
        self.apply(subscriber, message)

    def apply(self, subscriber: Subscriber, message: JoinRoom | LeaveRoom | ScoreUpdate | RoomData) -> None:
        stale: list[Subscriber] = []
        if isinstance(message, JoinRoom):
            self._join(subscriber, message, stale)
        elif isinstance(message, LeaveRoom):
            if subscriber.room_id != message.room_id:
                logger.warning(
                    "subscriber %s left room %s without being joined to it", subscriber.id, message.room_id
                )
            else:
                self._leave(subscriber, stale)
        elif isinstance(message, ScoreUpdate):
            self._score_update(subscriber, message, stale)
        elif isinstance(message, RoomData):
            logger.warning("dropping room_data sent by subscriber %s", subscriber.id)
        else:
            raise TypeError(f"unhandled message type {type(message).__name__}")
        self._drop_stale(stale)

    def _join(self, subscriber: Subscriber, message: JoinRoom, stale: list[Subscriber]) -> None:
        if subscriber.room_id is not None and (
            subscriber.room_id != message.room_id or subscriber.username != message.username
        ):
            self._leave(subscriber, stale)

        room_id, username = message.room_id, message.username
        self._store.register_user(username)
        self._registry.join(room_id, username)
        self._rooms.setdefault(room_id, {})[subscriber.id] = subscriber
        subscriber.room_id = room_id
        subscriber.username = username

        snapshot = RoomData(room_id=room_id, participants=self._store.get_room_scores(room_id))
        if not subscriber.enqueue(encode_message(snapshot)):
            stale.append(subscriber)
        self._fanout(room_id, encode_message(message), exclude=subscriber, stale=stale)
        logger.info("%s joined room %s", username, room_id)

    def _leave(self, subscriber: Subscriber, stale: list[Subscriber]) -> None:
        room_id, username = subscriber.room_id, subscriber.username
        if room_id is None or username is None:
            return
        remaining = self._rooms.get(room_id, {})
        remaining.pop(subscriber.id, None)
        if not remaining:
            self._rooms.pop(room_id, None)
        subscriber.room_id = None

        # Another live connection for the same player keeps the membership.
        if any(other.username == username for other in remaining.values()):
            logger.debug("%s still connected to room %s", username, room_id)
            return
        self._registry.leave(room_id, username)
        self._fanout(room_id, encode_message(LeaveRoom(room_id=room_id, username=username)), exclude=None, stale=stale)
        logger.info("%s left room %s", username, room_id)

    def _score_update(self, subscriber: Subscriber, message: ScoreUpdate, stale: list[Subscriber]) -> None:
        if subscriber.room_id != message.room_id:
            logger.warning(
                "dropping score_update for room %s from subscriber %s joined to %s",
                message.room_id,
                subscriber.id,
                subscriber.room_id,
            )
            return
        if message.score.username != subscriber.username:
            logger.warning(
                "dropping score_update for %s sent by %s", message.score.username, subscriber.username
            )
            return

        # Counters only grow, so the record with the larger total is the newer one.
        stored = self._store.get_score(message.score.username)
        score = stored if stored.total >= message.score.total else message.score
        update = ScoreUpdate(room_id=message.room_id, score=score)
        self._fanout(message.room_id, encode_message(update), exclude=subscriber, stale=stale)

    def _fanout(
        self,
        room_id: str,
        payload: dict[str, Any],
        exclude: Subscriber | None,
        stale: list[Subscriber],
    ) -> None:
        for subscriber in list(self._rooms.get(room_id, {}).values()):
            if subscriber is exclude:
                continue
            if not subscriber.enqueue(payload):
                stale.append(subscriber)

    def _drop_stale(self, stale: list[Subscriber]) -> None:
        for subscriber in stale:
            if not subscriber.closed:
                logger.warning("dropping subscriber %s after failed delivery", subscriber.id)
            self.detach(subscriber)

    async def _drain(self, subscriber: Subscriber) -> None:
        while not subscriber.closed:
            payload = await subscriber.outbox.get()
            try:
                await subscriber.websocket.send_json(payload)
            except (RuntimeError, OSError, WebSocketDisconnect):
                logger.info("send to subscriber %s failed, treating as disconnect", subscriber.id)
                self.detach(subscriber)
                return


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
