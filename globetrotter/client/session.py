"""Client connection session: one websocket, at most one joined room."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from typing import Callable

from globetrotter.backend.messages import (
    JoinRoom,
    LeaveRoom,
    MalformedMessageError,
    RoomData,
    ScoreUpdate,
    decode_message,
    encode_message,
)
from globetrotter.backend.models import PlayerScore
from globetrotter.client.transport import Transport, TransportError, TransportFactory

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAYS: tuple[float, ...] = (0.5, 1.0, 2.0, 5.0)
OUTBOX_SIZE = 1024

Message = JoinRoom | LeaveRoom | ScoreUpdate | RoomData
MessageHandler = Callable[[Message], None]


class SessionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    JOINED = "joined"
    IDLE = "idle"
    CLOSED = "closed"


LIVE_STATES = frozenset({SessionState.CONNECTED, SessionState.JOINED, SessionState.IDLE})


class SessionStateError(RuntimeError):
    """An operation was requested from a state that does not allow it."""


class ConnectionSession:
    """Owns the transport for one client and mirrors its room membership.

    Every public method returns immediately: frames are queued and written
    by a background task, and transport failures are retried with backoff
    instead of being raised. Handlers registered with ``on_message`` receive
    every decoded inbound message.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        reconnect_delays: tuple[float, ...] = DEFAULT_RECONNECT_DELAYS,
    ) -> None:
        if not reconnect_delays:
            raise ValueError("reconnect_delays must not be empty")
        self._transport_factory = transport_factory
        self._reconnect_delays = reconnect_delays
        self._state = SessionState.DISCONNECTED
        self._handlers: tuple[MessageHandler, ...] = ()
        self._state_handlers: tuple[Callable[[SessionState], None], ...] = ()
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=OUTBOX_SIZE)
        self._task: asyncio.Task[None] | None = None
        self._rejoin = False
        self.username: str | None = None
        self.room_id: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def live(self) -> bool:
        return self._state in LIVE_STATES

    def connect(self) -> None:
        """Start connecting in the background; must be called with a running loop."""
        if self._task is not None and not self._task.done():
            return
        self._set_state(SessionState.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(self._run())

    def join_room(self, username: str, room_id: str) -> None:
        if self._state not in (SessionState.CONNECTING, SessionState.CONNECTED, SessionState.JOINED, SessionState.IDLE):
            raise SessionStateError(f"cannot join a room while {self._state.value}")
        if not username or not room_id:
            raise ValueError("username and room_id are required")
        if self.room_id is not None and self.room_id != room_id and not self._rejoin:
            self._send(LeaveRoom(room_id=self.room_id, username=self.username or username))
        self.username = username
        self.room_id = room_id
        self._rejoin = False
        self._send(JoinRoom(room_id=room_id, username=username))
        if self._state is not SessionState.CONNECTING:
            self._set_state(SessionState.JOINED)

    def leave_room(self) -> None:
        if self.room_id is None or self._state not in (SessionState.JOINED, SessionState.CONNECTING):
            raise SessionStateError(f"cannot leave a room while {self._state.value}")
        if not self._rejoin:
            self._send(LeaveRoom(room_id=self.room_id, username=self.username or ""))
        self.room_id = None
        self._rejoin = False
        if self._state is SessionState.JOINED:
            self._set_state(SessionState.IDLE)

    def send_score(self, score: PlayerScore) -> bool:
        """Publish the player's score to the joined room; False when not joined."""
        if self.room_id is None or self._state not in (SessionState.JOINED, SessionState.CONNECTING):
            logger.debug("score for %s not published, no room joined", score.username)
            return False
        self._send(ScoreUpdate(room_id=self.room_id, score=score))
        return True

    def on_message(self, handler: MessageHandler) -> Callable[[], None]:
        self._handlers = (*self._handlers, handler)

        def unsubscribe() -> None:
            self._handlers = tuple(existing for existing in self._handlers if existing is not handler)

        return unsubscribe

    def on_state_change(self, handler: Callable[[SessionState], None]) -> Callable[[], None]:
        self._state_handlers = (*self._state_handlers, handler)

        def unsubscribe() -> None:
            self._state_handlers = tuple(existing for existing in self._state_handlers if existing is not handler)

        return unsubscribe

    def disconnect(self) -> None:
        """Tear down the transport from any state; repeated calls are no-ops."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        self._outbox = asyncio.Queue(maxsize=OUTBOX_SIZE)
        self.room_id = None
        self._rejoin = False
        if self._state is not SessionState.CLOSED:
            self._set_state(SessionState.CLOSED)

    def _send(self, message: Message) -> None:
        try:
            self._outbox.put_nowait(json.dumps(encode_message(message)))
        except asyncio.QueueFull:
            logger.warning("outbox full, dropping %s for room %s", message.type, message.room_id)

    def _send_first(self, message: Message) -> None:
        """Queue ``message`` ahead of frames left over from a dropped transport."""
        pending: list[str] = []
        while not self._outbox.empty():
            pending.append(self._outbox.get_nowait())
        self._send(message)
        for payload in pending:
            try:
                self._outbox.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("outbox full after rejoin, dropping remaining queued frames")
                break

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        self._state = state
        for handler in self._state_handlers:
            try:
                handler(state)
            except Exception:
                logger.exception("state handler failed")

    def _dispatch(self, message: Message) -> None:
        for handler in self._handlers:
            if handler not in self._handlers:
                continue
            try:
                handler(message)
            except Exception:
                logger.exception("message handler failed for %s", message.type)

    async def _run(self) -> None:
        failures = 0
        while True:
            try:
                transport = await self._transport_factory()
            except TransportError as exc:
                delay = self._reconnect_delays[min(failures, len(self._reconnect_delays) - 1)]
                failures += 1
                logger.warning("connect failed (%s), retrying in %.1fs", exc, delay)
                await asyncio.sleep(delay)
                continue

            failures = 0
            if self._rejoin and self.room_id is not None and self.username is not None:
                self._rejoin = False
                self._send_first(JoinRoom(room_id=self.room_id, username=self.username))
            self._set_state(SessionState.JOINED if self.room_id is not None else SessionState.CONNECTED)

            try:
                await self._pump(transport)
            except TransportError as exc:
                logger.warning("transport lost: %s", exc)
            finally:
                await _close_quietly(transport)

            self._rejoin = self.room_id is not None
            self._set_state(SessionState.CONNECTING)
            await asyncio.sleep(self._reconnect_delays[0])

    async def _pump(self, transport: Transport) -> None:
        reader = asyncio.create_task(self._read(transport))
        writer = asyncio.create_task(self._write(transport))
        try:
            done, _ = await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                task.result()
        finally:
            reader.cancel()
            writer.cancel()

    async def _read(self, transport: Transport) -> None:
        while True:
            raw = await transport.receive_text()
            try:
                message = decode_message(raw)
            except MalformedMessageError as exc:
                logger.warning("ignoring malformed message from server: %s", exc)
                continue
            self._dispatch(message)

    async def _write(self, transport: Transport) -> None:
        while True:
            payload = await self._outbox.get()
            await transport.send_text(payload)


async def _close_quietly(transport: Transport) -> None:
    try:
        await transport.close()
    except (TransportError, OSError) as exc:
        logger.debug("error while closing transport: %s", exc)
