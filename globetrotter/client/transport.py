"""Client transports for the room websocket."""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException


class TransportError(ConnectionError):
    """The underlying channel failed to open, send or receive."""


class Transport(Protocol):
    async def send_text(self, data: str) -> None: ...

    async def receive_text(self) -> str: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[], Awaitable[Transport]]


class WebSocketsTransport:
    def __init__(self, connection: ClientConnection) -> None:
        self._connection = connection

    async def send_text(self, data: str) -> None:
        try:
            await self._connection.send(data)
        except (WebSocketException, OSError) as exc:
            raise TransportError(str(exc)) from exc

    async def receive_text(self) -> str:
        try:
            message = await self._connection.recv()
        except (WebSocketException, OSError) as exc:
            raise TransportError(str(exc)) from exc
        if isinstance(message, bytes):
            return message.decode("utf-8")
        return message

    async def close(self) -> None:
        await self._connection.close()


def websockets_transport(url: str, open_timeout: float = 5.0) -> TransportFactory:
    """Return a factory that opens a fresh websocket to ``url`` on every call."""

    async def open_transport() -> Transport:
        try:
            connection = await connect(url, open_timeout=open_timeout)
        except (WebSocketException, OSError, TimeoutError) as exc:
            raise TransportError(f"cannot connect to {url}: {exc}") from exc
        return WebSocketsTransport(connection)

    return open_transport
