"""Client package: connection session, leaderboard reconciliation and pull client."""

from .api_client import ScoreClient, ScoreServiceError
from .reconciler import InviterChallenge, Reconciler
from .session import ConnectionSession, SessionState, SessionStateError
from .sync import POLL_INTERVAL_S, RoomSync
from .transport import Transport, TransportError, websockets_transport

__all__ = [
    "ConnectionSession",
    "InviterChallenge",
    "POLL_INTERVAL_S",
    "Reconciler",
    "RoomSync",
    "ScoreClient",
    "ScoreServiceError",
    "SessionState",
    "SessionStateError",
    "Transport",
    "TransportError",
    "websockets_transport",
]
