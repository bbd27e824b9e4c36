"""Backend package for the Globetrotter room server."""

from .config import BackendSettings, configure_logging, load_settings
from .content import ContentProvider, ContentUnavailableError, Destination, InMemoryContentProvider
from .hub import RoomHub, Subscriber
from .identity import build_share_url, generate_guest_name, resolve_username
from .messages import JoinRoom, LeaveRoom, MalformedMessageError, RoomData, ScoreUpdate, decode_message, encode_message
from .models import PlayerScore
from .rooms import RoomRegistry
from .store import InMemoryScoreStore, ScoreStore

__all__ = [
    "BackendSettings",
    "build_share_url",
    "configure_logging",
    "ContentProvider",
    "ContentUnavailableError",
    "decode_message",
    "Destination",
    "encode_message",
    "generate_guest_name",
    "InMemoryContentProvider",
    "InMemoryScoreStore",
    "JoinRoom",
    "LeaveRoom",
    "load_settings",
    "MalformedMessageError",
    "PlayerScore",
    "resolve_username",
    "RoomData",
    "RoomHub",
    "RoomRegistry",
    "ScoreStore",
    "ScoreUpdate",
    "Subscriber",
]
