"""Wire envelope exchanged over the room websocket."""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from globetrotter.backend.models import PlayerScore


class MalformedMessageError(ValueError):
    """Raised when an inbound frame is not valid JSON or not a known message."""


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    room_id: str = Field(alias="roomId", min_length=1)


class JoinRoom(_Message):
    type: Literal["join_room"] = "join_room"
    username: str = Field(min_length=1)


class LeaveRoom(_Message):
    type: Literal["leave_room"] = "leave_room"
    username: str = Field(min_length=1)


class ScoreUpdate(_Message):
    type: Literal["score_update"] = "score_update"
    score: PlayerScore


class RoomData(_Message):
    type: Literal["room_data"] = "room_data"
    participants: list[PlayerScore] = Field(default_factory=list)


WireMessage = Annotated[Union[JoinRoom, LeaveRoom, ScoreUpdate, RoomData], Field(discriminator="type")]

_wire_adapter: TypeAdapter[Any] = TypeAdapter(WireMessage)


def decode_message(raw: str | bytes | dict[str, Any]) -> JoinRoom | LeaveRoom | ScoreUpdate | RoomData:
    """Parse one frame into its message variant."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedMessageError(f"invalid JSON: {exc.msg}") from exc
        except UnicodeDecodeError as exc:
            raise MalformedMessageError("frame is not UTF-8 text") from exc
    if not isinstance(raw, dict):
        raise MalformedMessageError("message must be a JSON object")
    try:
        return _wire_adapter.validate_python(raw)
    except ValidationError as exc:
        raise MalformedMessageError(str(exc)) from exc


def encode_message(message: JoinRoom | LeaveRoom | ScoreUpdate | RoomData) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)
