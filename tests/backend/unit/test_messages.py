import json

import pytest

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


def test_decode_message_selects_variant_by_type() -> None:
    join = decode_message('{"type": "join_room", "roomId": "R1", "username": "alice"}')
    leave = decode_message({"type": "leave_room", "roomId": "R1", "username": "alice"})
    update = decode_message(
        {
            "type": "score_update",
            "roomId": "R1",
            "score": {"username": "alice", "correct": 2, "incorrect": 1, "total": 3},
        }
    )
    data = decode_message(b'{"type": "room_data", "roomId": "R1", "participants": []}')

    assert join == JoinRoom(room_id="R1", username="alice")
    assert isinstance(leave, LeaveRoom)
    assert isinstance(update, ScoreUpdate)
    assert update.score.correct == 2
    assert isinstance(data, RoomData)
    assert data.participants == []


def test_encode_message_uses_wire_field_names() -> None:
    message = ScoreUpdate(room_id="R1", score=PlayerScore(username="bob", correct=1, incorrect=0, total=1))

    payload = encode_message(message)

    assert payload == {
        "type": "score_update",
        "roomId": "R1",
        "score": {"username": "bob", "correct": 1, "incorrect": 0, "total": 1},
    }
    assert decode_message(json.dumps(payload)) == message


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        '{"type": "teleport", "roomId": "R1"}',
        '{"type": "join_room", "username": "alice"}',
        '{"type": "join_room", "roomId": "", "username": "alice"}',
        '{"type": "score_update", "roomId": "R1", "score": {"username": "a", "correct": 1, "incorrect": 0, "total": 5}}',
        '{"type": "score_update", "roomId": "R1", "score": {"username": "a", "correct": -1, "incorrect": 1, "total": 0}}',
    ],
)
def test_decode_message_rejects_out_of_schema_frames(raw: str) -> None:
    with pytest.raises(MalformedMessageError):
        decode_message(raw)


def test_decode_message_rejects_non_utf8_bytes() -> None:
    with pytest.raises(MalformedMessageError, match="UTF-8"):
        decode_message(b"\xff")
