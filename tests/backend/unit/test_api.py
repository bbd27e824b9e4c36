import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from globetrotter.backend.api import create_app
from globetrotter.backend.config import BackendSettings
from globetrotter.backend.content import Destination, InMemoryContentProvider
from globetrotter.backend.store import InMemoryScoreStore

SETTINGS = BackendSettings(
    host="127.0.0.1",
    port=8000,
    public_url="http://trivia.test",
    outbox_size=64,
    log_level="INFO",
)


def _client(store: InMemoryScoreStore | None = None, **kwargs) -> TestClient:
    return TestClient(create_app(store=store or InMemoryScoreStore(), settings=SETTINGS, **kwargs))


def test_register_and_save_scores() -> None:
    client = _client()

    registered = client.post("/api/users", json={"username": "alice"})
    saved = client.post("/api/scores", json={"username": "alice", "is_correct": True})
    client.post("/api/scores", json={"username": "alice", "is_correct": False})

    assert registered.status_code == 200
    assert registered.json() == {"username": "alice", "correct": 0, "incorrect": 0, "total": 0}
    assert saved.json() == {"username": "alice", "correct": 1, "incorrect": 0, "total": 1}
    assert client.get("/api/scores/alice").json() == {"username": "alice", "correct": 1, "incorrect": 1, "total": 2}
    assert client.get("/api/scores").json() == [{"username": "alice", "correct": 1, "incorrect": 1, "total": 2}]


def test_unknown_player_and_room_return_empty_results() -> None:
    client = _client()

    assert client.get("/api/scores/nobody").json() == {"username": "nobody", "correct": 0, "incorrect": 0, "total": 0}
    assert client.get("/api/rooms/nowhere/scores").json() == []


def test_register_rejects_empty_username() -> None:
    client = _client()

    assert client.post("/api/users", json={"username": ""}).status_code == 422


def test_question_endpoint_returns_options_with_the_answer() -> None:
    client = _client()

    response = client.get("/api/questions/random", params={"count": 3})

    assert response.status_code == 200
    question = response.json()
    assert len(question["options"]) == 3
    assert question["destination_id"] in {option["id"] for option in question["options"]}
    assert question["clue"]
    assert question["fact"]


def test_question_endpoint_reports_unavailable_content() -> None:
    client = _client(content=InMemoryContentProvider(destinations=()))

    assert client.get("/api/questions/random").status_code == 503


def test_clue_endpoint_returns_hint_or_404() -> None:
    destination = Destination(id="x", name="X", clues=("first", "second"), facts=("fact",))
    client = _client(content=InMemoryContentProvider(destinations=(destination,)))

    assert client.get("/api/destinations/x/clues/1").json() == {"destination_id": "x", "index": 1, "clue": "second"}
    assert client.get("/api/destinations/x/clues/2").status_code == 404
    assert client.get("/api/destinations/y/clues/0").status_code == 404


def test_share_endpoint_builds_invite_link() -> None:
    client = _client()

    response = client.get("/api/share", params={"username": "alice", "room_id": "R1"})

    assert response.json() == {"url": "http://trivia.test/game?inviter=alice&room=R1"}


def test_room_scenario_over_websocket() -> None:
    store = InMemoryScoreStore()
    app = create_app(store=store, settings=SETTINGS)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws_alice:
            ws_alice.send_json({"type": "join_room", "roomId": "R1", "username": "alice"})
            snapshot = ws_alice.receive_json()
            assert snapshot == {
                "type": "room_data",
                "roomId": "R1",
                "participants": [{"username": "alice", "correct": 0, "incorrect": 0, "total": 0}],
            }
            assert client.get("/api/rooms/R1/scores").json() == snapshot["participants"]

            saved = client.post("/api/scores", json={"username": "alice", "is_correct": True, "room_id": "R1"})
            assert client.get("/api/rooms/R1/scores").json() == [saved.json()]

            with client.websocket_connect("/ws") as ws_bob:
                ws_bob.send_json({"type": "join_room", "roomId": "R1", "username": "bob"})
                bob_snapshot = ws_bob.receive_json()
                alice_notice = ws_alice.receive_json()

                ws_alice.send_json({"type": "score_update", "roomId": "R1", "score": saved.json()})
                bob_update = ws_bob.receive_json()

            alice_leave_notice = ws_alice.receive_json()

        remaining = client.get("/api/rooms/R1/scores").json()

    assert bob_snapshot["type"] == "room_data"
    assert bob_snapshot["participants"][0] == {"username": "alice", "correct": 1, "incorrect": 0, "total": 1}
    assert alice_notice == {"type": "join_room", "roomId": "R1", "username": "bob"}
    assert bob_update == {"type": "score_update", "roomId": "R1", "score": saved.json()}
    assert alice_leave_notice == {"type": "leave_room", "roomId": "R1", "username": "bob"}
    assert remaining == []


def test_websocket_disconnect_removes_player_from_room() -> None:
    store = InMemoryScoreStore()
    app = create_app(store=store, settings=SETTINGS)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws_alice:
            ws_alice.send_json({"type": "join_room", "roomId": "R1", "username": "alice"})
            ws_alice.receive_json()
            assert [score["username"] for score in client.get("/api/rooms/R1/scores").json()] == ["alice"]

        assert client.get("/api/rooms/R1/scores").json() == []
        assert client.get("/api/scores/alice").json()["username"] == "alice"


def test_websocket_survives_malformed_frames() -> None:
    app = create_app(store=InMemoryScoreStore(), settings=SETTINGS)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_text("definitely not json")
            websocket.send_json({"type": "unknown"})
            websocket.send_json({"type": "join_room", "roomId": "R1", "username": "alice"})
            message = websocket.receive_json()

    assert message["type"] == "room_data"


def test_websocket_drops_binary_frames_and_keeps_serving() -> None:
    app = create_app(store=InMemoryScoreStore(), settings=SETTINGS)

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as websocket:
            websocket.send_bytes(b"\xff")
            websocket.send_json({"type": "join_room", "roomId": "R1", "username": "alice"})
            message = websocket.receive_json()

    assert message["type"] == "room_data"
    assert message["participants"][0]["username"] == "alice"
