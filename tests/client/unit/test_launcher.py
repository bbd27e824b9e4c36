from globetrotter.backend.models import PlayerScore
from globetrotter.client.launcher import check_answer, format_leaderboard, parse_args, websocket_url


def test_parse_args_defaults() -> None:
    args = parse_args(["--username", "alice"])

    assert args.username == "alice"
    assert args.server == "http://127.0.0.1:8000"
    assert args.rounds == 5
    assert args.start_server is False


def test_websocket_url_follows_http_scheme() -> None:
    assert websocket_url("http://127.0.0.1:8000") == "ws://127.0.0.1:8000/ws"
    assert websocket_url("https://trivia.example") == "wss://trivia.example/ws"


def test_check_answer_matches_option_number() -> None:
    question = {"destination_id": "2", "options": [{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]}

    assert check_answer(question, "2") is True
    assert check_answer(question, "1") is False
    assert check_answer(question, "3") is None
    assert check_answer(question, "b") is None


def test_format_leaderboard_marks_current_player() -> None:
    board = [
        PlayerScore(username="bob", correct=3, incorrect=0, total=3),
        PlayerScore(username="alice", correct=1, incorrect=1, total=2),
    ]

    lines = format_leaderboard(board, "alice").splitlines()

    assert lines[0] == "Leaderboard:"
    assert lines[1].startswith("  1. bob")
    assert lines[2].startswith("* 2. alice")
    assert lines[2].endswith("1/2")
