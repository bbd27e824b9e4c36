"""Terminal player for a Globetrotter room."""

from __future__ import annotations

import argparse
import asyncio
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Any
from urllib import error, request

from globetrotter.backend.config import configure_logging
from globetrotter.backend.identity import resolve_username
from globetrotter.backend.models import PlayerScore
from globetrotter.client.api_client import ScoreClient, ScoreServiceError
from globetrotter.client.session import ConnectionSession
from globetrotter.client.sync import RoomSync
from globetrotter.client.transport import websockets_transport

ROOT_DIR = Path(__file__).resolve().parents[2]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Globetrotter terminal player")
    parser.add_argument("--username", default=os.getenv("GLOBETROTTER_USERNAME", ""))
    parser.add_argument("--inviter", default="")
    parser.add_argument("--room", default="")
    parser.add_argument("--server", default="http://127.0.0.1:8000")
    parser.add_argument("--rounds", type=int, default=5)
    parser.add_argument("--start-server", action="store_true")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


def wait_for_server(server_url: str, timeout_s: float = 8.0) -> bool:
    start = time.time()
    while time.time() - start < timeout_s:
        try:
            with request.urlopen(f"{server_url}/docs", timeout=0.5) as response:
                if int(response.status) < 500:
                    return True
        except (error.URLError, TimeoutError):
            pass
        time.sleep(0.2)
    return False


def maybe_start_server(server_url: str) -> subprocess.Popen[str] | None:
    host_port = server_url.removeprefix("http://")
    host, port = host_port.split(":", maxsplit=1)
    command = [
        sys.executable,
        "-m",
        "uvicorn",
        "globetrotter.backend.api:app",
        "--host",
        host,
        "--port",
        port,
    ]
    process = subprocess.Popen(command, cwd=str(ROOT_DIR), env=os.environ.copy())
    if wait_for_server(server_url):
        return process
    process.terminate()
    return None


def websocket_url(server_url: str) -> str:
    if server_url.startswith("https://"):
        return "wss://" + server_url.removeprefix("https://") + "/ws"
    return "ws://" + server_url.removeprefix("http://") + "/ws"


def format_leaderboard(scores: list[PlayerScore], current_username: str) -> str:
    lines = ["Leaderboard:"]
    for position, score in enumerate(scores, start=1):
        marker = "*" if score.username == current_username else " "
        lines.append(f"{marker}{position:>2}. {score.username:<20} {score.correct}/{score.total}")
    return "\n".join(lines)


def check_answer(question: dict[str, Any], reply: str) -> bool | None:
    """Return whether ``reply`` picks the right option, or None for an invalid pick."""
    options = question["options"]
    if not reply.isdigit() or not 1 <= int(reply) <= len(options):
        return None
    return options[int(reply) - 1]["id"] == question["destination_id"]


async def _ask(prompt: str) -> str:
    return (await asyncio.to_thread(input, prompt)).strip().lower()


async def play_round(sync: RoomSync, scores: ScoreClient) -> None:
    try:
        question = await scores.get_question()
    except ScoreServiceError as exc:
        print(f"Could not load a question: {exc}")
        return

    clue_index = 0
    print(f"\nClue: {question['clue']}")
    for number, option in enumerate(question["options"], start=1):
        print(f"  {number}. {option['name']}")

    while True:
        reply = await _ask("Where am I? (number, or 'h' for a hint) ")
        if reply == "h":
            if clue_index + 1 >= question["clue_count"]:
                print("No more hints available.")
                continue
            try:
                clue = await scores.get_clue(question["destination_id"], clue_index + 1)
            except ScoreServiceError as exc:
                print(f"Could not load a hint: {exc}")
                continue
            clue_index += 1
            print(f"Hint: {clue}")
            continue
        is_correct = check_answer(question, reply)
        if is_correct is None:
            print("Pick one of the listed numbers.")
            continue
        break

    score = await sync.answer(is_correct)
    verdict = "Correct!" if is_correct else f"Wrong, it was {question['destination_name']}."
    print(f"{verdict} {question['fact']}")
    print(f"Your score: {score.correct}/{score.total}")
    print(format_leaderboard(sync.reconciler.leaderboard(), sync.username))
    if sync.degraded:
        print("(live updates unavailable, refreshing every few seconds)")


async def play(args: argparse.Namespace, username: str) -> int:
    scores = ScoreClient(args.server)
    session = ConnectionSession(websockets_transport(websocket_url(args.server)))
    inviter_score: PlayerScore | None = None
    if args.inviter:
        try:
            inviter_score = await scores.get_score(args.inviter)
        except ScoreServiceError as exc:
            print(f"Could not load {args.inviter}'s score: {exc}")
        else:
            print(f"{args.inviter} has challenged you! Their score: {inviter_score.correct}/{inviter_score.total}")

    sync = RoomSync(session, scores, username=username, room_id=args.room or None, inviter=inviter_score)
    sync.on_challenge_beaten(lambda score: print(f"You beat {args.inviter}!"))
    await sync.start()
    try:
        for _ in range(args.rounds):
            await play_round(sync, scores)
        try:
            print(f"\nChallenge a friend: {await scores.share_url(username, room_id=sync.room_id)}")
        except ScoreServiceError as exc:
            print(f"Could not build a share link: {exc}")
    finally:
        await sync.stop()
        await scores.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level.upper())

    username = resolve_username(args.username or None, args.inviter or None)
    if username is None:
        username = input("Display name: ").strip()
    if not username:
        print("A display name is required.", file=sys.stderr)
        return 1

    server_process: subprocess.Popen[str] | None = None
    if args.start_server:
        server_process = maybe_start_server(args.server)
        if server_process is None:
            print("Server could not be started.", file=sys.stderr)
            return 1
    elif not wait_for_server(args.server):
        print("Server unreachable. Use --start-server or run uvicorn manually.", file=sys.stderr)
        return 1

    try:
        return asyncio.run(play(args, username))
    except KeyboardInterrupt:
        return 130
    finally:
        if server_process is not None:
            server_process.terminate()


if __name__ == "__main__":
    raise SystemExit(main())
