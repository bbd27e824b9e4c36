"""FastAPI endpoints for scores, rooms, questions and websocket sync."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .config import BackendSettings, configure_logging, load_settings
from .content import ContentProvider, ContentUnavailableError, InMemoryContentProvider
from .hub import RoomHub
from .identity import build_share_url
from .models import PlayerScore
from .store import InMemoryScoreStore, ScoreStore

logger = logging.getLogger(__name__)


class RegisterUserRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)


class SaveScoreRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    is_correct: bool
    room_id: str | None = Field(default=None, min_length=1)


class DestinationOption(BaseModel):
    id: str
    name: str


class QuestionResponse(BaseModel):
    destination_id: str
    destination_name: str
    clue: str
    clue_count: int
    fact: str
    options: list[DestinationOption]


class ClueResponse(BaseModel):
    destination_id: str
    index: int
    clue: str


class ShareResponse(BaseModel):
    url: str


def create_app(
    store: ScoreStore | None = None,
    content: ContentProvider | None = None,
    settings: BackendSettings | None = None,
) -> FastAPI:
    app_settings = settings if settings is not None else load_settings()
    configure_logging(app_settings.log_level)

    app = FastAPI(title="Globetrotter API", version="0.3.0")
    score_store = store if store is not None else InMemoryScoreStore()
    content_provider = content if content is not None else InMemoryContentProvider()
    room_hub = RoomHub(store=score_store, outbox_size=app_settings.outbox_size)
    app.state.room_hub = room_hub
    app.state.settings = app_settings

    def get_store() -> ScoreStore:
        return score_store

    def get_content() -> ContentProvider:
        return content_provider

    @app.post("/api/users", response_model=PlayerScore)
    def register_user(
        payload: RegisterUserRequest,
        local_store: ScoreStore = Depends(get_store),
    ) -> PlayerScore:
        return local_store.register_user(payload.username)

    @app.post("/api/scores", response_model=PlayerScore)
    def save_score(
        payload: SaveScoreRequest,
        local_store: ScoreStore = Depends(get_store),
    ) -> PlayerScore:
        return local_store.save_score(payload.username, payload.is_correct, room_id=payload.room_id)

    @app.get("/api/scores", response_model=list[PlayerScore])
    def get_all_scores(local_store: ScoreStore = Depends(get_store)) -> list[PlayerScore]:
        return local_store.get_all_scores()

    @app.get("/api/scores/{username}", response_model=PlayerScore)
    def get_score(username: str, local_store: ScoreStore = Depends(get_store)) -> PlayerScore:
        return local_store.get_score(username)

    @app.get("/api/rooms/{room_id}/scores", response_model=list[PlayerScore])
    def get_room_scores(room_id: str, local_store: ScoreStore = Depends(get_store)) -> list[PlayerScore]:
        return local_store.get_room_scores(room_id)

    @app.get("/api/questions/random", response_model=QuestionResponse)
    async def get_question(
        count: int = Query(default=4, ge=2, le=8),
        local_content: ContentProvider = Depends(get_content),
    ) -> QuestionResponse:
        try:
            destination = await local_content.get_random_destination()
            options = await local_content.get_random_options(destination, count)
            clue = await local_content.get_clue_by_index(destination, 0)
            fact = await local_content.get_random_fact(destination)
        except ContentUnavailableError as exc:
            logger.warning("question load failed: %s", exc)
            raise HTTPException(status_code=503, detail="Question content unavailable") from exc
        return QuestionResponse(
            destination_id=destination.id,
            destination_name=destination.name,
            clue=clue,
            clue_count=len(destination.clues),
            fact=fact,
            options=[DestinationOption(id=option.id, name=option.name) for option in options],
        )

    @app.get("/api/destinations/{destination_id}/clues/{index}", response_model=ClueResponse)
    async def get_clue(
        destination_id: str,
        index: int,
        local_content: ContentProvider = Depends(get_content),
    ) -> ClueResponse:
        try:
            destination = await local_content.get_destination(destination_id)
            clue = await local_content.get_clue_by_index(destination, index)
        except ContentUnavailableError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return ClueResponse(destination_id=destination_id, index=index, clue=clue)

    @app.get("/api/share", response_model=ShareResponse)
    def share(
        username: str = Query(min_length=1),
        room_id: str | None = Query(default=None),
    ) -> ShareResponse:
        return ShareResponse(url=build_share_url(app_settings.public_url, username, room_id=room_id))

    @app.websocket("/ws")
    async def room_ws(websocket: WebSocket) -> None:
        subscriber = await room_hub.connect(websocket)
        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                raw = frame.get("text")
                if raw is None:
                    raw = frame.get("bytes") or b""
                room_hub.handle_raw(subscriber, raw)
        except WebSocketDisconnect:
            pass
        finally:
            room_hub.detach(subscriber)

    return app


app = create_app()
