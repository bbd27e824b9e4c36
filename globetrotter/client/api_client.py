"""HTTP client for the pull side of room sync."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from globetrotter.backend.models import PlayerScore

_score_list = TypeAdapter(list[PlayerScore])


class ScoreServiceError(RuntimeError):
    """The score service could not be reached or answered unexpectedly."""


class ScoreClient:
    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def register_user(self, username: str) -> PlayerScore:
        data = await self._request("POST", "/api/users", json={"username": username})
        return _parse_score(data)

    async def save_score(self, username: str, is_correct: bool, room_id: str | None = None) -> PlayerScore:
        payload: dict[str, Any] = {"username": username, "is_correct": is_correct}
        if room_id is not None:
            payload["room_id"] = room_id
        data = await self._request("POST", "/api/scores", json=payload)
        return _parse_score(data)

    async def get_score(self, username: str) -> PlayerScore:
        return _parse_score(await self._request("GET", f"/api/scores/{username}"))

    async def get_all_scores(self) -> list[PlayerScore]:
        return _parse_scores(await self._request("GET", "/api/scores"))

    async def get_room_scores(self, room_id: str) -> list[PlayerScore]:
        return _parse_scores(await self._request("GET", f"/api/rooms/{room_id}/scores"))

    async def get_question(self, count: int = 4) -> dict[str, Any]:
        return await self._request("GET", "/api/questions/random", params={"count": count})

    async def get_clue(self, destination_id: str, index: int) -> str:
        data = await self._request("GET", f"/api/destinations/{destination_id}/clues/{index}")
        return str(data["clue"])

    async def share_url(self, username: str, room_id: str | None = None) -> str:
        params = {"username": username}
        if room_id is not None:
            params["room_id"] = room_id
        data = await self._request("GET", "/api/share", params=params)
        return str(data["url"])

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ScoreServiceError(f"{method} {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ScoreServiceError(f"{method} {path} returned a non-JSON body") from exc


def _parse_score(data: Any) -> PlayerScore:
    try:
        return PlayerScore.model_validate(data)
    except ValidationError as exc:
        raise ScoreServiceError(f"unexpected score payload: {exc}") from exc


def _parse_scores(data: Any) -> list[PlayerScore]:
    try:
        return _score_list.validate_python(data)
    except ValidationError as exc:
        raise ScoreServiceError(f"unexpected score list payload: {exc}") from exc
