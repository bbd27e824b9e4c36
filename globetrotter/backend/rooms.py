"""Room membership tracking, independent of score data."""

from __future__ import annotations

import threading


class RoomRegistry:
    """Maps room ids to insertion-ordered member sets.

    Rooms are created on first join and dropped once their last member
    leaves. A username may be a member of several rooms at once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rooms: dict[str, dict[str, None]] = {}

    def join(self, room_id: str, username: str) -> None:
        with self._lock:
            self._rooms.setdefault(room_id, {})[username] = None

    def leave(self, room_id: str, username: str) -> None:
        with self._lock:
            members = self._rooms.get(room_id)
            if members is None:
                return
            members.pop(username, None)
            if not members:
                self._rooms.pop(room_id, None)

    def members(self, room_id: str) -> list[str]:
        with self._lock:
            return list(self._rooms.get(room_id, ()))

    def is_member(self, room_id: str, username: str) -> bool:
        with self._lock:
            return username in self._rooms.get(room_id, ())

    def rooms_for(self, username: str) -> list[str]:
        with self._lock:
            return [room_id for room_id, members in self._rooms.items() if username in members]

    def room_ids(self) -> list[str]:
        with self._lock:
            return list(self._rooms)
