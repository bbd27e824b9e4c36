"""Player identity helpers: guest names and challenge links."""

from __future__ import annotations

import secrets
from urllib.parse import urlencode

GUEST_SUFFIX_BYTES = 3


def generate_guest_name() -> str:
    """Generate a display name for a player who arrived through an invite."""
    return f"Guest-{secrets.token_hex(GUEST_SUFFIX_BYTES)}"


def resolve_username(stored: str | None, inviter: str | None) -> str | None:
    """Pick the session username.

    A stored name always wins. Without one, an inviter reference means a
    fresh guest identity; with neither the caller has to ask the player.
    """
    if stored:
        return stored
    if inviter:
        return generate_guest_name()
    return None


def build_share_url(base_url: str, username: str, room_id: str | None = None) -> str:
    params = {"inviter": username}
    if room_id:
        params["room"] = room_id
    return f"{base_url.rstrip('/')}/game?{urlencode(params)}"
