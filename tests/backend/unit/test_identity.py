from globetrotter.backend.identity import build_share_url, generate_guest_name, resolve_username


def test_generate_guest_name_returns_distinct_guest_names() -> None:
    first = generate_guest_name()
    second = generate_guest_name()

    assert first.startswith("Guest-")
    assert first != second


def test_resolve_username_prefers_stored_name() -> None:
    assert resolve_username("alice", "bob") == "alice"


def test_resolve_username_generates_guest_for_invited_newcomer() -> None:
    assert resolve_username(None, "bob").startswith("Guest-")


def test_resolve_username_without_stored_name_or_inviter_is_none() -> None:
    assert resolve_username(None, None) is None
    assert resolve_username("", "") is None


def test_build_share_url_encodes_inviter_and_room() -> None:
    assert build_share_url("http://host/", "Jo Ann") == "http://host/game?inviter=Jo+Ann"
    assert build_share_url("http://host", "jo", room_id="R1") == "http://host/game?inviter=jo&room=R1"
