"""Tests for impostor.comms -- ChangeNotifier and join links."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from impostor.comms.links import join_link, resolve_join_link
from impostor.comms.notifier import ChangeNotifier
from impostor.engine.state import Player, Room


_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _room(code: str = "ABC123") -> Room:
    return Room(code=code, updated_at=_T0)


def _player(pid: str, order: int, code: str = "ABC123") -> Player:
    return Player(id=pid, room_code=code, name=pid, created_at=_T0 + timedelta(seconds=order))


# ======================================================================
# ChangeNotifier tests
# ======================================================================


class TestChangeNotifier:
    """Tests for subscribe / publish / unsubscribe."""

    def test_room_callback(self) -> None:
        n = ChangeNotifier()
        got: list[Room] = []
        n.subscribe("ABC123", got.append)
        n.publish_room(_room())
        assert got == [_room()]

    def test_scoped_to_room_code(self) -> None:
        n = ChangeNotifier()
        got: list[Room] = []
        n.subscribe("ABC123", got.append)
        n.publish_room(_room("ZZZ999"))
        assert got == []

    def test_players_delivered_ordered_by_created_at(self) -> None:
        n = ChangeNotifier()
        got: list[list[Player]] = []
        n.subscribe("ABC123", None, got.append)
        n.publish_players("ABC123", [_player("c", 3), _player("a", 1), _player("b", 2)])
        assert [p.id for p in got[0]] == ["a", "b", "c"]

    def test_every_subscriber_notified(self) -> None:
        n = ChangeNotifier()
        first: list[Room] = []
        second: list[Room] = []
        n.subscribe("ABC123", first.append)
        n.subscribe("ABC123", second.append)
        n.publish_room(_room())
        assert len(first) == 1 and len(second) == 1
        assert n.subscriber_count("ABC123") == 2

    def test_unsubscribe(self) -> None:
        n = ChangeNotifier()
        got: list[Room] = []
        unsubscribe = n.subscribe("ABC123", got.append)
        unsubscribe()
        n.publish_room(_room())
        assert got == []
        assert n.subscriber_count("ABC123") == 0

    def test_unsubscribe_twice_is_harmless(self) -> None:
        n = ChangeNotifier()
        unsubscribe = n.subscribe("ABC123", lambda r: None)
        unsubscribe()
        unsubscribe()
        assert n.subscriber_count("ABC123") == 0

    def test_raising_callback_does_not_block_others(self) -> None:
        n = ChangeNotifier()
        got: list[Room] = []

        def boom(room: Room) -> None:
            raise RuntimeError("boom")

        n.subscribe("ABC123", boom)
        n.subscribe("ABC123", got.append)
        n.publish_room(_room())
        assert len(got) == 1

    def test_unsubscribe_during_delivery(self) -> None:
        n = ChangeNotifier()
        got: list[Room] = []
        unsubscribe = None

        def once(room: Room) -> None:
            got.append(room)
            unsubscribe()

        unsubscribe = n.subscribe("ABC123", once)
        n.publish_room(_room())
        n.publish_room(_room())
        assert len(got) == 1


# ======================================================================
# Join links
# ======================================================================


class TestJoinLinks:
    """Tests for join_link / resolve_join_link."""

    def test_join_link(self) -> None:
        assert join_link("https://play.example/", "abc123") == "https://play.example/?join=ABC123"

    def test_join_link_keeps_other_params(self) -> None:
        link = join_link("https://play.example/?lang=es", "ABC123")
        assert "lang=es" in link
        assert "join=ABC123" in link

    def test_resolve_upper_cases(self) -> None:
        assert resolve_join_link("https://play.example/?join=abc123") == "ABC123"

    @pytest.mark.parametrize("url", [
        "https://play.example/",
        "https://play.example/?join=",
        "https://play.example/?other=1",
    ])
    def test_resolve_missing(self, url: str) -> None:
        assert resolve_join_link(url) is None

    def test_round_trip(self) -> None:
        assert resolve_join_link(join_link("http://localhost:5173/", "xy12ab")) == "XY12AB"
