"""Tests for impostor.engine.state -- Player, Room and RoomSnapshot."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from impostor.engine.phase import RoomStatus
from impostor.engine.state import Player, Room, RoomSnapshot


_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ======================================================================
# Fixtures
# ======================================================================


@pytest.fixture
def room() -> Room:
    return Room(code="ABC123", updated_at=_T0)


@pytest.fixture
def snapshot(room: Room) -> RoomSnapshot:
    """Ana (host), a spectator that joined first, Beto, and a dead Caro."""
    return RoomSnapshot(
        room=room,
        players=(
            Player(id="s", room_code="ABC123", name="Sol", created_at=_T0, is_spectator=True),
            Player(id="a", room_code="ABC123", name="Ana", created_at=_T0 + timedelta(seconds=1)),
            Player(id="b", room_code="ABC123", name="Beto", created_at=_T0 + timedelta(seconds=2)),
            Player(
                id="c",
                room_code="ABC123",
                name="Caro",
                created_at=_T0 + timedelta(seconds=3),
                is_alive=False,
            ),
        ),
    )


# ======================================================================
# Player / Room records
# ======================================================================


class TestRecords:
    """Tests for the frozen Player and Room dataclasses."""

    def test_player_defaults(self) -> None:
        p = Player(id="p1", room_code="ABC123", name="Ana", created_at=_T0)
        assert p.is_alive is True
        assert p.is_spectator is False
        assert p.voted_for is None
        assert p.can_vote is True

    def test_player_frozen(self) -> None:
        p = Player(id="p1", room_code="ABC123", name="Ana", created_at=_T0)
        with pytest.raises(AttributeError):
            p.is_alive = False  # type: ignore[misc]

    def test_with_changes_returns_copy(self) -> None:
        p = Player(id="p1", room_code="ABC123", name="Ana", created_at=_T0)
        dead = p.with_changes(is_alive=False)
        assert dead.is_alive is False
        assert dead.can_vote is False
        assert p.is_alive is True

    def test_spectator_cannot_vote(self) -> None:
        p = Player(id="p1", room_code="ABC123", name="Ana", created_at=_T0, is_spectator=True)
        assert p.can_vote is False

    def test_room_defaults(self, room: Room) -> None:
        assert room.status is RoomStatus.LOBBY
        assert room.category is None
        assert room.secret_word is None
        assert room.impostor_id is None

    def test_room_to_dict_uses_wire_names(self, room: Room) -> None:
        d = room.with_changes(status=RoomStatus.PLAYING, secret_word="Pizza").to_dict()
        assert d == {
            "code": "ABC123",
            "status": "PLAYING",
            "category": None,
            "secret_word": "Pizza",
            "impostor_id": None,
            "updated_at": _T0.isoformat(),
        }

    def test_player_to_dict_uses_wire_names(self) -> None:
        p = Player(id="p1", room_code="ABC123", name="Ana", created_at=_T0, voted_for="p2")
        assert p.to_dict() == {
            "id": "p1",
            "room_code": "ABC123",
            "name": "Ana",
            "is_alive": True,
            "is_spectator": False,
            "voted_for": "p2",
            "created_at": _T0.isoformat(),
        }


# ======================================================================
# RoomSnapshot queries
# ======================================================================


class TestRoomSnapshot:
    """Tests for RoomSnapshot queries."""

    def test_get_player(self, snapshot: RoomSnapshot) -> None:
        assert snapshot.get_player("b").name == "Beto"
        assert snapshot.get_player("nope") is None

    def test_active_players_exclude_spectators(self, snapshot: RoomSnapshot) -> None:
        assert [p.id for p in snapshot.active_players()] == ["a", "b", "c"]

    def test_spectators(self, snapshot: RoomSnapshot) -> None:
        assert [p.id for p in snapshot.spectators()] == ["s"]

    def test_alive_players_exclude_dead_and_spectators(self, snapshot: RoomSnapshot) -> None:
        assert [p.id for p in snapshot.alive_players()] == ["a", "b"]

    def test_host_is_earliest_non_spectator(self, snapshot: RoomSnapshot) -> None:
        assert snapshot.host().id == "a"

    def test_to_dict_includes_host(self, snapshot: RoomSnapshot) -> None:
        d = snapshot.to_dict()
        assert d["host_id"] == "a"
        assert [p["id"] for p in d["players"]] == ["s", "a", "b", "c"]
        assert d["room"]["code"] == "ABC123"


class TestRoomStatus:
    """Tests for the RoomStatus enum."""

    def test_values_are_wire_strings(self) -> None:
        assert [s.value for s in RoomStatus] == ["LOBBY", "PLAYING", "VOTING", "FINISHED"]

    def test_round_active(self) -> None:
        assert RoomStatus.PLAYING.round_active is True
        assert RoomStatus.VOTING.round_active is True
        assert RoomStatus.LOBBY.round_active is False
        assert RoomStatus.FINISHED.round_active is False
