"""Immutable room and player records plus a consistent room snapshot."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable

from impostor.engine.phase import RoomStatus


@dataclass(frozen=True)
class Player:
    """Immutable record for one player in a room."""

    id: str
    room_code: str
    name: str
    created_at: datetime
    is_alive: bool = True
    is_spectator: bool = False
    voted_for: str | None = None

    @property
    def can_vote(self) -> bool:
        """True if this player takes part in the current vote."""
        return self.is_alive and not self.is_spectator

    def with_changes(self, **changes: Any) -> Player:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room_code": self.room_code,
            "name": self.name,
            "is_alive": self.is_alive,
            "is_spectator": self.is_spectator,
            "voted_for": self.voted_for,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Room:
    """Immutable record for one game room.

    Every mutation goes through the store, which returns a *new* Room with
    a bumped ``updated_at``.
    """

    code: str
    updated_at: datetime
    status: RoomStatus = RoomStatus.LOBBY
    category: str | None = None
    secret_word: str | None = None
    impostor_id: str | None = None

    def with_changes(self, **changes: Any) -> Room:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "status": self.status.value,
            "category": self.category,
            "secret_word": self.secret_word,
            "impostor_id": self.impostor_id,
            "updated_at": self.updated_at.isoformat(),
        }


def host(players: Iterable[Player]) -> Player | None:
    """Return the non-spectator player with the earliest ``created_at``."""
    candidates = [p for p in players if not p.is_spectator]
    if not candidates:
        return None
    return min(candidates, key=lambda p: p.created_at)


@dataclass(frozen=True)
class RoomSnapshot:
    """A room together with its roster, read at a single point in time.

    ``players`` is ordered by ``created_at``.
    """

    room: Room
    players: tuple[Player, ...] = ()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def status(self) -> RoomStatus:
        return self.room.status

    def get_player(self, player_id: str) -> Player | None:
        """Return the Player with the given id, or None."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def active_players(self) -> list[Player]:
        """Return all non-spectator players."""
        return [p for p in self.players if not p.is_spectator]

    def spectators(self) -> list[Player]:
        return [p for p in self.players if p.is_spectator]

    def alive_players(self) -> list[Player]:
        """Return the alive non-spectator players (the voting population)."""
        return [p for p in self.players if p.can_vote]

    def host(self) -> Player | None:
        """Return the earliest-joined non-spectator player."""
        return host(self.players)

    def to_dict(self) -> dict[str, Any]:
        current_host = self.host()
        return {
            "room": self.room.to_dict(),
            "players": [p.to_dict() for p in self.players],
            "host_id": current_host.id if current_host else None,
        }
