"""Storage abstraction for room and player records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from impostor.engine.phase import RoomStatus
from impostor.engine.state import Player, Room, RoomSnapshot


@dataclass(frozen=True)
class RoomWrite:
    """A batch of changes to one room and its players, applied atomically.

    If ``expected_status`` is set, the whole batch is applied only when the
    room is still in that status; otherwise nothing is written.
    """

    room_code: str
    expected_status: RoomStatus | None = None
    room_changes: dict[str, Any] = field(default_factory=dict)
    all_players: dict[str, Any] = field(default_factory=dict)
    player_changes: dict[str, dict[str, Any]] = field(default_factory=dict)
    delete_player_ids: tuple[str, ...] = ()


class RoomStore(ABC):
    """Abstract persistent store.

    Implementations raise :class:`~impostor.engine.errors.TransientStoreFailure`
    for any underlying I/O failure and must never leave a partially applied
    :class:`RoomWrite` visible.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_room(self, code: str) -> Room | None:
        ...

    @abstractmethod
    async def list_players(self, room_code: str) -> list[Player]:
        """Return the roster of *room_code* ordered by ``created_at``."""
        ...

    @abstractmethod
    async def get_player(self, player_id: str) -> Player | None:
        ...

    async def snapshot(self, code: str) -> RoomSnapshot | None:
        """Return the room and its roster, or None if the room is unknown."""
        room = await self.get_room(code)
        if room is None:
            return None
        return RoomSnapshot(room=room, players=tuple(await self.list_players(code)))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @abstractmethod
    async def insert_room(self, code: str) -> Room | None:
        """Create a LOBBY room, or return None if *code* is taken."""
        ...

    @abstractmethod
    async def insert_player(
        self, room_code: str, name: str, is_spectator: bool = False
    ) -> Player:
        """Create a player with a fresh id and ``created_at``."""
        ...

    @abstractmethod
    async def apply(self, write: RoomWrite) -> RoomSnapshot | None:
        """Apply *write* atomically.

        Returns the post-write snapshot, or None when ``expected_status``
        did not match (nothing was written).
        """
        ...
