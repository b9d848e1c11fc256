"""Roster management: room creation, joining, leaving, kicking and host lookup."""

from __future__ import annotations

import logging
import random
import string
from typing import TYPE_CHECKING, Callable

from impostor.engine.errors import (
    InvalidName,
    InvalidTransition,
    NotHost,
    PlayerNotFound,
    RoomAlreadyStarted,
    RoomFull,
    RoomNotFound,
    TransientStoreFailure,
)
from impostor.engine.events import GameEvent, PlayerJoinedEvent, PlayerLeftEvent
from impostor.engine.phase import RoomStatus
from impostor.engine.state import host
from impostor.store.base import RoomWrite

if TYPE_CHECKING:
    from impostor.config.schema import GameConfig
    from impostor.engine.locks import RoomLocks
    from impostor.engine.state import Player, Room, RoomSnapshot
    from impostor.store.base import RoomStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
_MAX_CODE_ATTEMPTS = 20

# Extends a departure write with whatever the round needs when a player
# leaves (game over, vote resolution).  Returns the final write and the
# events to emit once it is committed.
DeparturePlanner = Callable[
    ["RoomSnapshot", "Player", RoomWrite], "tuple[RoomWrite, list[GameEvent]]"
]


def generate_room_code(length: int = 6, rng: random.Random | None = None) -> str:
    """Return a random uppercase alphanumeric room code."""
    return "".join((rng or random).choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RosterManager:
    """Adds and removes players.

    Every method that depends on room state runs under the room's lock and
    re-reads the room before checking its guard.
    """

    def __init__(
        self,
        store: RoomStore,
        config: GameConfig,
        locks: RoomLocks,
        rng: random.Random | None = None,
        emit: Callable[[GameEvent], None] | None = None,
        plan_departure: DeparturePlanner | None = None,
    ) -> None:
        self.store = store
        self.config = config
        self.locks = locks
        self.rng = rng or random.Random()
        self._emit = emit or (lambda event: None)
        self._plan_departure = plan_departure

    # ------------------------------------------------------------------
    # Joining
    # ------------------------------------------------------------------

    def validate_name(self, name: str) -> str:
        """Return *name* stripped, or raise :class:`InvalidName`."""
        cleaned = (name or "").strip()
        if not cleaned or len(cleaned) > self.config.max_name_length:
            raise InvalidName(
                f"Player names must be 1-{self.config.max_name_length} characters."
            )
        if any(ord(ch) < 32 for ch in cleaned):
            raise InvalidName("Player names cannot contain control characters.")
        return cleaned

    async def create_room(self, name: str) -> tuple[Room, Player]:
        """Create a LOBBY room with *name* as its first player (the host)."""
        cleaned = self.validate_name(name)
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = generate_room_code(self.config.code_length, self.rng)
            room = await self.store.insert_room(code)
            if room is not None:
                break
        else:
            raise TransientStoreFailure("Could not allocate a free room code.")

        async with self.locks.for_room(code):
            player = await self.store.insert_player(code, cleaned)
            room = await self.store.get_room(code) or room

        logger.info("Room %s created by %s", code, cleaned)
        self._emit(
            PlayerJoinedEvent(
                room_code=code, status=room.status, player_id=player.id, name=cleaned
            )
        )
        return room, player

    async def join(self, room_code: str, name: str) -> Player:
        """Add a new non-spectator player to a room in the lobby.

        Does not deduplicate; use :meth:`find_player` first to reconnect.
        """
        code = normalize_code(room_code)
        cleaned = self.validate_name(name)

        async with self.locks.for_room(code):
            snapshot = await self.store.snapshot(code)
            if snapshot is None:
                raise RoomNotFound()
            if snapshot.status != RoomStatus.LOBBY:
                raise RoomAlreadyStarted()
            if len(snapshot.active_players()) >= self.config.max_players:
                raise RoomFull(
                    f"This room already has {self.config.max_players} players."
                )
            player = await self.store.insert_player(code, cleaned)

        logger.info("%s joined room %s", cleaned, code)
        self._emit(
            PlayerJoinedEvent(
                room_code=code, status=snapshot.status, player_id=player.id, name=cleaned
            )
        )
        return player

    async def find_player(self, room_code: str, name: str) -> Player | None:
        """Return the player in *room_code* whose name matches case-insensitively."""
        wanted = (name or "").strip().lower()
        if not wanted:
            return None
        for p in await self.store.list_players(normalize_code(room_code)):
            if p.name.lower() == wanted:
                return p
        return None

    async def set_spectator(self, player_id: str, is_spectator: bool) -> Player:
        """Move a player in or out of the spectator seats (lobby only)."""
        player = await self._require_player(player_id)
        async with self.locks.for_room(player.room_code):
            snapshot = await self._require_snapshot(player.room_code)
            if snapshot.get_player(player_id) is None:
                raise PlayerNotFound()
            if snapshot.status != RoomStatus.LOBBY:
                raise InvalidTransition("Seats can only change in the lobby.")
            if not is_spectator and len(snapshot.active_players()) >= self.config.max_players:
                raise RoomFull(
                    f"This room already has {self.config.max_players} players."
                )
            after = await self.store.apply(
                RoomWrite(
                    room_code=player.room_code,
                    expected_status=RoomStatus.LOBBY,
                    player_changes={player_id: {"is_spectator": is_spectator}},
                )
            )

        if after is None:
            raise InvalidTransition("Seats can only change in the lobby.")
        updated = after.get_player(player_id)
        assert updated is not None
        logger.info(
            "%s is now %s in room %s",
            updated.name, "spectating" if is_spectator else "playing", player.room_code,
        )
        return updated

    # ------------------------------------------------------------------
    # Leaving
    # ------------------------------------------------------------------

    async def leave(self, player_id: str) -> None:
        """Remove a player unconditionally."""
        player = await self._require_player(player_id)
        await self._remove(player.room_code, player_id, kicked_by=None)

    async def kick(self, actor_id: str, player_id: str) -> None:
        """Remove *player_id* on behalf of *actor_id*.

        When ``enforce_host`` is on, only the current host may kick and a
        host cannot kick themselves.
        """
        player = await self._require_player(player_id)
        await self._remove(player.room_code, player_id, kicked_by=actor_id)

    def _check_kick(self, snapshot: RoomSnapshot, actor_id: str, player_id: str) -> None:
        if not self.config.enforce_host:
            return
        current_host = host(snapshot.players)
        if current_host is None or current_host.id != actor_id:
            raise NotHost()
        if actor_id == player_id:
            raise InvalidTransition("The host cannot kick themselves.")

    async def _remove(self, room_code: str, player_id: str, kicked_by: str | None) -> None:
        async with self.locks.for_room(room_code):
            snapshot = await self._require_snapshot(room_code)
            departed = snapshot.get_player(player_id)
            if departed is None:
                raise PlayerNotFound()
            if kicked_by is not None:
                self._check_kick(snapshot, kicked_by, player_id)

            write = RoomWrite(
                room_code=room_code,
                delete_player_ids=(player_id,),
                player_changes={
                    p.id: {"voted_for": None}
                    for p in snapshot.players
                    if p.voted_for == player_id
                },
            )
            events: list[GameEvent] = []
            if self._plan_departure is not None:
                write, events = self._plan_departure(snapshot, departed, write)

            after = await self.store.apply(write)
            if after is None:
                raise TransientStoreFailure("The room changed while leaving, try again.")

        status = after.status
        logger.info(
            "%s %s room %s",
            departed.name, "was kicked from" if kicked_by else "left", room_code,
        )
        self._emit(
            PlayerLeftEvent(
                room_code=room_code,
                status=status,
                player_id=player_id,
                name=departed.name,
                kicked_by=kicked_by,
            )
        )
        for event in events:
            self._emit(event)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_player(self, player_id: str) -> Player:
        player = await self.store.get_player(player_id)
        if player is None:
            raise PlayerNotFound()
        return player

    async def _require_snapshot(self, room_code: str) -> RoomSnapshot:
        snapshot = await self.store.snapshot(room_code)
        if snapshot is None:
            raise RoomNotFound()
        return snapshot
