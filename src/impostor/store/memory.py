"""In-process implementation of :class:`RoomStore`."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from impostor.engine.errors import RoomNotFound
from impostor.engine.state import Player, Room, RoomSnapshot
from impostor.store.base import RoomStore, RoomWrite

if TYPE_CHECKING:
    from impostor.comms.notifier import ChangeNotifier

logger = logging.getLogger(__name__)

_ROOM_FIELDS = frozenset({"status", "category", "secret_word", "impostor_id"})
_PLAYER_FIELDS = frozenset({"name", "is_alive", "is_spectator", "voted_for"})


class MonotonicClock:
    """Wall-clock timestamps that never repeat or go backwards."""

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self) -> datetime:
        current = datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current


class MemoryStore(RoomStore):
    """Dictionary-backed store.

    Every method body runs without awaiting, so each call is atomic with
    respect to other coroutines on the same event loop.  After each
    successful write the fresh state is published to *notifier*.
    """

    def __init__(self, notifier: ChangeNotifier | None = None) -> None:
        self.notifier = notifier
        self.clock = MonotonicClock()
        self._rooms: dict[str, Room] = {}
        self._players: dict[str, Player] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_room(self, code: str) -> Room | None:
        return self._rooms.get(code)

    async def list_players(self, room_code: str) -> list[Player]:
        return self._roster(room_code)

    async def get_player(self, player_id: str) -> Player | None:
        return self._players.get(player_id)

    async def snapshot(self, code: str) -> RoomSnapshot | None:
        room = self._rooms.get(code)
        if room is None:
            return None
        return RoomSnapshot(room=room, players=tuple(self._roster(code)))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_room(self, code: str) -> Room | None:
        if code in self._rooms:
            return None
        room = Room(code=code, updated_at=self.clock.now())
        self._rooms[code] = room
        logger.debug("Inserted room %s", code)
        self._publish(room, players_changed=False)
        return room

    async def insert_player(
        self, room_code: str, name: str, is_spectator: bool = False
    ) -> Player:
        room = self._rooms.get(room_code)
        if room is None:
            raise RoomNotFound()
        player = Player(
            id=uuid.uuid4().hex,
            room_code=room_code,
            name=name,
            created_at=self.clock.now(),
            is_spectator=is_spectator,
        )
        self._players[player.id] = player
        room = room.with_changes(updated_at=self.clock.now())
        self._rooms[room_code] = room
        logger.debug("Inserted player %s (%s) into room %s", player.id, name, room_code)
        self._publish(room, players_changed=True)
        return player

    async def apply(self, write: RoomWrite) -> RoomSnapshot | None:
        room = self._rooms.get(write.room_code)
        if room is None:
            raise RoomNotFound()
        if write.expected_status is not None and room.status != write.expected_status:
            logger.debug(
                "Write to %s skipped: status is %s, expected %s",
                write.room_code, room.status.value, write.expected_status.value,
            )
            return None

        _check_fields(write.room_changes, _ROOM_FIELDS)
        _check_fields(write.all_players, _PLAYER_FIELDS)
        for changes in write.player_changes.values():
            _check_fields(changes, _PLAYER_FIELDS)

        # Build every new record first, then swap them in together.
        roster = {p.id: p for p in self._roster(write.room_code)}
        updated: dict[str, Player] = {}
        for pid, player in roster.items():
            if pid in write.delete_player_ids:
                continue
            changes = {**write.all_players, **write.player_changes.get(pid, {})}
            updated[pid] = player.with_changes(**changes) if changes else player

        new_room = room.with_changes(**write.room_changes, updated_at=self.clock.now())

        for pid in roster:
            self._players.pop(pid, None)
        self._players.update(updated)
        self._rooms[write.room_code] = new_room

        players_changed = bool(
            write.all_players or write.player_changes or write.delete_player_ids
        )
        self._publish(new_room, players_changed=players_changed)
        return RoomSnapshot(room=new_room, players=tuple(self._roster(write.room_code)))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _roster(self, room_code: str) -> list[Player]:
        players = [p for p in self._players.values() if p.room_code == room_code]
        return sorted(players, key=lambda p: p.created_at)

    def _publish(self, room: Room, players_changed: bool) -> None:
        if self.notifier is None:
            return
        self.notifier.publish_room(room)
        if players_changed:
            self.notifier.publish_players(room.code, self._roster(room.code))


def _check_fields(changes: dict[str, object], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown or immutable fields: {sorted(unknown)}")
