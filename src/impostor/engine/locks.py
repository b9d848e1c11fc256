"""Per-room serialization points."""

from __future__ import annotations

import asyncio


class RoomLocks:
    """Hands out one :class:`asyncio.Lock` per room code.

    Every command that reads a room, checks a guard and writes back holds
    the room's lock for the whole sequence.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def for_room(self, room_code: str) -> asyncio.Lock:
        lock = self._locks.get(room_code)
        if lock is None:
            lock = self._locks[room_code] = asyncio.Lock()
        return lock

    def __len__(self) -> int:
        return len(self._locks)
