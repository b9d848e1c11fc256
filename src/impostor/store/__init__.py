"""Room and player persistence."""

from impostor.store.base import RoomStore, RoomWrite
from impostor.store.memory import MemoryStore

__all__ = ["MemoryStore", "RoomStore", "RoomWrite"]
