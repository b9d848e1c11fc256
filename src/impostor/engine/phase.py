"""Room status enum for the game state machine."""

from enum import Enum


class RoomStatus(str, Enum):
    """Room phases in order of progression.

    Values are the persisted wire strings.
    """

    LOBBY = "LOBBY"
    PLAYING = "PLAYING"
    VOTING = "VOTING"
    FINISHED = "FINISHED"

    @property
    def round_active(self) -> bool:
        """True while a round is in progress (an impostor is assigned)."""
        return self in (RoomStatus.PLAYING, RoomStatus.VOTING)
