"""Game event hierarchy for pub/sub observation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from impostor.engine.phase import RoomStatus


@dataclass(frozen=True)
class GameEvent:
    """Base game event."""

    room_code: str = ""
    status: RoomStatus = RoomStatus.LOBBY
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PhaseChangeEvent(GameEvent):
    """The room moved to a new phase."""

    old_status: RoomStatus = RoomStatus.LOBBY
    new_status: RoomStatus = RoomStatus.LOBBY


@dataclass(frozen=True)
class PlayerJoinedEvent(GameEvent):
    """A player entered the room."""

    player_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class PlayerLeftEvent(GameEvent):
    """A player left or was kicked."""

    player_id: str = ""
    name: str = ""
    kicked_by: str | None = None


@dataclass(frozen=True)
class VoteEvent(GameEvent):
    """A player cast a vote."""

    voter_id: str = ""
    target_id: str = ""
    voted: int = 0
    eligible: int = 0


@dataclass(frozen=True)
class VoteResultEvent(GameEvent):
    """Result of a completed vote."""

    outcome: str = ""
    tally: dict[str, int] = field(default_factory=dict)
    voters: dict[str, list[str]] = field(default_factory=dict)
    eliminated_id: str | None = None
    tie: bool = False


@dataclass(frozen=True)
class EliminationEvent(GameEvent):
    """A player was voted out."""

    player_id: str = ""
    name: str = ""
    was_impostor: bool = False


@dataclass(frozen=True)
class GameEndEvent(GameEvent):
    """The round ended; the secret is revealed."""

    winning_team: str = ""  # "innocents" or "impostor"
    impostor_id: str | None = None
    category: str | None = None
    secret_word: str | None = None
    reason: str = ""
