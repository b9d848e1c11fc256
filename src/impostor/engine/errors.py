"""Exception hierarchy for game commands.

Every error is scoped to a single command and is raised before anything
is written, so the room is left exactly as it was.
"""

from __future__ import annotations


class ImpostorError(Exception):
    """Base class for all errors surfaced to a player."""

    code: str = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = str(self.args[0])


class RoomNotFound(ImpostorError):
    """Room not found."""

    code = "room_not_found"


class RoomAlreadyStarted(ImpostorError):
    """The game in this room has already started."""

    code = "room_already_started"


class RoomFull(ImpostorError):
    """The room has no free player slots."""

    code = "room_full"


class NotEnoughPlayers(ImpostorError):
    """At least three players are needed to start."""

    code = "not_enough_players"


class PlayerNotFound(ImpostorError):
    """Player not found."""

    code = "player_not_found"


class NotHost(ImpostorError):
    """Only the host can do that."""

    code = "not_host"


class InvalidTransition(ImpostorError):
    """That action is not allowed in the current phase."""

    code = "invalid_transition"


class InvalidVote(ImpostorError):
    """That vote is not allowed."""

    code = "invalid_vote"


class InvalidName(ImpostorError):
    """Player names must be 1-20 characters."""

    code = "invalid_name"


class TransientStoreFailure(ImpostorError):
    """Something went wrong, please try again."""

    code = "transient_store_failure"
