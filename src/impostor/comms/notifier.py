"""Change notifier -- per-room fan-out of room and roster snapshots."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from impostor.engine.state import Player, Room

logger = logging.getLogger(__name__)

RoomCallback = Callable[["Room"], None]
PlayersCallback = Callable[[list["Player"]], None]


@dataclass(frozen=True)
class Subscription:
    """A single observer of one room."""

    token: int
    room_code: str
    on_room_change: RoomCallback | None
    on_players_change: PlayersCallback | None


class ChangeNotifier:
    """Delivers the post-write state of a room to everyone subscribed to it.

    Callbacks run synchronously in publish order; a raising callback is
    logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._subs: dict[str, dict[int, Subscription]] = {}
        self._tokens = itertools.count(1)

    # ------------------------------------------------------------------
    # Subscribing
    # ------------------------------------------------------------------

    def subscribe(
        self,
        room_code: str,
        on_room_change: RoomCallback | None = None,
        on_players_change: PlayersCallback | None = None,
    ) -> Callable[[], None]:
        """Register callbacks for *room_code* and return an unsubscribe function.

        Calling the returned function more than once is harmless.
        """
        sub = Subscription(
            token=next(self._tokens),
            room_code=room_code,
            on_room_change=on_room_change,
            on_players_change=on_players_change,
        )
        self._subs.setdefault(room_code, {})[sub.token] = sub
        logger.debug("Subscription %d opened on room %s", sub.token, room_code)

        def unsubscribe() -> None:
            room_subs = self._subs.get(room_code)
            if room_subs is None or room_subs.pop(sub.token, None) is None:
                return
            if not room_subs:
                del self._subs[room_code]
            logger.debug("Subscription %d closed on room %s", sub.token, room_code)

        return unsubscribe

    def subscriber_count(self, room_code: str) -> int:
        return len(self._subs.get(room_code, {}))

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish_room(self, room: Room) -> None:
        for sub in self._current(room.code):
            if sub.on_room_change is None:
                continue
            try:
                sub.on_room_change(room)
            except Exception:
                logger.exception("Room subscriber %d raised", sub.token)

    def publish_players(self, room_code: str, players: Sequence[Player]) -> None:
        ordered = sorted(players, key=lambda p: p.created_at)
        for sub in self._current(room_code):
            if sub.on_players_change is None:
                continue
            try:
                sub.on_players_change(list(ordered))
            except Exception:
                logger.exception("Players subscriber %d raised", sub.token)

    def _current(self, room_code: str) -> list[Subscription]:
        # Copy so callbacks may unsubscribe while we iterate.
        return list(self._subs.get(room_code, {}).values())
