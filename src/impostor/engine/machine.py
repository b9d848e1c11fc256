"""Authoritative room state machine.

All phase changes for a room go through a single :class:`RoomStateMachine`.
Each command holds the room's lock while it reads the room, checks its guard
and commits one conditional :class:`~impostor.store.base.RoomWrite`, so
concurrent commands (two clients noticing a finished vote at the same time,
say) collapse into a single transition and the others become no-ops.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from impostor.config.schema import GameConfig
from impostor.content.words import WordBank
from impostor.engine import tally
from impostor.engine.errors import (
    InvalidTransition,
    InvalidVote,
    NotHost,
    PlayerNotFound,
    RoomNotFound,
)
from impostor.engine.events import (
    EliminationEvent,
    GameEndEvent,
    GameEvent,
    PhaseChangeEvent,
    VoteEvent,
    VoteResultEvent,
)
from impostor.engine.locks import RoomLocks
from impostor.engine.phase import RoomStatus
from impostor.engine.resolver import Outcome, VoteResult, evaluate
from impostor.engine.roster import RosterManager, normalize_code
from impostor.engine.setup import RoundSetup
from impostor.store.base import RoomWrite

if TYPE_CHECKING:
    from impostor.engine.state import Player, Room, RoomSnapshot
    from impostor.store.base import RoomStore

logger = logging.getLogger(__name__)

_CLEAR_VOTES: dict[str, Any] = {"voted_for": None}


class RoomStateMachine:
    """Orchestrates rooms from lobby to game over and back.

    Parameters
    ----------
    store:
        Persistent store for rooms and players.
    config:
        Game rules (player limits, host enforcement, win threshold).
    word_bank:
        Category/word lookup for new rounds.
    rng:
        Random source for room codes, secrets and impostor selection.
    event_listeners:
        Callables invoked with every :class:`GameEvent`.
    """

    def __init__(
        self,
        store: RoomStore,
        config: GameConfig | None = None,
        word_bank: WordBank | None = None,
        rng: random.Random | None = None,
        event_listeners: list[Any] | None = None,
    ) -> None:
        self.store = store
        self.config = config or GameConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.event_listeners: list[Any] = event_listeners or []
        self.locks = RoomLocks()
        self.setup = RoundSetup(
            word_bank=word_bank,
            min_players=self.config.min_players,
            rng=self.rng,
        )
        self.roster = RosterManager(
            store=store,
            config=self.config,
            locks=self.locks,
            rng=self.rng,
            emit=self._emit,
            plan_departure=self._plan_departure,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def snapshot(self, room_code: str) -> RoomSnapshot:
        """Return the current room and roster, or raise :class:`RoomNotFound`."""
        snapshot = await self.store.snapshot(normalize_code(room_code))
        if snapshot is None:
            raise RoomNotFound()
        return snapshot

    def list_categories(self) -> list[str]:
        return self.setup.word_bank.list_categories()

    # ------------------------------------------------------------------
    # Roster commands
    # ------------------------------------------------------------------

    async def create_room(self, name: str) -> tuple[Room, Player]:
        return await self.roster.create_room(name)

    async def join(self, room_code: str, name: str) -> Player:
        return await self.roster.join(room_code, name)

    async def leave(self, player_id: str) -> None:
        await self.roster.leave(player_id)

    async def kick(self, actor_id: str, player_id: str) -> None:
        await self.roster.kick(actor_id, player_id)

    async def set_spectator(self, player_id: str, is_spectator: bool) -> Player:
        return await self.roster.set_spectator(player_id, is_spectator)

    # ------------------------------------------------------------------
    # Phase commands
    # ------------------------------------------------------------------

    async def start_game(
        self,
        room_code: str,
        actor_id: str,
        category: str | None = None,
    ) -> Room:
        """LOBBY -> PLAYING: pick the secret and the impostor."""
        code = normalize_code(room_code)
        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            self._require_host(snapshot, actor_id)
            self._require_status(snapshot, RoomStatus.LOBBY, "start the game")

            assignment = self.setup.begin(snapshot.active_players(), category)
            after = await self._commit(
                RoomWrite(
                    room_code=code,
                    expected_status=RoomStatus.LOBBY,
                    room_changes={
                        "status": RoomStatus.PLAYING,
                        "category": assignment.category,
                        "secret_word": assignment.word,
                        "impostor_id": assignment.impostor_id,
                    },
                    all_players={"is_alive": True, "voted_for": None},
                ),
                "start the game",
            )

        logger.info(
            "Room %s started: category=%s, %d players",
            code, assignment.category, len(snapshot.active_players()),
        )
        self._emit_phase_change(code, RoomStatus.LOBBY, RoomStatus.PLAYING)
        return after.room

    async def start_voting(self, room_code: str, actor_id: str) -> Room:
        """PLAYING -> VOTING."""
        code = normalize_code(room_code)
        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            self._require_host(snapshot, actor_id)
            self._require_status(snapshot, RoomStatus.PLAYING, "start voting")
            after = await self._commit(
                RoomWrite(
                    room_code=code,
                    expected_status=RoomStatus.PLAYING,
                    room_changes={"status": RoomStatus.VOTING},
                    all_players=dict(_CLEAR_VOTES),
                ),
                "start voting",
            )

        logger.info("Room %s is voting", code)
        self._emit_phase_change(code, RoomStatus.PLAYING, RoomStatus.VOTING)
        return after.room

    async def cast_vote(self, voter_id: str, target_id: str) -> VoteResult | None:
        """Record a vote.

        If this vote completes the tally the room is resolved in the same
        critical section and the result is returned; otherwise None.
        """
        voter = await self.store.get_player(voter_id)
        if voter is None:
            raise PlayerNotFound()
        code = voter.room_code

        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            self._require_status(snapshot, RoomStatus.VOTING, "vote")
            voter = snapshot.get_player(voter_id)
            if voter is None:
                raise PlayerNotFound()
            self._check_vote(snapshot, voter, target_id)

            after = await self._commit(
                RoomWrite(
                    room_code=code,
                    expected_status=RoomStatus.VOTING,
                    player_changes={voter_id: {"voted_for": target_id}},
                ),
                "vote",
            )
            voted, eligible = tally.progress(after.players)
            logger.debug("Room %s: %s voted for %s", code, voter_id, target_id)
            self._emit(
                VoteEvent(
                    room_code=code,
                    status=RoomStatus.VOTING,
                    voter_id=voter_id,
                    target_id=target_id,
                    voted=voted,
                    eligible=eligible,
                )
            )
            return await self._finalize_locked(after)

    async def finalize_votes(self, room_code: str) -> VoteResult | None:
        """Resolve a completed vote.

        Safe to call any number of times: it does nothing and returns None
        unless the room is VOTING and every eligible player has voted.
        """
        code = normalize_code(room_code)
        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            return await self._finalize_locked(snapshot)

    async def resume_discussion(self, room_code: str, actor_id: str) -> Room:
        """VOTING -> PLAYING without resolving the vote.

        Already PLAYING is accepted and leaves the room untouched.
        """
        code = normalize_code(room_code)
        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            self._require_host(snapshot, actor_id)
            if snapshot.status == RoomStatus.PLAYING:
                return snapshot.room
            self._require_status(snapshot, RoomStatus.VOTING, "resume the discussion")
            after = await self._commit(
                RoomWrite(
                    room_code=code,
                    expected_status=RoomStatus.VOTING,
                    room_changes={"status": RoomStatus.PLAYING},
                    all_players=dict(_CLEAR_VOTES),
                ),
                "resume the discussion",
            )

        logger.info("Room %s resumed discussion", code)
        self._emit_phase_change(code, RoomStatus.VOTING, RoomStatus.PLAYING)
        return after.room

    async def return_to_lobby(self, room_code: str, actor_id: str) -> Room:
        """FINISHED -> LOBBY: revive everyone and forget the secret."""
        code = normalize_code(room_code)
        async with self.locks.for_room(code):
            snapshot = await self.snapshot(code)
            self._require_host(snapshot, actor_id)
            self._require_status(snapshot, RoomStatus.FINISHED, "return to the lobby")
            after = await self._commit(
                RoomWrite(
                    room_code=code,
                    expected_status=RoomStatus.FINISHED,
                    room_changes={
                        "status": RoomStatus.LOBBY,
                        "category": None,
                        "secret_word": None,
                        "impostor_id": None,
                    },
                    all_players={"is_alive": True, "voted_for": None},
                ),
                "return to the lobby",
            )

        logger.info("Room %s returned to the lobby", code)
        self._emit_phase_change(code, RoomStatus.FINISHED, RoomStatus.LOBBY)
        return after.room

    # ------------------------------------------------------------------
    # Vote resolution
    # ------------------------------------------------------------------

    async def _finalize_locked(self, snapshot: RoomSnapshot) -> VoteResult | None:
        """Resolve the vote in *snapshot*; the caller holds the room lock."""
        if snapshot.status != RoomStatus.VOTING:
            return None
        if not tally.is_complete(snapshot.players):
            return None

        result = evaluate(
            snapshot.players,
            snapshot.room.impostor_id,
            impostor_wins_at=self.config.impostor_wins_at,
        )
        if result.outcome.ends_game:
            result = replace(
                result,
                category=snapshot.room.category,
                secret_word=snapshot.room.secret_word,
            )
        write = self._resolution_write(
            RoomWrite(room_code=snapshot.room.code, expected_status=RoomStatus.VOTING),
            result,
        )
        after = await self.store.apply(write)
        if after is None:
            logger.debug("Room %s already finalized elsewhere", snapshot.room.code)
            return None

        logger.info(
            "Room %s vote resolved: %s (tally=%s)",
            snapshot.room.code, result.outcome.value, result.tally,
        )
        for event in self._resolution_events(snapshot, result):
            self._emit(event)
        return result

    def _resolution_write(self, base: RoomWrite, result: VoteResult) -> RoomWrite:
        """Extend *base* with the effects of *result*."""
        player_changes = {pid: dict(ch) for pid, ch in base.player_changes.items()}
        if result.eliminated_id is not None:
            player_changes.setdefault(result.eliminated_id, {})["is_alive"] = False

        next_status = RoomStatus.FINISHED if result.outcome.ends_game else RoomStatus.PLAYING
        return replace(
            base,
            room_changes={**base.room_changes, "status": next_status},
            all_players={**base.all_players, **_CLEAR_VOTES},
            player_changes=player_changes,
        )

    def _resolution_events(
        self, snapshot: RoomSnapshot, result: VoteResult
    ) -> list[GameEvent]:
        room = snapshot.room
        events: list[GameEvent] = [
            VoteResultEvent(
                room_code=room.code,
                status=RoomStatus.VOTING,
                outcome=result.outcome.value,
                tally=dict(result.tally),
                voters={k: list(v) for k, v in result.voters.items()},
                eliminated_id=result.eliminated_id,
                tie=result.tie,
            )
        ]

        eliminated = (
            snapshot.get_player(result.eliminated_id)
            if result.eliminated_id is not None
            else None
        )
        if eliminated is not None:
            events.append(
                EliminationEvent(
                    room_code=room.code,
                    status=RoomStatus.VOTING,
                    player_id=eliminated.id,
                    name=eliminated.name,
                    was_impostor=eliminated.id == room.impostor_id,
                )
            )

        if result.outcome.ends_game:
            events.append(self._phase_event(room.code, RoomStatus.VOTING, RoomStatus.FINISHED))
            if result.outcome is Outcome.IMPOSTOR_CAUGHT:
                events.append(self._game_end(room, "innocents", "The impostor was voted out."))
            elif eliminated is not None and eliminated.id != room.impostor_id:
                events.append(
                    self._game_end(
                        room,
                        "impostor",
                        f"{eliminated.name} was innocent and too few players remain.",
                    )
                )
            else:
                events.append(self._game_end(room, "impostor", "The impostor survived the vote."))
        else:
            events.append(self._phase_event(room.code, RoomStatus.VOTING, RoomStatus.PLAYING))
        return events

    # ------------------------------------------------------------------
    # Departures
    # ------------------------------------------------------------------

    def _plan_departure(
        self, snapshot: RoomSnapshot, departed: Player, write: RoomWrite
    ) -> tuple[RoomWrite, list[GameEvent]]:
        """Settle the round after *departed* leaves.

        * The impostor left -- the round ends, innocents win.
        * At most ``impostor_wins_at`` eligible players remain -- the
          impostor wins.
        * During a vote, the departure completed the tally -- it is
          resolved as if the last vote had just been cast.
        """
        room = snapshot.room
        if not room.status.round_active or departed.is_spectator:
            return write, []

        write = replace(write, expected_status=room.status)
        remaining = tuple(
            p.with_changes(voted_for=None) if p.voted_for == departed.id else p
            for p in snapshot.players
            if p.id != departed.id
        )
        alive = [p for p in remaining if p.can_vote]

        if departed.id == room.impostor_id or len(alive) <= self.config.impostor_wins_at:
            if departed.id == room.impostor_id:
                end = self._game_end(room, "innocents", "The impostor left the room.")
            else:
                end = self._game_end(room, "impostor", "Too few players remain.")
            write = replace(
                write,
                room_changes={"status": RoomStatus.FINISHED},
                all_players=dict(_CLEAR_VOTES),
            )
            logger.info("Room %s ended after %s left: %s", room.code, departed.name, end.reason)
            return write, [self._phase_event(room.code, room.status, RoomStatus.FINISHED), end]

        if room.status == RoomStatus.VOTING and tally.is_complete(remaining):
            after_departure = replace(snapshot, players=remaining)
            result = evaluate(
                remaining, room.impostor_id, impostor_wins_at=self.config.impostor_wins_at
            )
            logger.info(
                "Room %s vote resolved after %s left: %s",
                room.code, departed.name, result.outcome.value,
            )
            return (
                self._resolution_write(write, result),
                self._resolution_events(after_departure, result),
            )

        return write, []

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_host(self, snapshot: RoomSnapshot, actor_id: str) -> None:
        if not self.config.enforce_host:
            return
        current_host = snapshot.host()
        if current_host is None or current_host.id != actor_id:
            raise NotHost()

    @staticmethod
    def _require_status(snapshot: RoomSnapshot, status: RoomStatus, action: str) -> None:
        if snapshot.status != status:
            raise InvalidTransition(
                f"Cannot {action} while the room is {snapshot.status.value}."
            )

    @staticmethod
    def _check_vote(snapshot: RoomSnapshot, voter: Player, target_id: str) -> None:
        if voter.is_spectator:
            raise InvalidVote("Spectators cannot vote.")
        if not voter.is_alive:
            raise InvalidVote("Eliminated players cannot vote.")
        if voter.voted_for is not None:
            raise InvalidVote("You have already voted.")
        if target_id == voter.id:
            raise InvalidVote("You cannot vote for yourself.")
        target = snapshot.get_player(target_id)
        if target is None or not target.can_vote:
            raise InvalidVote("That player cannot be voted for.")

    async def _commit(self, write: RoomWrite, action: str) -> RoomSnapshot:
        after = await self.store.apply(write)
        if after is None:
            raise InvalidTransition(f"Cannot {action}: the room changed, try again.")
        return after

    def _phase_event(
        self, room_code: str, old: RoomStatus, new: RoomStatus
    ) -> PhaseChangeEvent:
        return PhaseChangeEvent(
            room_code=room_code, status=new, old_status=old, new_status=new
        )

    def _emit_phase_change(self, room_code: str, old: RoomStatus, new: RoomStatus) -> None:
        self._emit(self._phase_event(room_code, old, new))

    @staticmethod
    def _game_end(room: Room, winning_team: str, reason: str) -> GameEndEvent:
        return GameEndEvent(
            room_code=room.code,
            status=RoomStatus.FINISHED,
            winning_team=winning_team,
            impostor_id=room.impostor_id,
            category=room.category,
            secret_word=room.secret_word,
            reason=reason,
        )

    def _emit(self, event: GameEvent) -> None:
        """Dispatch *event* to all registered listeners."""
        for listener in self.event_listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Event listener raised an exception")
