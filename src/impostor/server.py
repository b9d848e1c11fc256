"""WebSocket front end -- player commands in, room snapshots and events out."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from websockets.asyncio.server import serve as ws_serve
from websockets.exceptions import ConnectionClosed

from impostor.comms.links import join_link
from impostor.engine.errors import ImpostorError, PlayerNotFound
from impostor.engine.events import GameEvent, PlayerLeftEvent

if TYPE_CHECKING:
    from impostor.comms.notifier import ChangeNotifier
    from impostor.config.schema import GameConfig
    from impostor.engine.machine import RoomStateMachine
    from impostor.engine.state import Player, Room

logger = logging.getLogger(__name__)


def event_to_dict(event: GameEvent) -> dict[str, Any]:
    """Convert a game event dataclass to a JSON-friendly dict."""
    d: dict[str, Any] = {"type": "event", "event": type(event).__name__}
    for f in dataclasses.fields(event):
        val = getattr(event, f.name)
        if isinstance(val, Enum):
            val = val.value
        d[f.name] = val
    return d


@dataclass(eq=False)
class ClientSession:
    """Per-connection state: who is talking and which room they watch."""

    outbox: asyncio.Queue[str] = field(default_factory=asyncio.Queue)
    player_id: str | None = None
    room_code: str | None = None
    unsubscribe: Callable[[], None] | None = None

    def send(self, payload: dict[str, Any]) -> None:
        self.outbox.put_nowait(json.dumps(payload, default=str))


Handler = Callable[[ClientSession, dict[str, Any]], Awaitable[None]]


class GameServer:
    """Routes JSON commands to the state machine and fans results back out.

    Room and roster changes arrive through the store's notifier; game events
    (vote results, eliminations, game end) arrive through the machine's
    listener hook.  Both are queued per connection.
    """

    def __init__(
        self,
        machine: RoomStateMachine,
        notifier: ChangeNotifier,
        config: GameConfig,
    ) -> None:
        self.machine = machine
        self.notifier = notifier
        self.config = config
        self._watchers: dict[str, set[ClientSession]] = {}
        self._handlers: dict[str, Handler] = {
            "create": self._on_create,
            "join": self._on_join,
            "leave": self._on_leave,
            "kick": self._on_kick,
            "spectate": self._on_spectate,
            "start": self._on_start,
            "start_voting": self._on_start_voting,
            "vote": self._on_vote,
            "finalize": self._on_finalize,
            "resume": self._on_resume,
            "lobby": self._on_lobby,
            "categories": self._on_categories,
        }
        machine.event_listeners.append(self._on_game_event)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, session: ClientSession, raw: str | bytes) -> None:
        """Handle one incoming message; errors are reported to the sender only."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            session.send({"type": "error", "error": "invalid_payload", "message": "Invalid JSON."})
            return
        if not isinstance(message, dict):
            session.send({"type": "error", "error": "invalid_payload", "message": "Expected an object."})
            return

        action = str(message.get("action", ""))
        handler = self._handlers.get(action)
        if handler is None:
            session.send({"type": "error", "error": "unknown_action", "message": action})
            return

        try:
            await handler(session, message)
        except ImpostorError as exc:
            logger.warning("Rejected %s from %s: %s", action, session.player_id, exc.message)
            session.send({"type": "error", "error": exc.code, "message": exc.message})

    def disconnect(self, session: ClientSession) -> None:
        """Stop delivering updates to *session*; the player keeps their seat."""
        self._unwatch(session)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _on_create(self, session: ClientSession, message: dict[str, Any]) -> None:
        room, player = await self.machine.create_room(str(message.get("name", "")))
        await self._welcome(session, room, player)

    async def _on_join(self, session: ClientSession, message: dict[str, Any]) -> None:
        code = str(message.get("room", ""))
        name = str(message.get("name", ""))
        player = await self.machine.roster.find_player(code, name)
        if player is None:
            player = await self.machine.join(code, name)
        else:
            logger.info("%s reconnected to room %s", player.name, player.room_code)
        snapshot = await self.machine.snapshot(player.room_code)
        await self._welcome(session, snapshot.room, player)

    async def _on_leave(self, session: ClientSession, message: dict[str, Any]) -> None:
        player_id = self._require_seat(session)
        self._unwatch(session)
        session.player_id = None
        await self.machine.leave(player_id)
        session.send({"type": "left"})

    async def _on_kick(self, session: ClientSession, message: dict[str, Any]) -> None:
        actor_id = self._require_seat(session)
        await self.machine.kick(actor_id, str(message.get("player_id", "")))

    async def _on_spectate(self, session: ClientSession, message: dict[str, Any]) -> None:
        player_id = self._require_seat(session)
        await self.machine.set_spectator(player_id, bool(message.get("spectator", True)))

    async def _on_start(self, session: ClientSession, message: dict[str, Any]) -> None:
        actor_id = self._require_seat(session)
        category = message.get("category")
        await self.machine.start_game(
            session.room_code or "", actor_id, str(category) if category else None
        )

    async def _on_start_voting(self, session: ClientSession, message: dict[str, Any]) -> None:
        actor_id = self._require_seat(session)
        await self.machine.start_voting(session.room_code or "", actor_id)

    async def _on_vote(self, session: ClientSession, message: dict[str, Any]) -> None:
        voter_id = self._require_seat(session)
        await self.machine.cast_vote(voter_id, str(message.get("target_id", "")))

    async def _on_finalize(self, session: ClientSession, message: dict[str, Any]) -> None:
        self._require_seat(session)
        await self.machine.finalize_votes(session.room_code or "")

    async def _on_resume(self, session: ClientSession, message: dict[str, Any]) -> None:
        actor_id = self._require_seat(session)
        await self.machine.resume_discussion(session.room_code or "", actor_id)

    async def _on_lobby(self, session: ClientSession, message: dict[str, Any]) -> None:
        actor_id = self._require_seat(session)
        await self.machine.return_to_lobby(session.room_code or "", actor_id)

    async def _on_categories(self, session: ClientSession, message: dict[str, Any]) -> None:
        session.send({"type": "categories", "categories": self.machine.list_categories()})

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def _welcome(self, session: ClientSession, room: Room, player: Player) -> None:
        self._unwatch(session)
        session.player_id = player.id
        session.room_code = room.code
        session.unsubscribe = self.notifier.subscribe(
            room.code,
            lambda r: session.send({"type": "room", "room": r.to_dict()}),
            lambda ps: session.send({"type": "players", "players": [p.to_dict() for p in ps]}),
        )
        self._watchers.setdefault(room.code, set()).add(session)

        snapshot = await self.machine.snapshot(room.code)
        session.send(
            {
                "type": "welcome",
                "player": player.to_dict(),
                "join_link": join_link(self.config.server.base_url, room.code),
                **snapshot.to_dict(),
            }
        )

    def _unwatch(self, session: ClientSession) -> None:
        if session.unsubscribe is not None:
            session.unsubscribe()
            session.unsubscribe = None
        if session.room_code is not None:
            watchers = self._watchers.get(session.room_code)
            if watchers is not None:
                watchers.discard(session)
                if not watchers:
                    del self._watchers[session.room_code]
        session.room_code = None

    def _on_game_event(self, event: GameEvent) -> None:
        payload = event_to_dict(event)
        for session in list(self._watchers.get(event.room_code, ())):
            session.send(payload)
            if isinstance(event, PlayerLeftEvent) and session.player_id == event.player_id:
                # Kicked: the seat is gone, stop streaming the room.
                self._unwatch(session)
                session.player_id = None

    @staticmethod
    def _require_seat(session: ClientSession) -> str:
        if session.player_id is None or session.room_code is None:
            raise PlayerNotFound("Join a room first.")
        return session.player_id


# ------------------------------------------------------------------
# Server
# ------------------------------------------------------------------


async def serve_connection(server: GameServer, websocket: Any) -> None:
    """Run one client connection until it closes."""
    session = ClientSession()

    async def pump() -> None:
        while True:
            msg = await session.outbox.get()
            try:
                await websocket.send(msg)
            except ConnectionClosed:
                logger.debug("Client went away with messages still queued")
                return

    sender = asyncio.create_task(pump())
    try:
        async for raw in websocket:
            await server.dispatch(session, raw)
    except ConnectionClosed:
        pass
    except Exception:
        logger.exception("Connection handler failed")
    finally:
        server.disconnect(session)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender


async def start_server(server: GameServer, host: str, port: int) -> None:
    """Serve WebSocket clients forever (call as asyncio task)."""

    async def ws_handler(websocket: Any) -> None:
        await serve_connection(server, websocket)

    async with ws_serve(ws_handler, host, port):
        logger.info("WebSocket server on ws://%s:%d", host, port)
        await asyncio.Future()
