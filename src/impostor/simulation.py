"""Self-play with random voters, for smoke-testing rules and balance."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from impostor.config.schema import GameConfig
from impostor.engine.events import GameEndEvent, GameEvent
from impostor.engine.machine import RoomStateMachine
from impostor.engine.phase import RoomStatus
from impostor.store.memory import MemoryStore

logger = logging.getLogger(__name__)

_NAMES = [
    "Ana", "Beto", "Caro", "Dani", "Eli", "Fede", "Gabi", "Hugo", "Ines", "Juan",
]


@dataclass
class SimulationResult:
    """Outcome of one simulated game."""

    room_code: str
    end_event: GameEndEvent
    rounds: int
    events: list[GameEvent] = field(default_factory=list)


class RandomVoter:
    """Votes for a uniformly random other eligible player."""

    def __init__(self, player_id: str, rng: random.Random) -> None:
        self.player_id = player_id
        self.rng = rng

    def choose(self, candidates: list[str]) -> str | None:
        targets = [pid for pid in candidates if pid != self.player_id]
        if not targets:
            return None
        return self.rng.choice(targets)


async def simulate_game(
    config: GameConfig,
    num_players: int = 5,
    rng: random.Random | None = None,
    max_rounds: int = 20,
) -> SimulationResult:
    """Play one game to completion with random voters."""
    rng = rng or random.Random(config.seed)
    events: list[GameEvent] = []
    machine = RoomStateMachine(MemoryStore(), config=config, rng=rng, event_listeners=[events.append])

    if not config.min_players <= num_players <= min(config.max_players, len(_NAMES)):
        raise ValueError(f"Cannot simulate a game with {num_players} players")

    room, host_player = await machine.create_room(_NAMES[0])
    for name in _NAMES[1:num_players]:
        await machine.join(room.code, name)

    await machine.start_game(room.code, host_player.id)

    rounds = 0
    while rounds < max_rounds:
        rounds += 1
        await machine.start_voting(room.code, host_player.id)
        snapshot = await machine.snapshot(room.code)
        candidates = [p.id for p in snapshot.alive_players()]
        for pid in candidates:
            target = RandomVoter(pid, rng).choose(candidates)
            if target is not None:
                await machine.cast_vote(pid, target)

        snapshot = await machine.snapshot(room.code)
        if snapshot.status == RoomStatus.FINISHED:
            break
    else:
        logger.warning("Room %s hit %d rounds without a winner", room.code, max_rounds)

    end = next((e for e in reversed(events) if isinstance(e, GameEndEvent)), None)
    if end is None:
        end = GameEndEvent(room_code=room.code, reason="Round limit reached.")
    return SimulationResult(room_code=room.code, end_event=end, rounds=rounds, events=events)


async def run_simulations(
    config: GameConfig, num_games: int, num_players: int = 5
) -> dict[str, Any]:
    """Play *num_games* games and summarise who won."""
    rng = random.Random(config.seed)
    results: list[SimulationResult] = []
    for i in range(num_games):
        logger.info("Starting simulated game %d / %d", i + 1, num_games)
        results.append(await simulate_game(config, num_players=num_players, rng=rng))

    wins = Counter(r.end_event.winning_team or "none" for r in results)
    return {
        "games": len(results),
        "wins": dict(wins),
        "impostor_win_rate": wins.get("impostor", 0) / len(results) if results else 0.0,
        "avg_rounds": sum(r.rounds for r in results) / len(results) if results else 0.0,
    }
