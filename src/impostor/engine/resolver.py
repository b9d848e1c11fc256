"""Vote-result evaluation: tie detection, elimination and win conditions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from impostor.engine import tally
from impostor.engine.state import Player


class Outcome(str, Enum):
    """Possible outcomes of a completed vote."""

    TIE = "TIE"
    INNOCENT_ELIMINATED = "INNOCENT_ELIMINATED"
    IMPOSTOR_CAUGHT = "IMPOSTOR_CAUGHT"
    IMPOSTOR_WINS = "IMPOSTOR_WINS"

    @property
    def ends_game(self) -> bool:
        return self in (Outcome.IMPOSTOR_CAUGHT, Outcome.IMPOSTOR_WINS)


@dataclass(frozen=True)
class VoteResult:
    """The decision reached for one completed vote."""

    outcome: Outcome
    tally: dict[str, int] = field(default_factory=dict)
    voters: dict[str, list[str]] = field(default_factory=dict)
    eliminated_id: str | None = None
    top_votes: int = 0
    remaining_alive: int = 0
    # Revealed only when the outcome ends the game.
    category: str | None = None
    secret_word: str | None = None

    @property
    def tie(self) -> bool:
        return self.outcome is Outcome.TIE


def evaluate(
    players: Sequence[Player],
    impostor_id: str | None,
    impostor_wins_at: int = 2,
) -> VoteResult:
    """Decide the outcome of a vote.

    Parameters
    ----------
    players:
        The roster; only alive, non-spectator players are considered.
    impostor_id:
        The id of this round's impostor.
    impostor_wins_at:
        The impostor wins once this many alive players (or fewer) remain
        after an innocent is eliminated.

    Rules:
    * No votes at all, or two or more candidates share the top count --
      **tie**, nobody is eliminated.
    * The eliminated player is the impostor -- **impostor caught**.
    * The impostor is no longer among the remaining alive players, or at
      most *impostor_wins_at* of them remain -- **impostor wins**.
    * Otherwise an innocent was eliminated and the round goes on.
    """
    alive = [p for p in players if p.can_vote]
    votes = tally.counts(alive)
    voters = {target: tally.voters_of(alive, target) for target in votes}

    if not votes:
        return VoteResult(outcome=Outcome.TIE, remaining_alive=len(alive))

    ranked = sorted(votes.items(), key=lambda kv: kv[1], reverse=True)
    top_id, top_votes = ranked[0]

    if len(ranked) > 1 and ranked[1][1] == top_votes:
        return VoteResult(
            outcome=Outcome.TIE,
            tally=votes,
            voters=voters,
            top_votes=top_votes,
            remaining_alive=len(alive),
        )

    remaining = [p for p in alive if p.id != top_id]

    if top_id == impostor_id:
        outcome = Outcome.IMPOSTOR_CAUGHT
    elif (
        not any(p.id == impostor_id for p in remaining)
        or len(remaining) <= impostor_wins_at
    ):
        outcome = Outcome.IMPOSTOR_WINS
    else:
        outcome = Outcome.INNOCENT_ELIMINATED

    return VoteResult(
        outcome=outcome,
        tally=votes,
        voters=voters,
        eliminated_id=top_id,
        top_votes=top_votes,
        remaining_alive=len(remaining),
    )
