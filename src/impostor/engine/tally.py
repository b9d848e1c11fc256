"""Pure vote aggregation over a roster."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from impostor.engine.state import Player


def counts(players: Iterable[Player]) -> dict[str, int]:
    """Return ``{target_id: votes}`` over every non-null ``voted_for``."""
    tally: Counter[str] = Counter()
    for p in players:
        if p.voted_for is not None:
            tally[p.voted_for] += 1
    return dict(tally)


def voters_of(players: Iterable[Player], target_id: str) -> list[str]:
    """Return the names of players who voted for *target_id*."""
    return [p.name for p in players if p.voted_for == target_id]


def is_complete(players: Iterable[Player]) -> bool:
    """True iff every alive, non-spectator player has voted.

    Vacuously true when nobody is eligible.
    """
    return all(p.voted_for is not None for p in players if p.can_vote)


def progress(players: Iterable[Player]) -> tuple[int, int]:
    """Return ``(voted, eligible)`` for the voting progress display."""
    eligible = [p for p in players if p.can_vote]
    voted = sum(1 for p in eligible if p.voted_for is not None)
    return voted, len(eligible)
