"""Round setup: secret word selection and impostor assignment."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from impostor.content.words import WordBank
from impostor.engine.errors import NotEnoughPlayers

if TYPE_CHECKING:
    from impostor.engine.state import Player

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundAssignment:
    """The secret chosen for a new round."""

    category: str
    word: str
    impostor_id: str


class RoundSetup:
    """Chooses the category, the secret word and the impostor."""

    def __init__(
        self,
        word_bank: WordBank | None = None,
        min_players: int = 3,
        rng: random.Random | None = None,
    ) -> None:
        self.word_bank = word_bank or WordBank()
        self.min_players = min_players
        self.rng = rng or random.Random()

    def begin(
        self,
        players: Sequence[Player],
        requested_category: str | None = None,
    ) -> RoundAssignment:
        """Pick the secret and the impostor for a round.

        *players* is the eligible population: callers filter out
        spectators first.  An unknown *requested_category* is ignored and a
        random category is used instead.
        """
        if len(players) < self.min_players:
            raise NotEnoughPlayers(
                f"At least {self.min_players} players are needed to start "
                f"({len(players)} present)."
            )

        if self.word_bank.has_category(requested_category):
            category = requested_category
        else:
            if requested_category:
                logger.warning(
                    "Unknown category %r requested, picking at random", requested_category
                )
            category = self.word_bank.random_category(self.rng)
        assert category is not None

        word = self.word_bank.random_word(category, self.rng)
        impostor = self.rng.choice(list(players))

        logger.debug(
            "Round assigned: category=%s impostor=%s among %d players",
            category, impostor.id, len(players),
        )
        return RoundAssignment(category=category, word=word, impostor_id=impostor.id)
