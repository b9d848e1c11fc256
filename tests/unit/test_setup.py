"""Tests for round setup and the word bank."""

from __future__ import annotations

import random
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from impostor.content.words import DEFAULT_CATEGORIES, WordBank, load_word_bank
from impostor.engine.errors import NotEnoughPlayers
from impostor.engine.setup import RoundSetup
from impostor.engine.state import Player


_T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _players(n: int) -> list[Player]:
    return [
        Player(id=f"p{i}", room_code="ABC123", name=f"P{i}", created_at=_T0 + timedelta(seconds=i))
        for i in range(n)
    ]


# ======================================================================
# WordBank
# ======================================================================


class TestWordBank:
    """Tests for the category/word lookup."""

    def test_default_categories(self) -> None:
        bank = WordBank()
        assert bank.list_categories() == list(DEFAULT_CATEGORIES)
        assert "Comidas" in bank.list_categories()

    def test_random_word_belongs_to_category(self) -> None:
        bank = WordBank()
        rng = random.Random(1)
        for _ in range(50):
            assert bank.random_word("Animales", rng) in DEFAULT_CATEGORIES["Animales"]

    def test_unknown_category_raises(self) -> None:
        with pytest.raises(KeyError):
            WordBank().random_word("Nope")

    def test_empty_categories_dropped(self) -> None:
        bank = WordBank({"A": ["x"], "B": []})
        assert bank.list_categories() == ["A"]
        assert bank.has_category("B") is False

    def test_empty_bank_rejected(self) -> None:
        with pytest.raises(ValueError):
            WordBank({"A": []})

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "words.yaml"
        path.write_text("Colores:\n  - Rojo\n  - Azul\nSkip: nope\n", encoding="utf-8")
        bank = load_word_bank(str(path))
        assert bank.list_categories() == ["Colores"]
        assert bank.words("Colores") == ("Rojo", "Azul")

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        bank = load_word_bank(str(tmp_path / "missing.yaml"))
        assert bank.list_categories() == list(DEFAULT_CATEGORIES)

    def test_load_unusable_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "words.yaml"
        path.write_text("Colores: []\n", encoding="utf-8")
        assert load_word_bank(str(path)).list_categories() == list(DEFAULT_CATEGORIES)


# ======================================================================
# RoundSetup
# ======================================================================


class TestRoundSetup:
    """Tests for RoundSetup.begin()."""

    def test_not_enough_players(self) -> None:
        setup = RoundSetup(rng=random.Random(0))
        with pytest.raises(NotEnoughPlayers):
            setup.begin(_players(2))

    def test_requested_category_is_used(self) -> None:
        setup = RoundSetup(rng=random.Random(0))
        for _ in range(20):
            assignment = setup.begin(_players(3), "Películas")
            assert assignment.category == "Películas"
            assert assignment.word in DEFAULT_CATEGORIES["Películas"]

    def test_unknown_category_falls_back_to_random(self) -> None:
        setup = RoundSetup(rng=random.Random(0))
        assignment = setup.begin(_players(3), "Nope")
        assert assignment.category in DEFAULT_CATEGORIES
        assert assignment.word in DEFAULT_CATEGORIES[assignment.category]

    def test_impostor_is_one_of_the_players(self) -> None:
        players = _players(5)
        setup = RoundSetup(rng=random.Random(0))
        assignment = setup.begin(players)
        assert assignment.impostor_id in {p.id for p in players}

    def test_impostor_drawn_uniformly(self) -> None:
        players = _players(4)
        setup = RoundSetup(rng=random.Random(1234))
        picks = Counter(setup.begin(players).impostor_id for _ in range(4000))
        assert set(picks) == {p.id for p in players}
        for count in picks.values():
            assert 800 < count < 1200

    def test_random_categories_cover_the_bank(self) -> None:
        setup = RoundSetup(rng=random.Random(7))
        seen = {setup.begin(_players(3)).category for _ in range(500)}
        assert seen == set(DEFAULT_CATEGORIES)

    def test_custom_minimum(self) -> None:
        setup = RoundSetup(min_players=4, rng=random.Random(0))
        with pytest.raises(NotEnoughPlayers):
            setup.begin(_players(3))
        assert setup.begin(_players(4)).impostor_id.startswith("p")
