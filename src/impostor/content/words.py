"""Static category/word tables used to pick each round's secret."""

from __future__ import annotations

import logging
import random
from typing import Any

import yaml

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES: dict[str, list[str]] = {
    "Videojuegos": [
        "Minecraft", "Fortnite", "Mario Bros", "Tetris", "GTA",
        "FIFA", "Call of Duty", "Pokemon", "Zelda", "Among Us",
    ],
    "Lugares": [
        "Hospital", "Playa", "Aeropuerto", "Biblioteca", "Supermercado",
        "Cine", "Gimnasio", "Restaurante", "Escuela", "Parque",
    ],
    "Comidas": [
        "Pizza", "Hamburguesa", "Sushi", "Tacos", "Pasta",
        "Ensalada", "Helado", "Paella", "Asado", "Empanadas",
    ],
    "Animales": [
        "Elefante", "Delfín", "Águila", "Serpiente", "León",
        "Pingüino", "Tiburón", "Mariposa", "Cocodrilo", "Caballo",
    ],
    "Profesiones": [
        "Médico", "Bombero", "Astronauta", "Chef", "Piloto",
        "Detective", "Arquitecto", "Veterinario", "Periodista", "Músico",
    ],
    "Paises": [
        "Francia", "España", "Estados Unidos", "Italia", "Japón",
        "China", "México", "Reino Unido", "Alemania", "Chile",
        "Colombia", "Perú", "Brasil", "Tailandia", "India",
        "Portugal", "Argentina",
    ],
    "Películas": [
        "Titanic", "Avatar", "Matrix", "Jurassic Park", "Star Wars",
        "Harry Potter", "El Padrino", "Toy Story", "Frozen", "Batman",
    ],
}


class WordBank:
    """Read-only lookup of categories and their words."""

    def __init__(self, categories: dict[str, list[str]] | None = None) -> None:
        source = DEFAULT_CATEGORIES if categories is None else categories
        self._categories: dict[str, tuple[str, ...]] = {
            name: tuple(words) for name, words in source.items() if words
        }
        if not self._categories:
            raise ValueError("A word bank needs at least one non-empty category")

    def list_categories(self) -> list[str]:
        return list(self._categories)

    def has_category(self, category: str | None) -> bool:
        return category is not None and category in self._categories

    def words(self, category: str) -> tuple[str, ...]:
        if category not in self._categories:
            raise KeyError(f"Unknown category: {category!r}")
        return self._categories[category]

    def random_word(self, category: str, rng: random.Random | None = None) -> str:
        """Return a uniformly random word from *category*."""
        return (rng or random).choice(self.words(category))

    def random_category(self, rng: random.Random | None = None) -> str:
        return (rng or random).choice(self.list_categories())


def load_word_bank(path: str | None = None) -> WordBank:
    """Load categories from a YAML mapping of ``category: [words]``.

    Falls back to the built-in table when *path* is None, missing or
    malformed.
    """
    if path is None:
        return WordBank()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Categories file not found: %s -- using defaults", path)
        return WordBank()
    except yaml.YAMLError as exc:
        logger.error("Failed to parse categories file %s: %s", path, exc)
        return WordBank()

    if not isinstance(data, dict):
        logger.warning("Categories file %s did not produce a dict, using defaults", path)
        return WordBank()

    categories = {
        str(name): [str(w) for w in words]
        for name, words in data.items()
        if isinstance(words, list)
    }
    try:
        bank = WordBank(categories)
    except ValueError:
        logger.warning("Categories file %s has no usable categories, using defaults", path)
        return WordBank()

    logger.info("Loaded %d categories from %s", len(bank.list_categories()), path)
    return bank
