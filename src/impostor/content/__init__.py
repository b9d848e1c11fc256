"""Word and category content."""

from impostor.content.words import DEFAULT_CATEGORIES, WordBank, load_word_bank

__all__ = ["DEFAULT_CATEGORIES", "WordBank", "load_word_bank"]
