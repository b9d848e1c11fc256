"""Impostor -- room state machine and vote engine for the impostor word game."""

__version__ = "0.1.0"
