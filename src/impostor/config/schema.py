"""Pydantic models for all configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ServerConfig(BaseModel):
    """WebSocket server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default=8765, ge=1, le=65535)
    # Front-end URL that join links point at.
    base_url: str = "http://localhost:5173/"


class GameConfig(BaseModel):
    """Top-level game configuration."""

    min_players: int = Field(default=3, ge=3)
    max_players: int = Field(default=10, ge=3)
    code_length: int = Field(default=6, ge=4)
    max_name_length: int = Field(default=20, ge=1)
    impostor_wins_at: int = Field(default=2, ge=1)
    enforce_host: bool = True
    categories_file: str | None = None
    seed: int | None = None
    server: ServerConfig = Field(default_factory=ServerConfig)

    @model_validator(mode="after")
    def _check_player_range(self) -> "GameConfig":
        if self.max_players < self.min_players:
            raise ValueError("max_players must be at least min_players")
        return self
