"""Configuration loading and validation."""

from impostor.config.schema import GameConfig, ServerConfig
from impostor.config.loader import load_config, merge_configs

__all__ = [
    "GameConfig",
    "ServerConfig",
    "load_config",
    "merge_configs",
]
