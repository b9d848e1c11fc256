"""Configuration loading and merging."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from impostor.config.schema import GameConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "IMPOSTOR_CONFIG"


def load_config(path: str | None = None) -> GameConfig:
    """Load a game configuration from a YAML file.

    Parameters
    ----------
    path:
        Path to a YAML configuration file.  Falls back to the file named
        by ``$IMPOSTOR_CONFIG``; with neither, or if the file cannot be
        used, a default :class:`GameConfig` is returned.

    A relative ``categories_file`` is resolved against the directory of
    the configuration file.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        logger.debug("No config path provided, using defaults")
        return GameConfig()

    data = _read_yaml(path)
    if data is None:
        return GameConfig()

    words = data.get("categories_file")
    if isinstance(words, str) and words and not os.path.isabs(words):
        data["categories_file"] = str(Path(path).parent / words)

    try:
        config = GameConfig.model_validate(data)
    except ValidationError as exc:
        logger.error("Config validation failed for %s: %s", path, exc)
        return GameConfig()

    logger.info(
        "Loaded config %s (%d-%d players per room)",
        path, config.min_players, config.max_players,
    )
    return config


def merge_configs(base: GameConfig, overrides: dict[str, Any]) -> GameConfig:
    """Deep-merge an override dict (e.g. CLI flags) into *base*.

    Returns *base* unchanged if the merged result fails validation.
    """
    merged = _deep_merge(base.model_dump(), overrides)
    try:
        return GameConfig.model_validate(merged)
    except ValidationError as exc:
        logger.error("Ignoring invalid overrides %s: %s", overrides, exc)
        return base


def _read_yaml(path: str) -> dict[str, Any] | None:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file not found: %s -- using defaults", path)
        return None
    except yaml.YAMLError as exc:
        logger.error("Failed to parse YAML config %s: %s", path, exc)
        return None

    if not isinstance(data, dict):
        logger.warning("Config file %s did not produce a mapping, using defaults", path)
        return None
    return data


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result
