"""Tests for impostor.config -- schema defaults, YAML loading and merging."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from impostor.config.loader import CONFIG_ENV_VAR, load_config, merge_configs
from impostor.config.schema import GameConfig, ServerConfig


# ======================================================================
# Schema defaults
# ======================================================================


class TestGameConfigDefaults:
    """GameConfig defaults describe the standard game."""

    def test_defaults(self) -> None:
        config = GameConfig()
        assert config.min_players == 3
        assert config.max_players == 10
        assert config.code_length == 6
        assert config.max_name_length == 20
        assert config.impostor_wins_at == 2
        assert config.enforce_host is True
        assert config.categories_file is None
        assert isinstance(config.server, ServerConfig)

    def test_min_players_floor(self) -> None:
        with pytest.raises(ValidationError):
            GameConfig(min_players=2)

    def test_max_below_min_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GameConfig(min_players=5, max_players=4)


# ======================================================================
# load_config
# ======================================================================


class TestLoadConfig:
    """Tests for load_config()."""

    def test_none_returns_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert load_config(None) == GameConfig()

    def test_env_var_names_default_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "env.yaml"
        path.write_text("max_players: 6\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().max_players == 6

    def test_relative_categories_file(self, tmp_path: Path) -> None:
        path = tmp_path / "game.yaml"
        path.write_text("categories_file: words.yaml\n", encoding="utf-8")
        assert load_config(str(path)).categories_file == str(tmp_path / "words.yaml")

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path / "nope.yaml")) == GameConfig()

    def test_reads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "game.yaml"
        path.write_text(
            "max_players: 8\nenforce_host: false\nserver:\n  port: 9000\n",
            encoding="utf-8",
        )
        config = load_config(str(path))
        assert config.max_players == 8
        assert config.enforce_host is False
        assert config.server.port == 9000
        assert config.server.host == "0.0.0.0"

    def test_invalid_yaml_returns_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("max_players: [unclosed\n", encoding="utf-8")
        assert load_config(str(path)) == GameConfig()

    def test_non_mapping_returns_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        assert load_config(str(path)) == GameConfig()

    def test_invalid_values_return_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "invalid.yaml"
        path.write_text("min_players: 1\n", encoding="utf-8")
        assert load_config(str(path)) == GameConfig()

    def test_shipped_default_config_loads(self) -> None:
        path = Path(__file__).resolve().parents[2] / "configs" / "default_game.yaml"
        assert load_config(str(path)) == GameConfig()


# ======================================================================
# merge_configs
# ======================================================================


class TestMergeConfigs:
    """Tests for merge_configs()."""

    def test_nested_merge_keeps_siblings(self) -> None:
        merged = merge_configs(GameConfig(), {"server": {"port": 1234}})
        assert merged.server.port == 1234
        assert merged.server.host == "0.0.0.0"

    def test_top_level_override(self) -> None:
        merged = merge_configs(GameConfig(), {"seed": 42})
        assert merged.seed == 42

    def test_invalid_override_returns_base(self) -> None:
        base = GameConfig(max_players=6)
        assert merge_configs(base, {"min_players": 0}) is base
