"""Tests for the impostor command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from impostor.cli import cli


class TestCategoriesCommand:
    """impostor categories"""

    def test_lists_builtin_categories(self) -> None:
        result = CliRunner().invoke(cli, ["categories"])
        assert result.exit_code == 0
        assert "Animales" in result.output

    def test_words_from_config(self, tmp_path: Path) -> None:
        (tmp_path / "words.yaml").write_text("Colores:\n  - Rojo\n", encoding="utf-8")
        config = tmp_path / "game.yaml"
        config.write_text("categories_file: words.yaml\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["categories", "--config", str(config), "--words"])
        assert result.exit_code == 0
        assert "Colores" in result.output
        assert "Rojo" in result.output
        assert "Animales" not in result.output


class TestSimulateCommand:
    """impostor simulate"""

    def test_json_summary(self) -> None:
        args = ["--log-level", "ERROR", "simulate", "--games", "5", "--players", "4", "--seed", "1"]
        result = CliRunner().invoke(cli, [*args, "--json"])
        assert result.exit_code == 0
        summary = json.loads(result.output)
        assert summary["games"] == 5

    def test_bad_player_count(self) -> None:
        result = CliRunner().invoke(cli, ["simulate", "--games", "1", "--players", "2"])
        assert result.exit_code != 0
        assert "--players" in result.output
