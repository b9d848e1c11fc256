"""Command-line interface for the Impostor game server."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default="INFO", help="Logging level.")
def cli(log_level: str) -> None:
    """Impostor -- social deduction word game server."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load(config_path: str | None, overrides: dict[str, Any]) -> Any:
    from impostor.config.loader import load_config, merge_configs

    config = load_config(config_path)
    if overrides:
        config = merge_configs(config, overrides)
    return config


# ------------------------------------------------------------------
# impostor serve
# ------------------------------------------------------------------


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to game config YAML.",
)
@click.option("--host", type=str, default=None, help="Override bind address.")
@click.option("--port", type=int, default=None, help="Override WebSocket port.")
def serve(config_path: str | None, host: str | None, port: int | None) -> None:
    """Run the realtime game server."""
    from impostor.comms.notifier import ChangeNotifier
    from impostor.content.words import load_word_bank
    from impostor.engine.machine import RoomStateMachine
    from impostor.server import GameServer, start_server
    from impostor.store.memory import MemoryStore

    server_overrides: dict[str, Any] = {}
    if host is not None:
        server_overrides["host"] = host
    if port is not None:
        server_overrides["port"] = port
    config = _load(config_path, {"server": server_overrides} if server_overrides else {})

    notifier = ChangeNotifier()
    machine = RoomStateMachine(
        MemoryStore(notifier),
        config=config,
        word_bank=load_word_bank(config.categories_file),
    )
    server = GameServer(machine, notifier, config)

    click.echo(click.style("=== Impostor server ===", fg="cyan", bold=True))
    click.echo(f"  Listening: ws://{config.server.host}:{config.server.port}")
    click.echo(f"  Players per room: {config.min_players}-{config.max_players}")
    click.echo()

    try:
        asyncio.run(start_server(server, config.server.host, config.server.port))
    except KeyboardInterrupt:
        click.echo("Shutting down.")


# ------------------------------------------------------------------
# impostor categories
# ------------------------------------------------------------------


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to game config YAML.",
)
@click.option("--words", is_flag=True, help="List the words of each category too.")
def categories(config_path: str | None, words: bool) -> None:
    """List the available word categories."""
    from impostor.content.words import load_word_bank

    config = _load(config_path, {})
    bank = load_word_bank(config.categories_file)
    for name in bank.list_categories():
        click.echo(click.style(name, fg="cyan"))
        if words:
            click.echo("  " + ", ".join(bank.words(name)))


# ------------------------------------------------------------------
# impostor simulate
# ------------------------------------------------------------------


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to game config YAML.",
)
@click.option("--games", type=int, default=100, help="Number of games to play.")
@click.option("--players", type=int, default=5, help="Players per game.")
@click.option("--seed", type=int, default=None, help="Random seed.")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON.")
def simulate(
    config_path: str | None,
    games: int,
    players: int,
    seed: int | None,
    as_json: bool,
) -> None:
    """Play games with random voters and report win rates."""
    from impostor.simulation import run_simulations

    config = _load(config_path, {"seed": seed} if seed is not None else {})
    try:
        summary = asyncio.run(run_simulations(config, games, num_players=players))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--players") from exc

    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo(click.style("=== Simulation ===", fg="green", bold=True))
    click.echo(f"  Games: {summary['games']}")
    for team, count in sorted(summary["wins"].items()):
        click.echo(f"  {team}: {count}")
    rate = f"{summary['impostor_win_rate']:.1%}"
    click.echo(f"  Impostor win rate: {click.style(rate, fg='yellow')}")
    click.echo(f"  Avg rounds: {summary['avg_rounds']:.2f}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
