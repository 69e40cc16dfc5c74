"""Main CLI application."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from snapwatch import __version__
from snapwatch.core.errors import SnapwatchError
from snapwatch.core.models.config import Settings

# Create main app
app = typer.Typer(
    name="snapwatch",
    help="Boot a node from a live network's state-sync snapshot and judge how it behaves",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str) -> float:
    """
    Parse a duration such as `15m`, `1h30m`, `90s` or plain seconds.

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the value is not a positive duration
    """
    value = value.strip()
    if not value:
        raise ValueError("empty duration")

    try:
        seconds = float(value)
    except ValueError:
        position = 0
        seconds = 0.0
        for match in _DURATION_RE.finditer(value):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            position = match.end()
        if position != len(value):
            raise ValueError(f"invalid duration: {value!r}") from None

    if seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds


def _duration_callback(value: str) -> str:
    try:
        parse_duration(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return value


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]snapwatch[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    work_dir: Annotated[
        Path | None,
        typer.Option(
            "--work-dir",
            help="Working directory for binaries, node homes, logs and results",
        ),
    ] = None,
    environment: Annotated[
        str | None,
        typer.Option(
            "--environment",
            "-e",
            help="Network to test: mainnet, mainnet-mirror, validators-testnet, fairground, stagnet1, devnet1",
        ),
    ] = None,
    config_path: Annotated[
        str | None,
        typer.Option(
            "--config-path",
            help="Network config file (local path or https:// URL); overrides --environment",
        ),
    ] = None,
    external_address: Annotated[
        str | None,
        typer.Option(
            "--external-address",
            help="External p2p address announced when the node runs behind NAT",
        ),
    ] = None,
    settings_file: Annotated[
        Path | None,
        typer.Option("--settings", "-s", help="YAML settings file"),
    ] = None,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """snapwatch - state-sync snapshot testing."""
    try:
        settings = Settings.from_yaml(settings_file) if settings_file else Settings()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Invalid settings: {e}[/red]")
        raise typer.Exit(1) from e

    if work_dir is not None:
        settings.work_dir = work_dir
    if environment is not None:
        settings.environment = environment
    if config_path:
        settings.config_path = config_path
    if external_address is not None:
        settings.external_address = external_address

    ctx.obj = settings


@app.command()
def prepare(ctx: typer.Context) -> None:
    """Prepare the local node only and print the command to start it."""
    from snapwatch.cli.commands.prepare import run_prepare

    try:
        asyncio.run(run_prepare(ctx.obj))
    except SnapwatchError as e:
        console.print(f"[red]Failed to set up the local node: {e}[/red]")
        raise typer.Exit(1) from e


@app.command()
def run(
    ctx: typer.Context,
    duration: Annotated[
        str,
        typer.Option(
            "--duration",
            "-d",
            help="Test duration (e.g. 15m, 1h30m, 90s or seconds)",
            callback=_duration_callback,
        ),
    ] = "15m",
) -> None:
    """Prepare the local node and run it for the given time."""
    from snapwatch.cli.commands.run import run_snapshot_testing

    try:
        asyncio.run(run_snapshot_testing(ctx.obj, parse_duration(duration)))
    except SnapwatchError as e:
        console.print(f"[red]Snapshot testing failed: {e}[/red]")
        raise typer.Exit(1) from e


def main() -> None:
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
