"""Command-line interface for VGCE."""

import dataclasses
import threading
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.live import Live

from vgce import __version__
from vgce.core.application import Application
from vgce.core.configs import load_app_config
from vgce.core.utils.logging import add_engine_log, setup_logging
from vgce.errors import ConfigError, SpawnError
from vgce.tui import KeyReader, Renderer

app = typer.Typer(
    name="vgce",
    help="VGCE: live search-tree explorer for UCI chess engines",
    add_completion=False,
)
console = Console()


@app.command()
def version() -> None:
    """Print version information."""
    console.print(f"[bold blue]VGCE[/bold blue] v{__version__}")


@app.command()
def analyze(
    engine: Path = typer.Argument(..., help="Path to the UCI engine executable"),
    position: str | None = typer.Option(
        None, "--position", help="'startpos' or a FEN string"
    ),
    pv_depth: int | None = typer.Option(
        None, "--pv-depth", help="Maximum PV depth to display (1-100)"
    ),
    multi_pv: int | None = typer.Option(
        None, "--multi-pv", help="Number of principal variations (1-256)"
    ),
    max_depth: int | None = typer.Option(
        None, "--max-depth", help="Search depth limit (0 = infinite)"
    ),
    eval_threshold: int | None = typer.Option(
        None, "--eval-threshold", help="Centipawns before a score is highlighted"
    ),
    pause: bool = typer.Option(False, "--pause", help="Start with the search paused"),
    no_log: bool = typer.Option(False, "--no-log", help="Disable the engine output log"),
    uci_option: list[str] | None = typer.Option(
        None, "--uci-option", help="Engine option as NAME=VALUE (repeatable)"
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file with defaults"
    ),
    export_dir: Path = typer.Option(
        Path("."), "--export-dir", help="Directory for tree exports"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run an engine and watch its search tree grow."""
    setup_logging("DEBUG" if verbose else "INFO", console=console)

    cli_values = {
        "engine_path": engine,
        "position": position,
        "pv_depth_limit": pv_depth,
        "multi_pv": multi_pv,
        "max_depth": max_depth,
        "eval_threshold": eval_threshold,
        "uci_options": uci_option or None,
    }
    if pause:
        cli_values["pause_on_start"] = True
    if no_log:
        cli_values["enable_logging"] = False

    try:
        base = load_app_config(config)
        app_config = dataclasses.replace(
            base, **{key: value for key, value in cli_values.items() if value is not None}
        )
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if app_config.enable_logging:
        add_engine_log(app_config.log_file)

    try:
        application = Application.from_config(app_config)
    except SpawnError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    quit_requested = threading.Event()
    renderer = Renderer(application)
    keys = KeyReader(
        application, on_quit=quit_requested.set, renderer=renderer, export_dir=export_dir
    )

    application.start()
    keys.start()
    try:
        with Live(
            get_renderable=renderer.render,
            console=console,
            screen=True,
            refresh_per_second=app_config.refresh_per_second,
        ):
            while not quit_requested.wait(0.1):
                pass
    except KeyboardInterrupt:
        pass
    finally:
        keys.stop()
        logger.info("Stopping engine...")
        application.stop()

    console.print("[bold green]Session finished.[/bold green]")


if __name__ == "__main__":
    app()
