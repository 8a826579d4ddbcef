"""CLI entry point for bowl-timer.

Provides the `bowl-timer` command for launching the Textual interface
or sitting a session straight from the terminal.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from bowl_timer import __version__
from bowl_timer.app.app import BowlTimerApp, create_controller
from bowl_timer.app.config import AppConfig, ensure_app_config_exists, get_app_config_path
from bowl_timer.app.logging_config import setup_logging
from bowl_timer.app.services.clock import AsyncioClock
from bowl_timer.app.services.rate import InvalidDurationError
from bowl_timer.app.services.session import SessionConfig
from bowl_timer.app.services.timer import Finishing, Idle, Running, Starting, TimerPhase, format_status

app = typer.Typer(
    name="bowl-timer",
    help="Bowl Timer - Meditation timer with a singing bowl",
    no_args_is_help=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"bowl-timer version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Bowl Timer - sit for a chosen time, bookended by a singing bowl."""


def _show_welcome(config_path: Path) -> None:
    """Show welcome message for first run."""
    console.print(
        Panel.fit(
            "[bold green]Welcome to Bowl Timer![/bold green]\n\n"
            "Place a singing-bowl sound and an optional background video in the\n"
            "asset paths of your configuration.\n"
            f"Configuration will be created at: [cyan]{config_path}[/cyan]",
            title="bowl-timer",
            border_style="green",
        )
    )


def _load_config(config_path: Optional[Path]) -> tuple[AppConfig, Path]:
    """Load the given config file, or create the default one.

    Returns:
        Loaded configuration and the path it belongs to
    """
    try:
        if config_path:
            return AppConfig.load(config_path), config_path

        default_path = get_app_config_path()
        if not default_path.exists():
            _show_welcome(default_path)
        return ensure_app_config_exists(default_path), default_path
    except FileNotFoundError as e:
        console.print(f"[red]Config file not found: {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(1)


def _warn_missing_assets(config: AppConfig) -> None:
    if not config.cue_path.exists():
        console.print(f"[yellow]Bowl sound not found at {config.cue_path}; sessions will be silent.[/yellow]")
    if config.use_video and not config.video_path.exists():
        console.print(f"[yellow]Video not found at {config.video_path}; sessions will run without it.[/yellow]")


@app.command()
def run(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
) -> None:
    """Launch the TUI application."""
    config, path = _load_config(config_path)

    logger = setup_logging(config.log_dir)
    logger.info(f"App configuration loaded from: {path}")
    logger.info(f"Bowl sound: {config.cue_path}")
    logger.info(f"Video: {config.video_path}")
    console.print(f"[dim]Session log: {config.log_dir}/bowl_timer.log[/dim]")
    _warn_missing_assets(config)

    try:
        app_instance = BowlTimerApp(config, config_path=path)
        logger.info("Launching TUI application")
        app_instance.run()
        logger.info("Application exited normally")
    except KeyboardInterrupt:
        logger.info("Application interrupted by user (Ctrl+C)")
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(0)


async def _sit(config: AppConfig, session: SessionConfig) -> bool:
    """Run one session on the event loop, rendering progress to the console.

    Returns:
        True if the session ran to completion
    """
    controller = create_controller(
        config,
        AsyncioClock(),
        on_asset_unavailable=lambda e: console.print(f"[yellow]{e}[/yellow]"),
    )
    controller.config = session

    settled = asyncio.Event()
    completed = False

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task(
            format_status(Starting(config.preroll_seconds)),
            total=session.duration_seconds,
        )

        def on_phase(phase: TimerPhase) -> None:
            nonlocal completed
            if isinstance(phase, Starting):
                progress.update(task, description=format_status(phase))
            elif isinstance(phase, Running):
                progress.update(
                    task,
                    description=format_status(phase),
                    completed=session.duration_seconds - phase.remaining_seconds,
                )
            elif isinstance(phase, Finishing):
                completed = True
                progress.update(task, description="Complete", completed=session.duration_seconds)
            elif isinstance(phase, Idle):
                settled.set()

        controller.add_listener(on_phase)
        controller.handle_start_tap()

        try:
            await settled.wait()
            # Let the closing bowl ring out
            while controller.audio.is_fading:
                await asyncio.sleep(0.25)
        except asyncio.CancelledError:
            controller.handle_cancel()
            controller.audio.stop_immediately()
            raise

    if controller.last_media_error:
        console.print(f"[yellow]Video skipped: {controller.last_media_error}[/yellow]")
    return completed


@app.command()
def sit(
    minutes: Optional[int] = typer.Option(
        None,
        "--minutes",
        "-m",
        help="Session length in minutes (defaults to the saved choice)",
    ),
    seconds: Optional[int] = typer.Option(
        None,
        "--seconds",
        help="Session length in seconds (overrides --minutes)",
    ),
    video: Optional[bool] = typer.Option(
        None,
        "--video/--no-video",
        help="Show the background video",
    ),
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
) -> None:
    """Sit a session in the terminal without the TUI."""
    config, path = _load_config(config_path)
    logger = setup_logging(config.log_dir)
    logger.info(f"Headless session, config: {path}")

    use_video = config.use_video if video is None else video
    try:
        if seconds is not None:
            session = SessionConfig(seconds, use_video)
        else:
            session = SessionConfig.from_minutes(
                minutes if minutes is not None else config.selected_minutes, use_video
            )
    except InvalidDurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    config.use_video = use_video
    _warn_missing_assets(config)

    try:
        completed = asyncio.run(_sit(config, session))
    except KeyboardInterrupt:
        logger.info("Session interrupted by user (Ctrl+C)")
        console.print("\n[yellow]Session cancelled[/yellow]")
        raise typer.Exit(130)

    if completed:
        console.print("[green]Session complete.[/green]")


@app.command()
def config(
    show: bool = typer.Option(
        False,
        "--show",
        help="Show current configuration",
    ),
    edit: bool = typer.Option(
        False,
        "--edit",
        help="Open config in editor",
    ),
) -> None:
    """Manage application configuration."""
    config_path = get_app_config_path()

    if show or (not edit):
        if config_path.exists():
            config = AppConfig.load(config_path)
            console.print(f"[bold]Config file:[/bold] {config_path}")
            console.print(f"[bold]Duration:[/bold] {config.selected_minutes} min")
            console.print(f"[bold]Video:[/bold] {'on' if config.use_video else 'off'}")
            console.print(f"[bold]Countdown to start:[/bold] {config.preroll_seconds}s")
            console.print(f"[bold]Fade-out:[/bold] {config.fade_duration_seconds}s in {config.fade_steps} steps")
            console.print(f"[bold]Bowl sound:[/bold] {config.cue_path}")
            console.print(f"[bold]Video file:[/bold] {config.video_path}")
        else:
            console.print(f"[yellow]No config file at {config_path}[/yellow]")
            console.print("Run [bold]bowl-timer run[/bold] to create default config.")

    if edit:
        import os
        import subprocess

        editor = os.environ.get("EDITOR", "nano")
        subprocess.call([editor, str(config_path)])


def cli_entry() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli_entry()
