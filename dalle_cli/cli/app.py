"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from dalle_cli import __version__
from dalle_cli.api.client import ImageAPIClient
from dalle_cli.core.controller import SessionController, session_of
from dalle_cli.core.lifecycle import SessionLifecycleManager
from dalle_cli.exceptions import DalleCliError
from dalle_cli.media.downloader import close_connection_pool
from dalle_cli.models.config import SessionConfig
from dalle_cli.storage.cache import CacheManager, copy_images
from dalle_cli.storage.config_manager import ConfigManager
from dalle_cli.utils.config_validator import export_schema, validate_config_schema

from .display import Display
from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_summary_panel,
    print_validation_table,
)
from .progress_manager import ProgressManager
from .shell import SessionShell

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("dalle_cli")

app = typer.Typer(
    name="dalle-cli",
    help=(
        "Generate images from text prompts in concurrent sessions. Use 'dalle-cli"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "dalle-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(cli_options: dict | None = None) -> SessionConfig:
    try:
        return ConfigManager(CONFIG_FILE).load_config(cli_options)
    except DalleCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _cache_target(config: SessionConfig, session_id: int | None) -> Path:
    cache = CacheManager(Path(config.cache_dir))
    return cache.cache_dir if session_id is None else cache.session_dir(session_id)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """dalle-cli: concurrent image-generation sessions"""
    if version:
        console.print(f"[bold]dalle-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("dalle_cli").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]dalle-cli init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config = _load_config()
        config_data = config.model_dump(exclude={"config_path"})
        print_config(CONFIG_FILE, config_data, console)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    api_key: str = typer.Argument(..., help="API key for the image service."),
    user: str = typer.Option(
        "", "--user", "-u", help="End-user identifier sent with every request."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Initialize configuration with an API key."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {"api_key": api_key.strip()}
    if user:
        settings["user"] = user
    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except DalleCliError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready! Try: [cyan]dalle-cli generate \"a cat in a hat\"[/cyan]")


class _Runtime:
    """The collaborators one run of the session engine needs."""

    def __init__(
        self, config: SessionConfig, progress: ProgressManager, keep_cache: bool = False
    ):
        self.api_client = ImageAPIClient(config)
        self.cache = CacheManager(Path(config.cache_dir))
        self.display = Display(console)
        self.controller = SessionController(
            config,
            self.api_client,
            self.cache,
            progress,
            clear_cache_on_close=not keep_cache,
        )
        self.lifecycle = SessionLifecycleManager(
            self.controller, self.display, self.cache
        )

    async def close(self) -> None:
        for surface in self.display.surfaces():
            self.display.kill(surface)
        await close_connection_pool()
        await self.api_client.close()


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Description of the image to generate."),
    n: int | None = typer.Option(
        None, "-n", "--count", help="Number of images to generate (1-10)."
    ),
    size: str | None = typer.Option(
        None, "-s", "--size", help="Image size: 256x256, 512x512 or 1024x1024."
    ),
    output_dir: Path | None = typer.Option(
        None, "-o", "--output", help="Copy the downloaded images into this directory."
    ),
):
    """Generate images for one prompt and wait for them to download."""
    cli_options = {
        key: value for key, value in {"n": n, "size": size}.items() if value is not None
    }
    config = _load_config(cli_options)

    async def _generate_async():
        async with ProgressManager(console, config.spinner_type) as progress:
            runtime = None
            try:
                runtime = _Runtime(config, progress, keep_cache=True)
                session = session_of(runtime.lifecycle.open_or_create())
                start_time = time.monotonic()
                runtime.controller.submit(session, prompt)
                await runtime.controller.wait_until_idle(session)
                images = list(session.images)
                duration = time.monotonic() - start_time
            except DalleCliError as e:
                console.print(format_error_with_suggestions(e))
                raise typer.Exit(code=1) from e
            finally:
                if runtime:
                    await runtime.close()
        if output_dir is not None:
            images = copy_images(images, output_dir)
        print_summary_panel(images, duration, console)
        if not images:
            raise typer.Exit(code=1)

    asyncio.run(_generate_async())


@app.command()
def shell():
    """Start an interactive shell with multiple concurrent sessions."""
    config = _load_config()

    async def _shell_async():
        async with ProgressManager(console, config.spinner_type) as progress:
            runtime = None
            try:
                runtime = _Runtime(config, progress)
                repl = SessionShell(runtime.lifecycle, runtime.controller, console)
                console.print("[dim]Type a prompt, or /help for commands.[/dim]")
                await repl.run()
            except DalleCliError as e:
                console.print(format_error_with_suggestions(e))
                raise typer.Exit(code=1) from e
            finally:
                if runtime:
                    await runtime.close()

    asyncio.run(_shell_async())


@app.command()
def info():
    """Show the settings new sessions would use and the cache contents."""
    config = _load_config()
    print_validation_table(config, console, title="[bold cyan]Session Settings[/bold cyan]")

    cache = CacheManager(Path(config.cache_dir))
    console.print(
        f"Cached images: [green]{cache.count_images()}[/green] "
        f"[dim]({cache.cache_dir})[/dim]"
    )


@app.command()
def reveal(
    session_id: int | None = typer.Argument(
        None, help="Session ID whose cache to reveal (default: the cache root)."
    ),
    print_only: bool = typer.Option(
        False, "--print", help="Only print the directory path."
    ),
):
    """Open the image cache directory."""
    config = _load_config()
    target = _cache_target(config, session_id)
    console.print(str(target))
    if not print_only:
        target.mkdir(parents=True, exist_ok=True)
        typer.launch(str(target))


@app.command(name="clear-cache")
def clear_cache(
    session_id: int | None = typer.Argument(
        None, help="Session ID whose images to delete (default: all sessions)."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
):
    """Delete cached images."""
    config = _load_config()
    cache = CacheManager(Path(config.cache_dir))
    scope = "all sessions" if session_id is None else f"session {session_id}"
    if not force and not typer.confirm(f"Delete the cached images of {scope}?"):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    files_count = cache.count_images(session_id)
    if cache.clear(session_id):
        console.print(
            f"[green]✓ Cache cleared successfully ({files_count} images removed"
            ").[/green]"
        )
    else:
        console.print("[red]✗ Failed to clear cache.[/red]")
        raise typer.Exit(code=1)


@app.command()
def validate(
    schema_out: Path | None = typer.Option(
        None, "--export-schema", help="Write the config JSON schema to this path."
    ),
):
    """Validate the current configuration."""
    if schema_out is not None:
        export_schema(schema_out)
        console.print(f"[green]✓ Schema written to '{schema_out}'.[/green]")

    config = _load_config()
    is_valid, errors = validate_config_schema(
        config.model_dump(exclude={"config_path"})
    )
    print_validation_table(config, console)
    if not is_valid:
        for message in errors:
            console.print(f"[red]✗ {message}[/red]")
        raise typer.Exit(code=1)
