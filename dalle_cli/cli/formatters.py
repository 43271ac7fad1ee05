"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dalle_cli.models.config import SessionConfig, get_size_info
from dalle_cli.models.session import ImageEntry, SessionInfo
from dalle_cli.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "EmptyPromptError": [
            "• Type a description of the image you want, then press Enter.",
        ],
        "BusyError": [
            "• This session is still working on its previous prompt.",
            "• Wait for the spinner to stop, or open another session with /new.",
        ],
        "SessionClosedError": [
            "• Open a live session with /open or /new and submit the prompt there.",
        ],
        "RemoteCallError": [
            "• Check that your API key is valid and has image access.",
            "• The prompt may have been rejected by the service's safety system.",
            "• Try again in a few minutes if the service is overloaded.",
        ],
        "ConfigurationError": [
            "• Run `dalle-cli validate` to see which setting is wrong.",
            "• Run `dalle-cli init <API_KEY> --force` to rewrite the config.",
        ],
        "AlreadyExistsError": [
            "• Close the session with that name, or restart it with /restart.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The image service might be temporarily unavailable.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any], console: Console):
    """Displays the current configuration, hiding sensitive data."""
    content = ""
    for key, value in config_data.items():
        if key == "api_key":
            value = "[hidden]" if value else "[not set]"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(
    config: SessionConfig,
    console: Console,
    title: str = "[bold green]✓ Validated Settings[/bold green]",
):
    """Displays a summary of the current settings."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    size_info = get_size_info(config.size)

    table.add_row(
        "API Key:", "[green]✓ Set[/green]" if config.api_key else "[red]✗ Missing[/red]"
    )
    table.add_row("Endpoint:", f"{config.base_url} ([dim]{config.model}[/dim])")
    table.add_row("Images per Prompt:", str(config.n))
    table.add_row(
        "Size:", f"[{size_info['color']}]{size_info['name']}[/{size_info['color']}]"
    )
    table.add_row("User:", config.user or "[dim]-[/dim]")
    table.add_row("Spinner:", config.spinner_type)
    table.add_row("Display Width:", str(config.display_width))
    table.add_row("Cache Directory:", f"[dim]{config.cache_dir}[/dim]")

    console.print(
        Panel(
            table,
            title=title,
            border_style="green",
        )
    )


def print_session_info(info: SessionInfo, console: Console):
    """Displays the snapshot of one session."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if info.requesting:
        state = "[yellow]requesting[/yellow]"
    elif info.downloading:
        state = "[cyan]downloading[/cyan]"
    else:
        state = "[green]idle[/green]"

    table.add_row("ID:", str(info.session_id))
    table.add_row("State:", state)
    table.add_row("Images:", str(info.image_count))
    table.add_row("Images per Prompt:", str(info.n))
    table.add_row("Size:", info.size)
    table.add_row("User:", info.user or "[dim]-[/dim]")

    console.print(Panel(table, title=f"[bold]{info.name}[/bold]", border_style="cyan"))


def print_session_list(infos: list[SessionInfo], focused_id: int | None, console: Console):
    """Displays every live session as a table."""
    if not infos:
        console.print("[dim]No live sessions.[/dim]")
        return

    table = Table(title="Sessions")
    table.add_column("", width=1)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Images", justify="right", style="green")
    table.add_column("State")
    for info in infos:
        if info.requesting:
            state = "[yellow]requesting[/yellow]"
        elif info.downloading:
            state = "[cyan]downloading[/cyan]"
        else:
            state = "[green]idle[/green]"
        marker = "[bold]*[/bold]" if info.session_id == focused_id else ""
        table.add_row(marker, str(info.session_id), info.name, str(info.image_count), state)
    console.print(table)


def print_summary_panel(images: list[ImageEntry], duration_s: float, console: Console):
    """Displays the images a one-shot generation left on disk."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    saved = [entry for entry in images if entry.path.is_file()]
    missing = len(images) - len(saved)
    total_size = sum(entry.path.stat().st_size for entry in saved)

    table.add_row("✓ Saved:", f"[bold green]{len(saved)}[/bold green]")
    if missing:
        table.add_row("✗ Missing:", f"[bold red]{missing}[/bold red]")
    table.add_row("Size:", format_size(total_size))
    table.add_row("Duration:", format_duration(duration_s))
    for entry in saved:
        table.add_row("", f"[dim]{entry.path}[/dim]")

    console.print(
        Panel(table, title="[bold]📊 Generation Summary[/bold]", border_style="blue")
    )


SHELL_COMMANDS = {
    "/open": "Focus a visible or live session, or create one.",
    "/new": "Create a new session.",
    "/restart": "Restart the focused session with an empty history.",
    "/switch ID": "Focus the session with the given ID.",
    "/close [ID]": "Close a session (default: the focused one).",
    "/list": "List live sessions.",
    "/info": "Show the focused session's snapshot.",
    "/reveal": "Open the focused session's cache directory.",
    "/clear-cache": "Delete the focused session's cached images.",
    "/help": "Show this help.",
    "/quit": "Close every session and exit.",
}


def print_shell_help(console: Console):
    """Lists the interactive shell commands."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("<prompt>", "Generate images in the focused session.")
    for command, description in SHELL_COMMANDS.items():
        table.add_row(command, description)
    console.print(Panel(table, title="[bold]Shell Commands[/bold]", border_style="cyan"))
