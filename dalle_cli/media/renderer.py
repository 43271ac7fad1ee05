"""
Renders a downloaded image into a session transcript.
"""

from pathlib import Path

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from dalle_cli.utils.formatting import format_size


def render_image(local_path: str | Path, display_width: int) -> Panel:
    """
    Builds the transcript entry for an image that exists at `local_path`.

    Raises:
        FileNotFoundError: If nothing has been written to `local_path`.
    """
    path = Path(local_path)
    if not path.is_file():
        raise FileNotFoundError(f"No image at '{path}'")

    resolved = path.resolve()
    link = Text(str(resolved), style=f"link {resolved.as_uri()}")
    details = Text(format_size(path.stat().st_size), style="dim")

    return Panel(
        Group(link, details),
        title=f"[bold green]🖼  {path.name}[/bold green]",
        title_align="left",
        border_style="green",
        width=display_width,
    )
