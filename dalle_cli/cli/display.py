"""
Display surfaces: the named transcripts a user looks at, one per session.

A `Surface` is what the registry points at. The `Display` owns every live
surface; killing a surface runs its close hooks once and drops it.
"""

import logging
from collections.abc import Callable
from typing import Any

from rich.console import Console, RenderableType
from rich.rule import Rule

log = logging.getLogger(__name__)


class Surface:
    """A named, addressable transcript that may be shown to the user."""

    def __init__(self, name: str, display: "Display"):
        self.name = name
        self.visible = False
        self.transcript: list[RenderableType] = []
        self.session: Any = None
        self._display = display
        self._live = True
        self._close_hooks: list[Callable[["Surface"], None]] = []

    def __repr__(self) -> str:
        state = "live" if self._live else "dead"
        return f"<Surface {self.name!r} {state}>"

    def is_live(self) -> bool:
        return self._live

    def on_close(self, hook: Callable[["Surface"], None]) -> None:
        self._close_hooks.append(hook)

    def append(self, renderable: RenderableType) -> None:
        """Adds an entry at the end of the transcript."""
        if not self._live:
            return
        self.transcript.append(renderable)
        if self.visible:
            self._display.echo(renderable)

    def _close(self) -> None:
        self._live = False
        self.visible = False
        hooks, self._close_hooks = self._close_hooks, []
        for hook in hooks:
            hook(self)


class Display:
    """Owns live surfaces by name and tracks which one is in the foreground."""

    def __init__(self, console: Console, echo: bool = True):
        self.console = console
        self.echo_enabled = echo
        self._surfaces: dict[str, Surface] = {}
        self._focused: Surface | None = None

    def echo(self, renderable: RenderableType) -> None:
        if self.echo_enabled:
            self.console.print(renderable)

    def get(self, name: str) -> Surface | None:
        return self._surfaces.get(name)

    def create(self, name: str) -> Surface:
        surface = Surface(name, self)
        self._surfaces[name] = surface
        return surface

    def surfaces(self) -> list[Surface]:
        return list(self._surfaces.values())

    @property
    def focused(self) -> Surface | None:
        if self._focused is not None and self._focused.is_live():
            return self._focused
        return None

    def focus(self, surface: Surface) -> Surface:
        """Brings a surface to the foreground and replays its transcript."""
        if self._focused is surface and surface.visible:
            return surface
        for other in self._surfaces.values():
            other.visible = False
        surface.visible = True
        self._focused = surface
        self.echo(Rule(f"[bold cyan]{surface.name}[/bold cyan]"))
        for renderable in surface.transcript:
            self.echo(renderable)
        return surface

    def kill(self, surface: Surface) -> bool:
        """
        Destroys a surface, running its close hooks before returning.
        Returns False if the surface was already gone.
        """
        if not surface.is_live() or self._surfaces.get(surface.name) is not surface:
            return False
        del self._surfaces[surface.name]
        if self._focused is surface:
            self._focused = None
        surface._close()
        log.debug(f"Closed surface '{surface.name}'.")
        return True
