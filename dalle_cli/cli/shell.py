"""
Interactive multi-session shell.

Plain lines are prompts for the focused session; lines starting with `/` are
commands. Input is read in a worker thread so downloads keep running on the
event loop while the user types.
"""

import asyncio
import logging
from collections.abc import Callable

import typer
from rich.console import Console

from dalle_cli.core.controller import SessionController, session_of
from dalle_cli.core.lifecycle import SessionLifecycleManager
from dalle_cli.exceptions import BusyError, DalleCliError

from .display import Surface
from .formatters import (
    format_error_with_suggestions,
    print_session_info,
    print_session_list,
    print_shell_help,
)

log = logging.getLogger(__name__)

QUIT_COMMANDS = {"/quit", "/exit", "/q"}


class SessionShell:
    """Dispatches shell input to the lifecycle manager and controller."""

    def __init__(
        self,
        lifecycle: SessionLifecycleManager,
        controller: SessionController,
        console: Console,
        launcher: Callable[[str], object] = typer.launch,
    ):
        self.lifecycle = lifecycle
        self.controller = controller
        self.console = console
        self.launcher = launcher
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "/open": self._open,
            "/new": self._new,
            "/restart": self._restart,
            "/switch": self._switch,
            "/close": self._close,
            "/list": self._list,
            "/info": self._info,
            "/reveal": self._reveal,
            "/clear-cache": self._clear_cache,
            "/help": self._help,
        }

    @property
    def focused(self) -> Surface | None:
        return self.lifecycle.display.focused

    def handle(self, line: str) -> bool:
        """
        Processes one line of input. Returns False when the shell should exit.
        """
        line = line.strip()
        if not line:
            return True

        try:
            if line.startswith("/"):
                command, *args = line.split()
                if command in QUIT_COMMANDS:
                    return False
                handler = self._commands.get(command)
                if handler is None:
                    self.console.print(
                        f"[red]✗ Unknown command '{command}'.[/red] Type /help."
                    )
                else:
                    handler(args)
            else:
                surface = self.focused or self.lifecycle.open_or_create()
                self.controller.submit(session_of(surface), line)
        except DalleCliError as e:
            self.console.print(format_error_with_suggestions(e))
        return True

    async def run(self, prompt: str = "[bold magenta]dall-e>[/bold magenta] ") -> None:
        """Reads and handles lines until EOF or a quit command."""
        self.lifecycle.open_or_create()
        while True:
            try:
                line = await asyncio.to_thread(self.console.input, prompt)
            except EOFError:
                break
            if not self.handle(line):
                break

    def _require_focus(self) -> Surface | None:
        surface = self.focused
        if surface is None:
            self.console.print("[yellow]No session in focus. Use /open.[/yellow]")
        return surface

    def _parse_id(self, args: list[str]) -> int | None:
        try:
            return int(args[0])
        except (IndexError, ValueError):
            self.console.print("[red]✗ Expected a numeric session ID.[/red]")
            return None

    def _open(self, args: list[str]) -> None:
        self.lifecycle.open_or_create()

    def _new(self, args: list[str]) -> None:
        self.lifecycle.create_new()

    def _restart(self, args: list[str]) -> None:
        if surface := self._require_focus():
            self.lifecycle.restart(surface)

    def _switch(self, args: list[str]) -> None:
        session_id = self._parse_id(args)
        if session_id is None:
            return
        if surface := self.lifecycle.find(session_id):
            self.lifecycle.display.focus(surface)
        else:
            self.console.print(f"[red]✗ No live session with ID {session_id}.[/red]")

    def _close(self, args: list[str]) -> None:
        if args:
            session_id = self._parse_id(args)
            surface = self.lifecycle.find(session_id) if session_id is not None else None
        else:
            surface = self._require_focus()
        if surface is None:
            return
        name = surface.name
        if self.lifecycle.close(surface):
            self.console.print(f"[dim]Closed {name}.[/dim]")

    def _list(self, args: list[str]) -> None:
        infos = [
            self.controller.info(session_of(s))
            for s in self.lifecycle.registry.live_sessions()
        ]
        focused = self.focused
        focused_id = session_of(focused).session_id if focused else None
        print_session_list(infos, focused_id, self.console)

    def _info(self, args: list[str]) -> None:
        if surface := self._require_focus():
            print_session_info(self.controller.info(session_of(surface)), self.console)

    def _reveal(self, args: list[str]) -> None:
        if surface := self._require_focus():
            path = self.lifecycle.cache.session_dir(session_of(surface).session_id)
            self.console.print(f"[dim]{path}[/dim]")
            self.launcher(str(path))

    def _clear_cache(self, args: list[str]) -> None:
        surface = self._require_focus()
        if surface is None:
            return
        session = session_of(surface)
        if self.controller.is_busy(session):
            raise BusyError(f"{surface.name} is busy; cannot clear its cache now.")
        if self.lifecycle.cache.clear(session.session_id):
            self.console.print(f"[green]✓ Cleared cache of {surface.name}.[/green]")
        else:
            self.console.print(f"[red]✗ Failed to clear cache of {surface.name}.[/red]")

    def _help(self, args: list[str]) -> None:
        print_shell_help(self.console)
