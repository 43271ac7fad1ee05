"""
Manages a Rich progress display with one spinner per busy session.
"""

import asyncio
import logging

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

log = logging.getLogger(__name__)


class ProgressIndicator:
    """
    The spinner of one session. `start` and `stop` are idempotent; starting an
    active indicator only updates its message.
    """

    def __init__(self, manager: "ProgressManager", label: str):
        self._manager = manager
        self.label = label
        self._task_id: TaskID | None = None

    @property
    def active(self) -> bool:
        return self._task_id is not None

    def start(self, message: str = "") -> None:
        description = f"[cyan]{self.label}[/cyan] {message}".rstrip()
        if self._task_id is None:
            self._task_id = self._manager.progress.add_task(description, total=None)
        else:
            self._manager.progress.update(self._task_id, description=description)

    def stop(self) -> None:
        if self._task_id is None:
            return
        try:
            self._manager.progress.remove_task(self._task_id)
        except KeyError:
            pass
        self._task_id = None


class ProgressManager:
    """
    Owns the shared Rich `Progress` that hosts every session's spinner and,
    inside `async with`, keeps it on screen as a live display.
    """

    def __init__(self, console: Console, spinner_type: str = "dots"):
        self.console = console
        self.progress = Progress(
            SpinnerColumn(spinner_name=spinner_type),
            TextColumn("[progress.description]{task.description}", justify="left"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._started = False

    def indicator(self, label: str) -> ProgressIndicator:
        return ProgressIndicator(self, label)

    @property
    def active_count(self) -> int:
        return len(self.progress.task_ids)

    async def __aenter__(self):
        self.progress.start()
        self._started = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._started:
            await asyncio.sleep(0.1)
            self.progress.stop()
            self._started = False
