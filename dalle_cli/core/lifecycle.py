"""
Creates, finds and restarts sessions.
"""

import logging

from dalle_cli.cli.display import Display, Surface
from dalle_cli.exceptions import AlreadyExistsError
from dalle_cli.models.session import Session
from dalle_cli.storage.cache import CacheManager
from dalle_cli.utils.path import session_name

from .controller import SessionController, session_of
from .registry import InstanceRegistry, get_registry

log = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Decides whether to reuse a session or allocate a new one."""

    def __init__(
        self,
        controller: SessionController,
        display: Display,
        cache: CacheManager,
        registry: InstanceRegistry | None = None,
    ):
        self.controller = controller
        self.display = display
        self.cache = cache
        self.registry = registry if registry is not None else get_registry()

    def open_or_create(self) -> Surface:
        """
        Focuses the first visible session, else the first live one, else a new one.
        """
        if visible := self.registry.visible_sessions():
            return self.display.focus(visible[0])
        if live := self.registry.live_sessions():
            return self.display.focus(live[0])
        return self.create_new()

    def create_new(self) -> Surface:
        """
        Allocates the next free ID and opens a fresh session under it.

        Raises:
            AlreadyExistsError: If a surface already carries the derived name.
        """
        session_id = self.registry.next_available_id()
        name = session_name(session_id)
        if self.display.get(name) is not None:
            raise AlreadyExistsError(f"A session named '{name}' already exists.")
        return self._create(session_id, name)

    def restart(self, surface: Surface) -> Surface | None:
        """
        Destroys the session's surface and recreates it under the same ID and
        name. Does nothing if the surface could not be destroyed.
        """
        session = session_of(surface)
        name = surface.name
        if not self.display.kill(surface):
            log.debug(f"Restart of '{name}' skipped: surface is already gone.")
            return None
        log.info(f"Restarting [cyan]{name}[/cyan]")
        return self._create(session.session_id, name)

    def find(self, session_id: int) -> Surface | None:
        return self.registry.lookup(session_id)

    def close(self, surface: Surface) -> bool:
        return self.display.kill(surface)

    def _create(self, session_id: int, name: str) -> Surface:
        self.cache.clear(session_id)
        surface = self.display.create(name)
        session = Session(session_id=session_id, surface=surface)
        surface.session = session
        self.registry.register(session_id, surface)
        self.controller.attach(session)
        log.debug(f"Created session {session_id} ('{name}')")
        return self.display.focus(surface)
