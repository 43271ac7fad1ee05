"""
Process-wide mapping from small integer session IDs to display surfaces.

The registry only looks surfaces up; it holds weak references and never keeps
a surface alive. An ID becomes reusable as soon as its surface is gone.
"""

import logging
import weakref
from typing import Any

log = logging.getLogger(__name__)

_registry: "InstanceRegistry | None" = None


class InstanceRegistry:
    """Binds session IDs to surfaces and hands out reusable IDs."""

    def __init__(self):
        self._bindings: dict[int, weakref.ref] = {}

    def __len__(self) -> int:
        return len(self._bindings)

    def register(self, session_id: int, surface: Any) -> None:
        """
        Binds `session_id` to `surface`, replacing any prior binding. The caller
        tears the previous surface down first.
        """
        if session_id < 0:
            raise ValueError(f"Session IDs are non-negative, got {session_id}.")
        self._bindings.pop(session_id, None)
        self._bindings[session_id] = weakref.ref(surface)
        log.debug(f"Registered session {session_id} -> {surface!r}")

    def lookup(self, session_id: int) -> Any | None:
        """Returns the live surface bound to `session_id`, if any."""
        ref = self._bindings.get(session_id)
        surface = ref() if ref is not None else None
        return surface if self._is_live(surface) else None

    @staticmethod
    def _is_live(surface: Any) -> bool:
        return surface is not None and surface.is_live()

    def next_available_id(self) -> int:
        """
        Returns the smallest bound ID whose surface is missing or dead; if every
        bound surface is live, the ID just above the current maximum.
        """
        for session_id in sorted(self._bindings):
            if not self._is_live(self._bindings[session_id]()):
                return session_id
        return max(self._bindings) + 1 if self._bindings else 0

    def live_sessions(self) -> list[Any]:
        """All live surfaces, in registration order."""
        surfaces = (ref() for ref in self._bindings.values())
        return [s for s in surfaces if self._is_live(s)]

    def visible_sessions(self) -> list[Any]:
        """The live surfaces currently presented to the user."""
        return [s for s in self.live_sessions() if s.visible]


def get_registry() -> InstanceRegistry:
    """Returns the registry shared by the whole process, creating it once."""
    global _registry
    if _registry is None:
        _registry = InstanceRegistry()
    return _registry
